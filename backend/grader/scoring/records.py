from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .shapes import ReadingItem, classify


class QuestionType(str, Enum):
	MULTIPLE_CHOICE = "multiple_choice"
	CHECKBOX = "checkbox"
	TRUE_FALSE = "true_false"
	FILL_IN_THE_BLANKS = "fill_in_the_blanks"
	SHORT_ANSWER = "short_answer"
	ESSAY = "essay"
	MATCHING = "match_the_following"
	SENTENCE_REORDERING = "sentence_reordering"
	READING_COMPREHENSION = "reading_comprehension"
	WORD_ORDER = "word_order"
	ERROR_CORRECTION = "error_correction"
	SENTENCE_TRANSFORMATION = "sentence_transformation"
	VERB_CONJUGATION = "verb_conjugation"


@dataclass(frozen=True)
class Question:
	id: str
	task_id: str
	number: int
	type: str
	points: float
	body: Mapping[str, Any] = field(default_factory=dict)
	answer: Any = None
	# Set once at the store boundary for reading_comprehension questions
	reading_item: Optional[ReadingItem] = None

	def __post_init__(self) -> None:
		if not self.points > 0:
			raise ValueError(f"Question {self.id} must be worth more than 0 points, got {self.points}")

	@classmethod
	def from_record(
		cls,
		*,
		id: str,
		task_id: str,
		question_number: int,
		question_type: str,
		points: float,
		body: Optional[Mapping[str, Any]] = None,
		answer: Any = None,
	) -> "Question":
		body = dict(body or {})
		reading_item = None
		if question_type == QuestionType.READING_COMPREHENSION.value:
			reading_item = classify(body)
		return cls(
			id=str(id),
			task_id=str(task_id),
			number=int(question_number),
			type=str(question_type),
			points=float(points),
			body=body,
			answer=answer,
			reading_item=reading_item,
		)


@dataclass(frozen=True)
class ScoreResult:
	is_correct: bool
	points_earned: float
	evaluation_data: Dict[str, Any] = field(default_factory=dict)

	@classmethod
	def all_or_nothing(cls, is_correct: bool, max_points: float, **evaluation_data: Any) -> "ScoreResult":
		return cls(is_correct, float(max_points) if is_correct else 0.0, evaluation_data)

	@classmethod
	def manual_review(cls, **evaluation_data: Any) -> "ScoreResult":
		return cls(False, 0.0, {**evaluation_data, "requires_manual_review": True})

	@property
	def requires_manual_review(self) -> bool:
		return bool(self.evaluation_data.get("requires_manual_review"))

	def to_dict(self) -> Dict[str, Any]:
		return {
			"is_correct": self.is_correct,
			"points_earned": self.points_earned,
			"evaluation_data": dict(self.evaluation_data),
		}


@dataclass(frozen=True)
class ScoredAnswer:
	question_id: str
	question_number: int
	max_points: float
	result: ScoreResult

	def to_dict(self) -> Dict[str, Any]:
		return {
			"question_id": self.question_id,
			"question_number": self.question_number,
			**self.result.to_dict(),
			"max_points": self.max_points,
		}


@dataclass(frozen=True)
class BatchSummary:
	total_questions: int
	total_points_earned: float
	total_points_possible: float
	percentage_score: float

	@classmethod
	def compute(cls, scored: List[ScoredAnswer], task_questions: List[Question]) -> "BatchSummary":
		earned = sum(s.result.points_earned for s in scored)
		# Unanswered questions still count against the possible total
		possible = sum(q.points for q in task_questions)
		percentage = round(earned / possible * 100, 2) if possible > 0 else 0.0
		return cls(len(scored), earned, possible, percentage)


@dataclass(frozen=True)
class ScoreRecord:
	user_id: str
	task_id: str
	question_id: str
	question_number: int
	user_answer: Any
	correct_answer: Any
	is_correct: bool
	points_earned: float
	max_points: float
	evaluation_data: Dict[str, Any]
	attempt_number: int


@dataclass(frozen=True)
class HolisticRecord:
	user_id: str
	task_id: str
	attempt_number: int
	skill: str
	response_text: str
	word_count: int
	dimension_scores: Dict[str, float]
	total_score: float
	max_score: float
	percentage_score: float
	evaluation_data: Dict[str, Any]
	language: Optional[str] = None
	course_name: Optional[str] = None
