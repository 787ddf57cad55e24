from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from .shapes import ReadingItem, classify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemValidation:
	question_number: Optional[int]
	user_answer: Optional[str]
	correct_answer: str
	is_correct: bool
	explanation: str
	variant: str
	requires_manual_review: bool = False

	def to_dict(self) -> Dict[str, Any]:
		data = {
			"question_number": self.question_number,
			"user_answer": self.user_answer,
			"correct_answer": self.correct_answer,
			"is_correct": self.is_correct,
			"explanation": self.explanation,
			"variant": self.variant,
		}
		if self.requires_manual_review:
			data["requires_manual_review"] = True
		return data


@dataclass(frozen=True)
class ReadingTestResult:
	score: int
	total_score: int
	percentage: int
	validation_results: List[ItemValidation]
	unanswered_questions: List[Optional[int]]

	@property
	def all_answered(self) -> bool:
		return not self.unanswered_questions

	def to_dict(self) -> Dict[str, Any]:
		return {
			"score": self.score,
			"total_score": self.total_score,
			"percentage": self.percentage,
			"validation_results": [v.to_dict() for v in self.validation_results],
			"unanswered_questions": list(self.unanswered_questions),
			"all_answered": self.all_answered,
		}


def _list(value: Any) -> List[Any]:
	return value if isinstance(value, list) else []


def extract_all_questions(data: Mapping[str, Any]) -> List[Any]:
	"""Collect question records from any of the historical reading-test layouts."""
	if isinstance(data.get("questions"), list):
		return list(data["questions"])
	if isinstance(data.get("text_contents"), list):
		found: List[Any] = []
		for content in data["text_contents"]:
			if isinstance(content, Mapping):
				found.extend(_list(content.get("questions")))
		return found
	text_content = data.get("text_content")
	if isinstance(text_content, Mapping) and isinstance(text_content.get("questions"), list):
		return list(text_content["questions"])
	if isinstance(data.get("texts"), list):
		return list(data["texts"])
	logger.warning("No questions found in reading test with keys %s", sorted(data))
	return []


def _lookup(user_answers: Mapping[Any, Any], number: Optional[int]) -> Optional[str]:
	if number is None:
		return None
	# JSON object keys arrive as strings
	answer = user_answers.get(number, user_answers.get(str(number)))
	if answer is None or answer == "":
		return None
	return answer if isinstance(answer, str) else str(answer)


def _validate(item: ReadingItem, answer: Optional[str]) -> ItemValidation:
	if not item.is_known:
		logger.warning("Reading question %s has an unrecognized shape", item.number)
		return ItemValidation(item.number, answer, "", False, item.explanation, item.variant.value, True)
	return ItemValidation(
		item.number,
		answer,
		item.correct_answer,
		answer is not None and item.is_correct(answer),
		item.explanation_for(answer),
		item.variant.value,
	)


def score_reading_test(data: Mapping[str, Any], user_answers: Mapping[Any, Any]) -> ReadingTestResult:
	items = [classify(record) for record in extract_all_questions(data)]
	scored = [item for item in items if not item.is_example]
	validations = [_validate(item, _lookup(user_answers, item.number)) for item in scored]
	correct = sum(1 for v in validations if v.is_correct)
	total = len(validations)
	percentage = int(correct / total * 100 + 0.5) if total else 0
	unanswered = [v.question_number for v in validations if v.user_answer is None]
	logger.info("Reading test scored: %d/%d (%d%%)", correct, total, percentage)
	return ReadingTestResult(correct, total, percentage, validations, unanswered)
