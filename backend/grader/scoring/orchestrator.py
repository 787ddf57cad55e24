from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..errors import PersistenceError, QuestionNotFound
from ..stores import QuestionStore, ScoreStore
from . import objective
from .normalize import as_text
from .records import BatchSummary, Question, QuestionType, ScoredAnswer, ScoreRecord, ScoreResult
from .subjective import SubjectiveEvaluator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmittedAnswer:
	question_id: str
	user_answer: Any


@dataclass(frozen=True)
class BatchOutcome:
	results: List[ScoredAnswer]
	summary: BatchSummary
	skipped_question_ids: List[str]

	def to_dict(self) -> Dict[str, Any]:
		return {
			"results": [r.to_dict() for r in self.results],
			"summary": {
				"total_questions": self.summary.total_questions,
				"total_points_earned": self.summary.total_points_earned,
				"total_points_possible": self.summary.total_points_possible,
				"percentage_score": self.summary.percentage_score,
			},
		}


def _text(value: Any) -> str:
	return value if isinstance(value, str) else ("" if value is None else as_text(value))


class ScoringService:
	"""Resolves submitted answers against stored questions, scores and persists them."""

	def __init__(self, questions: QuestionStore, scores: ScoreStore, subjective: SubjectiveEvaluator) -> None:
		self.questions = questions
		self.scores = scores
		self.subjective = subjective

	async def score_question(self, question: Question, user_answer: Any) -> ScoreResult:
		qtype = question.type
		body = question.body
		points = question.points
		correct = question.answer
		logger.info("Scoring %s question #%s", qtype, question.number)

		if qtype in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
			return objective.score_multiple_choice(user_answer, correct, points)
		if qtype == QuestionType.CHECKBOX:
			return objective.score_checkbox(user_answer, correct, points)
		if qtype == QuestionType.MATCHING:
			return objective.score_matching(user_answer, correct, points)
		if qtype == QuestionType.SENTENCE_REORDERING:
			return objective.score_reordering(user_answer, correct, points)
		if qtype == QuestionType.WORD_ORDER:
			return objective.score_reordering(user_answer, body.get("correct_order", correct), points)
		if qtype == QuestionType.READING_COMPREHENSION and question.reading_item is not None:
			return objective.score_reading_item(question.reading_item, user_answer, points)
		if qtype == QuestionType.FILL_IN_THE_BLANKS:
			return await self.subjective.fill_in_blank(_text(user_answer), _text(correct), body.get("explanation"), points)
		if qtype == QuestionType.SHORT_ANSWER:
			return await self.subjective.short_answer(_text(user_answer), _text(correct), body.get("explanation"), points)
		if qtype == QuestionType.ESSAY:
			return await self.subjective.essay(
				_text(user_answer),
				_text(body.get("sample_answer", correct)),
				body.get("grading_criteria"),
				body.get("min_words"),
				body.get("max_words"),
				points,
			)
		if qtype == QuestionType.ERROR_CORRECTION:
			return await self.subjective.error_correction(
				_text(user_answer), _text(body.get("correct_sentence", correct)), body.get("error_positions"), points,
			)
		if qtype == QuestionType.SENTENCE_TRANSFORMATION:
			return await self.subjective.sentence_transformation(
				_text(user_answer), _text(correct), body.get("acceptable_variations"), body.get("instruction"), points,
			)
		if qtype == QuestionType.VERB_CONJUGATION:
			return await self.subjective.verb_conjugation(
				_text(user_answer), _text(correct), body.get("verb"), body.get("tense"), body.get("subject"), points,
			)
		return objective.score_unknown(qtype)

	def _record(self, user_id: str, task_id: str, attempt_number: int, question: Question, user_answer: Any, result: ScoreResult) -> ScoreRecord:
		return ScoreRecord(
			user_id=user_id,
			task_id=task_id,
			question_id=question.id,
			question_number=question.number,
			user_answer=user_answer,
			correct_answer=question.answer,
			is_correct=result.is_correct,
			points_earned=result.points_earned,
			max_points=question.points,
			evaluation_data=dict(result.evaluation_data),
			attempt_number=attempt_number,
		)

	async def score_single(
		self,
		*,
		user_id: str,
		task_id: str,
		question_id: str,
		user_answer: Any,
		attempt_number: int = 1,
	) -> ScoredAnswer:
		question = self.questions.fetch_question(question_id, task_id)
		if question is None:
			raise QuestionNotFound(question_id, task_id)
		result = await self.score_question(question, user_answer)
		try:
			self.scores.insert_score_result(self._record(user_id, task_id, attempt_number, question, user_answer, result))
		except Exception as exc:
			logger.error("Failed to save score for question %s: %s", question_id, exc)
			if isinstance(exc, PersistenceError):
				raise
			raise PersistenceError(str(exc)) from exc
		logger.info("Score saved: %s/%s", result.points_earned, question.points)
		return ScoredAnswer(question.id, question.number, question.points, result)

	async def score_batch(
		self,
		*,
		user_id: str,
		task_id: str,
		answers: Sequence[SubmittedAnswer],
		attempt_number: int = 1,
	) -> BatchOutcome:
		logger.info("Batch scoring %d answers for task %s", len(answers), task_id)
		task_questions = self.questions.fetch_questions_for_task(task_id)
		by_id: Dict[str, Question] = {q.id: q for q in task_questions}
		scored: List[ScoredAnswer] = []
		skipped: List[str] = []
		for answer in answers:
			question: Optional[Question] = by_id.get(answer.question_id)
			if question is None:
				logger.warning("Question %s not found in task %s; skipping", answer.question_id, task_id)
				skipped.append(answer.question_id)
				continue
			result = await self.score_question(question, answer.user_answer)
			scored.append(ScoredAnswer(question.id, question.number, question.points, result))
			try:
				self.scores.insert_score_result(
					self._record(user_id, task_id, attempt_number, question, answer.user_answer, result)
				)
			except Exception as exc:
				# Earlier rows stay persisted; keep scoring the rest
				logger.error("Failed to save score for question %s: %s", question.id, exc)
		summary = BatchSummary.compute(scored, task_questions)
		logger.info(
			"Batch scoring complete: %s/%s (%.2f%%)",
			summary.total_points_earned, summary.total_points_possible, summary.percentage_score,
		)
		return BatchOutcome(scored, summary, skipped)
