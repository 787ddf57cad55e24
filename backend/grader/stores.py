from __future__ import annotations
import logging
from typing import List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import PersistenceError, StoreUnavailable
from .models import HolisticScore, QuestionScore, TaskQuestion
from .scoring.records import HolisticRecord, Question, ScoreRecord

logger = logging.getLogger(__name__)


class QuestionStore(Protocol):
	def fetch_questions_for_task(self, task_id: str) -> List[Question]: ...

	def fetch_question(self, question_id: str, task_id: str) -> Optional[Question]: ...


class ScoreStore(Protocol):
	def insert_score_result(self, record: ScoreRecord) -> None: ...

	def find_existing_attempt(self, user_id: str, task_id: str, attempt_number: int) -> bool: ...

	def insert_holistic_score(self, record: HolisticRecord) -> int: ...


def _to_question(row: TaskQuestion) -> Optional[Question]:
	try:
		return Question.from_record(
			id=row.id,
			task_id=row.task_id,
			question_number=row.question_number,
			question_type=row.question_type,
			points=row.points,
			body=row.body if isinstance(row.body, dict) else {},
			answer=row.answer,
		)
	except (TypeError, ValueError) as exc:
		logger.error("Skipping malformed question row %s: %s", row.id, exc)
		return None


class SqlQuestionStore:
	def __init__(self, db: Session) -> None:
		self.db = db

	def fetch_questions_for_task(self, task_id: str) -> List[Question]:
		try:
			rows = self.db.execute(
				select(TaskQuestion).where(TaskQuestion.task_id == task_id).order_by(TaskQuestion.question_number)
			).scalars().all()
		except SQLAlchemyError as exc:
			raise StoreUnavailable(f"Failed to fetch questions for task {task_id}") from exc
		return [q for q in (_to_question(row) for row in rows) if q is not None]

	def fetch_question(self, question_id: str, task_id: str) -> Optional[Question]:
		try:
			row = self.db.execute(
				select(TaskQuestion).where(TaskQuestion.id == question_id, TaskQuestion.task_id == task_id)
			).scalar_one_or_none()
		except SQLAlchemyError as exc:
			raise StoreUnavailable(f"Failed to fetch question {question_id}") from exc
		return _to_question(row) if row is not None else None


class SqlScoreStore:
	def __init__(self, db: Session) -> None:
		self.db = db

	def _commit(self, row) -> None:
		try:
			self.db.add(row)
			self.db.commit()
		except SQLAlchemyError as exc:
			self.db.rollback()
			raise PersistenceError(str(exc)) from exc

	def insert_score_result(self, record: ScoreRecord) -> None:
		self._commit(QuestionScore(
			user_id=record.user_id,
			task_id=record.task_id,
			question_id=record.question_id,
			question_number=record.question_number,
			user_answer=record.user_answer,
			correct_answer=record.correct_answer,
			is_correct=record.is_correct,
			points_earned=record.points_earned,
			max_points=record.max_points,
			evaluation_data=record.evaluation_data,
			attempt_number=record.attempt_number,
		))

	def find_existing_attempt(self, user_id: str, task_id: str, attempt_number: int) -> bool:
		try:
			row = self.db.execute(
				select(HolisticScore.id).where(
					HolisticScore.user_id == user_id,
					HolisticScore.task_id == task_id,
					HolisticScore.attempt_number == attempt_number,
				).limit(1)
			).first()
		except SQLAlchemyError as exc:
			raise StoreUnavailable("Failed to check existing attempts") from exc
		return row is not None

	def insert_holistic_score(self, record: HolisticRecord) -> int:
		row = HolisticScore(
			user_id=record.user_id,
			task_id=record.task_id,
			attempt_number=record.attempt_number,
			skill=record.skill,
			response_text=record.response_text,
			word_count=record.word_count,
			dimension_scores=record.dimension_scores,
			total_score=record.total_score,
			max_score=record.max_score,
			percentage_score=record.percentage_score,
			evaluation_data=record.evaluation_data,
			language=record.language,
			course_name=record.course_name,
		)
		self._commit(row)
		return int(row.id)
