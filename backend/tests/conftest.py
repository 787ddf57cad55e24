from __future__ import annotations
import asyncio
from typing import Any, Dict, List, Optional

import pytest

from grader.errors import JudgeError, PersistenceError
from grader.judge import (
	DimensionVerdict,
	HolisticJudgeRequest,
	HolisticVerdict,
	JudgeRequest,
	JudgeVerdict,
)
from grader.scoring.records import HolisticRecord, Question, ScoreRecord
from grader.settings import Settings


class FakeJudge:
	"""Scripted judge: returns queued verdicts in order, raising any queued exception."""

	def __init__(self, verdicts: Optional[List[Any]] = None, holistic: Optional[List[Any]] = None, delay: float = 0.0):
		self.verdicts = list(verdicts or [])
		self.holistic = list(holistic or [])
		self.delay = delay
		self.requests: List[JudgeRequest] = []
		self.holistic_requests: List[HolisticJudgeRequest] = []

	@property
	def calls(self) -> int:
		return len(self.requests) + len(self.holistic_requests)

	async def evaluate(self, request: JudgeRequest) -> JudgeVerdict:
		self.requests.append(request)
		if self.delay:
			await asyncio.sleep(self.delay)
		if not self.verdicts:
			raise JudgeError("no scripted verdict")
		item = self.verdicts.pop(0)
		if isinstance(item, Exception):
			raise item
		return item

	async def evaluate_holistic(self, request: HolisticJudgeRequest) -> HolisticVerdict:
		self.holistic_requests.append(request)
		if self.delay:
			await asyncio.sleep(self.delay)
		if not self.holistic:
			raise JudgeError("no scripted verdict")
		item = self.holistic.pop(0)
		if isinstance(item, Exception):
			raise item
		return item


class InMemoryQuestionStore:
	def __init__(self, questions: Optional[List[Question]] = None):
		self.questions = list(questions or [])

	def fetch_questions_for_task(self, task_id: str) -> List[Question]:
		return [q for q in self.questions if q.task_id == task_id]

	def fetch_question(self, question_id: str, task_id: str) -> Optional[Question]:
		return next((q for q in self.questions if q.id == question_id and q.task_id == task_id), None)


class InMemoryScoreStore:
	def __init__(self, fail: bool = False):
		self.fail = fail
		self.scores: List[ScoreRecord] = []
		self.holistic: List[HolisticRecord] = []

	def insert_score_result(self, record: ScoreRecord) -> None:
		if self.fail:
			raise PersistenceError("database is down")
		self.scores.append(record)

	def find_existing_attempt(self, user_id: str, task_id: str, attempt_number: int) -> bool:
		return any(
			r.user_id == user_id and r.task_id == task_id and r.attempt_number == attempt_number
			for r in self.holistic
		)

	def insert_holistic_score(self, record: HolisticRecord) -> int:
		if self.fail:
			raise PersistenceError("database is down")
		self.holistic.append(record)
		return len(self.holistic)


def make_question(
	qtype: str,
	answer: Any = None,
	*,
	id: str = "q1",
	task_id: str = "task-1",
	number: int = 1,
	points: float = 1,
	body: Optional[Dict[str, Any]] = None,
) -> Question:
	return Question.from_record(
		id=id, task_id=task_id, question_number=number, question_type=qtype,
		points=points, body=body or {}, answer=answer,
	)


def verdict(is_correct: bool, points: float, feedback: str = "ok") -> JudgeVerdict:
	return JudgeVerdict(is_correct=is_correct, points_earned=points, feedback=feedback)


def holistic_verdict(scores: Dict[str, float], level: str = "B1") -> HolisticVerdict:
	return HolisticVerdict(
		dimensions={name: DimensionVerdict(score=score, feedback=f"{name} feedback") for name, score in scores.items()},
		overall_feedback="Solid work",
		level_assessment=level,
	)


@pytest.fixture
def config() -> Settings:
	return Settings(
		GEMINI_API_KEY=None,
		JUDGE_TIMEOUT_SECONDS=0.5,
		ESSAY_MIN_WORDS=5,
		ESSAY_MAX_WORDS=50,
		ESSAY_PASS_RATIO=0.6,
	)


@pytest.fixture
def score_store() -> InMemoryScoreStore:
	return InMemoryScoreStore()
