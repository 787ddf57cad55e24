from __future__ import annotations
from typing import Any, Dict, Optional


class GradingError(Exception):
	"""Base class for typed rejections raised by the scoring and planning core."""


class QuestionNotFound(GradingError):
	def __init__(self, question_id: str, task_id: str) -> None:
		super().__init__(f"Question {question_id} not found for task {task_id}")
		self.question_id = question_id
		self.task_id = task_id


class StoreUnavailable(GradingError):
	"""The question store could not be read."""


class PersistenceError(GradingError):
	"""A computed score could not be written."""


class DuplicateAttempt(GradingError):
	def __init__(self, user_id: str, task_id: str, attempt_number: int) -> None:
		super().__init__("This attempt has already been evaluated")
		self.user_id = user_id
		self.task_id = task_id
		self.attempt_number = attempt_number


class JudgeError(GradingError):
	"""Raised by an AI judge when it cannot produce a well-formed verdict."""


class JudgeUnavailable(GradingError):
	"""Holistic evaluation could not be obtained from the judge."""


class PlanningError(GradingError):
	def __init__(self, message: str, validation: Optional[Dict[str, Any]] = None) -> None:
		super().__init__(message)
		self.validation = validation
