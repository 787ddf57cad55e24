from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from ..errors import DuplicateAttempt, JudgeUnavailable, PersistenceError
from ..judge import AIJudge, HolisticJudgeRequest, HolisticVerdict
from ..settings import Settings, settings as default_settings
from ..stores import ScoreStore
from .normalize import word_count
from .records import HolisticRecord
from .subjective import clamp_points

logger = logging.getLogger(__name__)


WRITING_DIMENSIONS: Mapping[str, float] = {
	"task_completion": 5,
	"coherence_cohesion": 5,
	"vocabulary": 5,
	"grammar": 5,
	"format": 5,
}

SPEAKING_DIMENSIONS: Mapping[str, float] = {
	"task_completion": 3,
	"grammar_vocabulary": 4,
	"communication_effectiveness": 3,
}


@dataclass(frozen=True)
class HolisticResult:
	record_id: int
	skill: str
	attempt_number: int
	word_count: int
	scores: Dict[str, float]
	total_score: float
	max_score: float
	percentage_score: float
	evaluation: Dict[str, Any]
	grammar_errors: List[Dict[str, Any]]
	level_assessment: Optional[str]

	def to_dict(self) -> Dict[str, Any]:
		return {
			"id": self.record_id,
			"skill": self.skill,
			"attempt_number": self.attempt_number,
			"word_count": self.word_count,
			"scores": {
				**self.scores,
				"total": self.total_score,
				"max_total": self.max_score,
				"percentage": self.percentage_score,
			},
			"evaluation": self.evaluation,
			"grammar_errors": self.grammar_errors,
			"level_assessment": self.level_assessment,
		}


def merge_weights(defaults: Mapping[str, float], overrides: Optional[Mapping[str, Optional[float]]]) -> Dict[str, float]:
	weights = dict(defaults)
	for name, value in (overrides or {}).items():
		if name in weights and value is not None and value > 0:
			weights[name] = float(value)
	return weights


def tally(verdict: HolisticVerdict, weights: Mapping[str, float]) -> Dict[str, float]:
	"""Dimension scores clamped to the requested maxima; totals are computed here, not by the judge."""
	return {name: clamp_points(verdict.dimensions[name].score, maximum) for name, maximum in weights.items()}


class HolisticScoringService:
	"""Multi-dimension writing and speaking evaluation, one evaluation per attempt."""

	def __init__(self, scores: ScoreStore, judge: AIJudge, config: Optional[Settings] = None) -> None:
		self.scores = scores
		self.judge = judge
		self.config = config or default_settings

	def _ensure_new_attempt(self, user_id: str, task_id: str, attempt_number: int) -> None:
		# Check-then-insert: not atomic against two concurrent submissions of the same attempt
		if self.scores.find_existing_attempt(user_id, task_id, attempt_number):
			raise DuplicateAttempt(user_id, task_id, attempt_number)

	async def _judge(self, request: HolisticJudgeRequest) -> HolisticVerdict:
		try:
			return await asyncio.wait_for(
				self.judge.evaluate_holistic(request), timeout=self.config.judge_timeout_seconds
			)
		except asyncio.TimeoutError as exc:
			raise JudgeUnavailable(f"{request.skill} evaluation timed out") from exc
		except Exception as exc:
			logger.error("%s evaluation failed: %s", request.skill.capitalize(), exc)
			raise JudgeUnavailable(f"{request.skill} evaluation failed: {exc}") from exc

	def _store(
		self,
		*,
		user_id: str,
		task_id: str,
		attempt_number: int,
		skill: str,
		response_text: str,
		words: int,
		verdict: HolisticVerdict,
		weights: Mapping[str, float],
		language: Optional[str],
		course_name: Optional[str],
	) -> HolisticResult:
		scores = tally(verdict, weights)
		total = sum(scores.values())
		maximum = float(sum(weights.values()))
		percentage = round(total / maximum * 100, 2) if maximum > 0 else 0.0
		evaluation: Dict[str, Any] = {
			name: {**verdict.dimensions[name].model_dump(), "score": scores[name], "max_score": weights[name]}
			for name in weights
		}
		evaluation.update(
			overall_feedback=verdict.overall_feedback,
			level_assessment=verdict.level_assessment,
			strengths=list(verdict.strengths),
			areas_for_improvement=list(verdict.areas_for_improvement),
		)
		grammar_errors = [e.model_dump() for e in verdict.grammar_errors]
		record = HolisticRecord(
			user_id=user_id,
			task_id=task_id,
			attempt_number=attempt_number,
			skill=skill,
			response_text=response_text,
			word_count=words,
			dimension_scores=scores,
			total_score=total,
			max_score=maximum,
			percentage_score=percentage,
			evaluation_data={**evaluation, "grammar_errors": grammar_errors},
			language=language,
			course_name=course_name,
		)
		try:
			record_id = self.scores.insert_holistic_score(record)
		except Exception as exc:
			logger.error("Failed to save %s score: %s", skill, exc)
			if isinstance(exc, PersistenceError):
				raise
			raise PersistenceError(str(exc)) from exc
		logger.info("%s evaluation complete: %s/%s (%.1f%%)", skill.capitalize(), total, maximum, percentage)
		return HolisticResult(
			record_id, skill, attempt_number, words, scores, total, maximum, percentage,
			evaluation, grammar_errors, verdict.level_assessment,
		)

	async def score_writing(
		self,
		*,
		user_id: str,
		task_id: str,
		response_text: str,
		attempt_number: int = 1,
		prompt: Optional[str] = None,
		required_points: Optional[List[str]] = None,
		format_type: Optional[str] = None,
		word_count_min: Optional[int] = None,
		word_count_max: Optional[int] = None,
		language: str = "English",
		course_name: Optional[str] = None,
		level: Optional[str] = None,
		scoring_weights: Optional[Mapping[str, Optional[float]]] = None,
	) -> HolisticResult:
		logger.info("Evaluating writing for task %s, user %s, attempt %s", task_id, user_id, attempt_number)
		self._ensure_new_attempt(user_id, task_id, attempt_number)
		weights = merge_weights(WRITING_DIMENSIONS, scoring_weights)
		words = word_count(response_text)
		verdict = await self._judge(HolisticJudgeRequest(
			skill="writing", response_text=response_text, dimensions=weights, language=language, level=level,
			prompt=prompt, required_points=list(required_points or []), format_type=format_type,
			word_count=words, word_count_min=word_count_min, word_count_max=word_count_max,
		))
		return self._store(
			user_id=user_id, task_id=task_id, attempt_number=attempt_number, skill="writing",
			response_text=response_text, words=words, verdict=verdict, weights=weights,
			language=language, course_name=course_name,
		)

	async def score_speaking(
		self,
		*,
		user_id: str,
		task_id: str,
		conversation_history: List[Mapping[str, str]],
		attempt_number: int = 1,
		task_instructions: Optional[str] = None,
		required_points: Optional[List[str]] = None,
		language: str = "English",
		course_name: Optional[str] = None,
		level: Optional[str] = None,
		scoring_weights: Optional[Mapping[str, Optional[float]]] = None,
	) -> HolisticResult:
		logger.info("Evaluating speaking for task %s, user %s, attempt %s", task_id, user_id, attempt_number)
		self._ensure_new_attempt(user_id, task_id, attempt_number)
		weights = merge_weights(SPEAKING_DIMENSIONS, scoring_weights)
		utterances = [turn["content"] for turn in conversation_history if turn.get("role") == "user"]
		transcript = "\n\n".join(utterances)
		verdict = await self._judge(HolisticJudgeRequest(
			skill="speaking", response_text=transcript, dimensions=weights, language=language, level=level,
			prompt=task_instructions, required_points=list(required_points or []), turns=len(utterances),
		))
		return self._store(
			user_id=user_id, task_id=task_id, attempt_number=attempt_number, skill="speaking",
			response_text=transcript, words=word_count(transcript), verdict=verdict, weights=weights,
			language=language, course_name=course_name,
		)
