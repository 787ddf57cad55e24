"""
Subjective Evaluator Adapter
============================

Free-text answers (fill-in-the-blank, short answer, essay and the grammar
production types) are judged by the AI judge collaborator. This adapter owns
everything around that call:

- local pre-checks that make the call unnecessary (essay below the minimum
  word count, sentence transformations that match an accepted variation),
- clamping of the judge's points into ``[0, max_points]``,
- local post-rules (the essay pass threshold),
- a deterministic fallback whenever the judge times out, errors or returns
  something malformed.

No method here raises: every path returns a :class:`ScoreResult`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..judge import AIJudge, JudgeRequest, JudgeVerdict
from ..settings import Settings, settings as default_settings
from .normalize import fold, word_count
from .records import ScoreResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JudgeOutcome:
	verdict: Optional[JudgeVerdict] = None
	error: Optional[str] = None

	@property
	def ok(self) -> bool:
		return self.verdict is not None


def clamp_points(points: Any, max_points: float) -> float:
	try:
		value = float(points)
	except (TypeError, ValueError):
		return 0.0
	if value != value:  # NaN
		return 0.0
	return max(0.0, min(value, float(max_points)))


class SubjectiveEvaluator:
	def __init__(self, judge: AIJudge, config: Optional[Settings] = None) -> None:
		self._judge = judge
		self._config = config or default_settings

	async def consult(self, request: JudgeRequest) -> JudgeOutcome:
		"""Call the judge under the configured time budget; never raises."""
		try:
			verdict = await asyncio.wait_for(self._judge.evaluate(request), timeout=self._config.judge_timeout_seconds)
		except asyncio.TimeoutError:
			logger.warning("Judge timed out after %ss for %s", self._config.judge_timeout_seconds, request.kind)
			return JudgeOutcome(error="Judge timed out")
		except Exception as exc:
			logger.warning("Judge failed for %s: %s", request.kind, exc)
			return JudgeOutcome(error=str(exc) or exc.__class__.__name__)
		if not isinstance(verdict, JudgeVerdict):
			return JudgeOutcome(error="Judge returned no verdict")
		return JudgeOutcome(verdict=verdict)

	# -- fallbacks ---------------------------------------------------------

	@staticmethod
	def _exact_match_fallback(user_answer: str, correct_answer: str, max_points: float, error: Optional[str], **extra: Any) -> ScoreResult:
		is_correct = fold(user_answer) == fold(correct_answer)
		return ScoreResult.all_or_nothing(is_correct, max_points, fallback="exact_match", ai_error=error, **extra)

	@staticmethod
	def _failed_fallback(error: Optional[str]) -> ScoreResult:
		return ScoreResult.manual_review(fallback="failed", ai_error=error)

	@staticmethod
	def _judged(verdict: JudgeVerdict, **extra: Any) -> Dict[str, Any]:
		return {"feedback": verdict.feedback, "ai_evaluated": True, **extra}

	# -- question types ----------------------------------------------------

	async def fill_in_blank(self, user_answer: str, correct_answer: str, explanation: Optional[str], max_points: float) -> ScoreResult:
		outcome = await self.consult(JudgeRequest(
			kind="fill_in_the_blanks", correct_answer=correct_answer, user_answer=user_answer,
			context=explanation or None, max_points=max_points,
		))
		if not outcome.ok:
			return self._exact_match_fallback(user_answer, correct_answer, max_points, outcome.error)
		verdict = outcome.verdict
		return ScoreResult.all_or_nothing(verdict.is_correct, max_points, **self._judged(verdict))

	async def short_answer(self, user_answer: str, correct_answer: str, explanation: Optional[str], max_points: float) -> ScoreResult:
		outcome = await self.consult(JudgeRequest(
			kind="short_answer", correct_answer=correct_answer, user_answer=user_answer,
			context=explanation or None, max_points=max_points,
		))
		if not outcome.ok:
			return self._failed_fallback(outcome.error)
		verdict = outcome.verdict
		return ScoreResult(verdict.is_correct, clamp_points(verdict.points_earned, max_points), self._judged(verdict))

	async def essay(
		self,
		user_answer: str,
		sample_answer: str,
		grading_criteria: Optional[List[str]],
		min_words: Optional[int],
		max_words: Optional[int],
		max_points: float,
	) -> ScoreResult:
		min_words = self._config.essay_min_words if min_words is None else min_words
		max_words = self._config.essay_max_words if max_words is None else max_words
		words = word_count(user_answer)
		if words < min_words:
			return ScoreResult(False, 0.0, {
				"feedback": f"Answer is too short. Minimum {min_words} words required, got {words} words.",
				"word_count": words,
				"ai_evaluated": False,
			})
		outcome = await self.consult(JudgeRequest(
			kind="essay", correct_answer=sample_answer, user_answer=user_answer, max_points=max_points,
			word_count=words, min_words=min_words, max_words=max_words,
			grading_criteria=list(grading_criteria or []),
		))
		if not outcome.ok:
			return self._failed_fallback(outcome.error)
		verdict = outcome.verdict
		points = clamp_points(verdict.points_earned, max_points)
		# The judge's own boolean is ignored for essays
		is_correct = points >= self._config.essay_pass_ratio * max_points
		return ScoreResult(is_correct, points, self._judged(
			verdict, word_count=words, key_points_covered=list(verdict.key_points_covered),
		))

	async def error_correction(
		self,
		user_answer: str,
		correct_sentence: str,
		error_positions: Optional[List[Dict[str, Any]]],
		max_points: float,
	) -> ScoreResult:
		outcome = await self.consult(JudgeRequest(
			kind="error_correction", correct_answer=correct_sentence, user_answer=user_answer,
			max_points=max_points, details={"known_errors": list(error_positions or [])},
		))
		if not outcome.ok:
			return self._exact_match_fallback(
				user_answer, correct_sentence, max_points, outcome.error, requires_manual_review=True,
			)
		verdict = outcome.verdict
		return ScoreResult(verdict.is_correct, clamp_points(verdict.points_earned, max_points), self._judged(verdict))

	async def sentence_transformation(
		self,
		user_answer: str,
		correct_answer: str,
		acceptable_variations: Optional[List[str]],
		instruction: Optional[str],
		max_points: float,
	) -> ScoreResult:
		accepted = [correct_answer, *(acceptable_variations or [])]
		if any(fold(user_answer) == fold(candidate) for candidate in accepted):
			return ScoreResult(True, float(max_points), {"matched": "exact"})
		details: Dict[str, Any] = {}
		if acceptable_variations:
			details["acceptable_variations"] = list(acceptable_variations)
		outcome = await self.consult(JudgeRequest(
			kind="sentence_transformation", correct_answer=correct_answer, user_answer=user_answer,
			context=instruction or None, max_points=max_points, details=details,
		))
		if not outcome.ok:
			return self._failed_fallback(outcome.error)
		verdict = outcome.verdict
		return ScoreResult(verdict.is_correct, clamp_points(verdict.points_earned, max_points), self._judged(verdict))

	async def verb_conjugation(
		self,
		user_answer: str,
		correct_answer: str,
		verb: Optional[str],
		tense: Optional[str],
		subject: Optional[str],
		max_points: float,
	) -> ScoreResult:
		details = {k: v for k, v in (("verb", verb), ("tense", tense), ("subject", subject)) if v}
		outcome = await self.consult(JudgeRequest(
			kind="verb_conjugation", correct_answer=correct_answer, user_answer=user_answer,
			max_points=max_points, details=details,
		))
		if not outcome.ok:
			return self._exact_match_fallback(user_answer, correct_answer, max_points, outcome.error)
		verdict = outcome.verdict
		return ScoreResult.all_or_nothing(verdict.is_correct, max_points, **self._judged(verdict))
