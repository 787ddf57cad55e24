from __future__ import annotations
import logging
from typing import Any, List

from .normalize import as_text
from .records import ScoreResult
from .shapes import ReadingItem

logger = logging.getLogger(__name__)


def score_multiple_choice(user_answer: Any, correct_answer: Any, max_points: float) -> ScoreResult:
	is_correct = as_text(user_answer).lower() == as_text(correct_answer).lower()
	return ScoreResult.all_or_nothing(is_correct, max_points)


def score_true_false(user_answer: Any, correct_answer: Any, max_points: float) -> ScoreResult:
	return score_multiple_choice(user_answer, correct_answer, max_points)


def _folded_selection(values: Any) -> List[str]:
	if not isinstance(values, (list, tuple)):
		return []
	return sorted(as_text(v).lower() for v in values)


def score_checkbox(user_answer: Any, correct_answer: Any, max_points: float) -> ScoreResult:
	"""All required options and nothing else; order of selection is irrelevant."""
	selected = _folded_selection(user_answer)
	required = _folded_selection(correct_answer)
	return ScoreResult.all_or_nothing(
		selected == required,
		max_points,
		user_selections=len(selected),
		required_selections=len(required),
	)


def score_matching(user_answer: Any, correct_answer: Any, max_points: float) -> ScoreResult:
	"""One share of the points per correctly matched key, rounded to cents."""
	if not isinstance(correct_answer, dict) or not correct_answer:
		logger.warning("Matching question has no answer key; routing to manual review")
		return ScoreResult.manual_review(error="Matching answer key is empty")
	submitted = user_answer if isinstance(user_answer, dict) else {}
	total = len(correct_answer)
	correct = sum(
		1 for key, expected in correct_answer.items()
		if key in submitted and as_text(submitted[key]) == as_text(expected)
	)
	return ScoreResult(
		is_correct=correct == total,
		points_earned=round(correct / total * max_points, 2),
		evaluation_data={"correct_matches": correct, "total_matches": total},
	)


def score_reordering(user_answer: Any, correct_order: Any, max_points: float) -> ScoreResult:
	# Whole sequence or nothing: a single transposition scores zero
	user_order = list(user_answer) if isinstance(user_answer, (list, tuple)) else user_answer
	expected = list(correct_order) if isinstance(correct_order, (list, tuple)) else correct_order
	is_correct = isinstance(user_order, list) and isinstance(expected, list) and user_order == expected
	return ScoreResult.all_or_nothing(is_correct, max_points, user_order=user_order, correct_order=expected)


def score_reading_item(item: ReadingItem, user_answer: Any, max_points: float) -> ScoreResult:
	if not item.is_known:
		logger.warning("Reading question %s has an unrecognized shape", item.number)
		return ScoreResult.manual_review(error="Unrecognized reading question shape", variant=item.variant.value)
	return ScoreResult.all_or_nothing(
		item.is_correct(user_answer),
		max_points,
		variant=item.variant.value,
		correct_answer=item.correct_answer,
		explanation=item.explanation_for(user_answer),
	)


def score_unknown(question_type: str) -> ScoreResult:
	logger.warning("Unknown question type: %s", question_type)
	return ScoreResult.manual_review(error="Unknown question type", question_type=question_type)
