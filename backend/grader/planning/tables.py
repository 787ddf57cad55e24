from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple


LEVELS: Tuple[str, ...] = ("A1", "A2", "B1", "B2", "C1", "C2")

MATCHING = "match_the_following"


def _frozen(table):
	return MappingProxyType({key: MappingProxyType(dict(value)) if isinstance(value, dict) else value for key, value in table.items()})


# Points per question. Matching is priced per pair, see MATCHING_PAIRS_BY_LEVEL.
QUESTION_TYPE_POINTS: Mapping[str, int] = _frozen({
	"multiple_choice": 1,
	"true_false": 1,
	"short_answer": 3,
	MATCHING: 4,
	"sentence_reordering": 2,
	"fill_in_the_blanks": 1,
	"essay": 5,
})

MATCHING_PAIRS_BY_LEVEL: Mapping[str, int] = _frozen({
	"A1": 3,
	"A2": 4,
	"B1": 4,
	"B2": 5,
	"C1": 5,
	"C2": 6,
})

# Share of the estimated question count per type. Rows need not sum to 1; 0 forbids the type at that level.
LEVEL_WEIGHTAGE: Mapping[str, Mapping[str, float]] = _frozen({
	"A1": {
		"multiple_choice": 0.45,
		"true_false": 0.35,
		"fill_in_the_blanks": 0.15,
		MATCHING: 0.05,
		"sentence_reordering": 0.0,
		"short_answer": 0.0,
		"essay": 0.0,
	},
	"A2": {
		"multiple_choice": 0.35,
		"true_false": 0.25,
		"fill_in_the_blanks": 0.2,
		MATCHING: 0.15,
		"sentence_reordering": 0.03,
		"short_answer": 0.02,
		"essay": 0.0,
	},
	"B1": {
		"multiple_choice": 0.3,
		"true_false": 0.2,
		"fill_in_the_blanks": 0.2,
		MATCHING: 0.15,
		"sentence_reordering": 0.1,
		"short_answer": 0.05,
		"essay": 0.02,
	},
	"B2": {
		"multiple_choice": 0.25,
		"true_false": 0.15,
		"fill_in_the_blanks": 0.2,
		MATCHING: 0.15,
		"sentence_reordering": 0.15,
		"short_answer": 0.1,
		"essay": 0.05,
	},
	"C1": {
		"multiple_choice": 0.2,
		"true_false": 0.1,
		"fill_in_the_blanks": 0.25,
		MATCHING: 0.15,
		"sentence_reordering": 0.2,
		"short_answer": 0.1,
		"essay": 0.05,
	},
	"C2": {
		"multiple_choice": 0.15,
		"true_false": 0.05,
		"fill_in_the_blanks": 0.3,
		MATCHING: 0.2,
		"sentence_reordering": 0.2,
		"short_answer": 0.1,
		"essay": 0.1,
	},
})


@dataclass(frozen=True)
class PlanningTables:
	"""Read-only cost and weight tables consumed by the quiz planner."""

	points: Mapping[str, int] = field(default_factory=lambda: QUESTION_TYPE_POINTS)
	matching_pairs: Mapping[str, int] = field(default_factory=lambda: MATCHING_PAIRS_BY_LEVEL)
	weights: Mapping[str, Mapping[str, float]] = field(default_factory=lambda: LEVEL_WEIGHTAGE)
	min_questions: int = 8
	max_questions: int = 20
	points_per_question_estimate: float = 1.5

	@property
	def types(self) -> Tuple[str, ...]:
		return tuple(self.points)

	@property
	def levels(self) -> Tuple[str, ...]:
		return tuple(self.weights)

	def cost(self, question_type: str, level: str) -> int:
		if question_type == MATCHING:
			return self.matching_pairs[level]
		return self.points[question_type]

	def weight(self, question_type: str, level: str) -> float:
		return self.weights[level].get(question_type, 0.0)


DEFAULT_TABLES = PlanningTables()
