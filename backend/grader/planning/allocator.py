"""
Quiz plan allocator.

Builds a list of question slots whose points add up to exactly the requested
total. The shape of the plan follows the level's type weights; exactness wins
over the weights whenever the two conflict.

Phase 1 walks the allowed types from cheapest to most expensive and gives each
type up to its weighted share of the estimated question count. Phase 2 fills
what is left with the cheapest type that still fits, and when nothing fits
folds the remainder into the last question.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..errors import PlanningError
from .tables import DEFAULT_TABLES, MATCHING, PlanningTables

logger = logging.getLogger(__name__)


@dataclass
class PlannedQuestion:
	question_number: int
	type: str
	points: int
	rationale: str
	pairs_count: Optional[int] = None

	def to_dict(self) -> Dict[str, Any]:
		data: Dict[str, Any] = {
			"question_number": self.question_number,
			"type": self.type,
			"points": self.points,
			"rationale": self.rationale,
		}
		if self.pairs_count is not None:
			data["pairs_count"] = self.pairs_count
		return data


@dataclass(frozen=True)
class QuestionPlan:
	questions: List[PlannedQuestion]
	point_distribution: Dict[str, int]
	computed_total: int
	target_total: int
	level: str
	weights: Dict[str, float] = field(default_factory=dict)

	@property
	def points_match(self) -> bool:
		return self.computed_total == self.target_total

	@property
	def validation(self) -> Dict[str, Any]:
		return {
			"points_match": self.points_match,
			"computed_total": self.computed_total,
			"target_total": self.target_total,
		}

	def to_dict(self) -> Dict[str, Any]:
		return {
			"total_points": self.computed_total,
			"level": self.level,
			"questions": [q.to_dict() for q in self.questions],
			"point_distribution": dict(self.point_distribution),
			"validation": self.validation,
		}


def _dedupe(items: Sequence[str]) -> List[str]:
	seen = set()
	ordered = []
	for item in items:
		if item not in seen:
			seen.add(item)
			ordered.append(item)
	return ordered


class QuizPlanner:
	def __init__(self, tables: PlanningTables = DEFAULT_TABLES) -> None:
		self.tables = tables

	def estimate_question_count(self, target_points: int) -> int:
		t = self.tables
		return max(t.min_questions, min(t.max_questions, math.ceil(target_points / t.points_per_question_estimate)))

	def _validate(self, target_points: int, allowed_types: Sequence[str], level: str) -> List[str]:
		if isinstance(target_points, bool) or not isinstance(target_points, int) or target_points < 1:
			raise PlanningError(f"total_points must be a positive integer, got {target_points!r}")
		if level not in self.tables.levels:
			raise PlanningError(f"Unknown level {level!r}; expected one of {', '.join(self.tables.levels)}")
		types = _dedupe(allowed_types)
		if not types:
			raise PlanningError("At least one question type is required")
		unknown = [t for t in types if t not in self.tables.points]
		if unknown:
			raise PlanningError(f"Unsupported question types: {', '.join(unknown)}")
		return types

	def _slot(self, number: int, qtype: str, cost: int, rationale: str) -> PlannedQuestion:
		return PlannedQuestion(number, qtype, cost, rationale, pairs_count=cost if qtype == MATCHING else None)

	def plan(self, target_points: int, allowed_types: Sequence[str], level: str) -> QuestionPlan:
		types = self._validate(target_points, allowed_types, level)
		costs = {t: self.tables.cost(t, level) for t in types}
		weights = {t: self.tables.weight(t, level) for t in types}
		estimate = self.estimate_question_count(target_points)
		targets = {t: math.ceil(estimate * weights[t]) for t in types}
		logger.info("Planning %s points over %s at %s (estimate %d questions)", target_points, types, level, estimate)

		questions: List[PlannedQuestion] = []
		remaining = target_points
		# sorted() is stable: equal costs keep the caller's order
		by_cost = sorted(types, key=lambda t: costs[t])

		for qtype in by_cost:
			cost = costs[qtype]
			count = min(targets[qtype], remaining // cost)
			for _ in range(count):
				if qtype == MATCHING:
					rationale = f"Matching question with {cost} pairs (1 point per pair) for {level} level."
				else:
					rationale = f"{qtype} question ({cost} points) - target {targets[qtype]} questions for {level} level."
				questions.append(self._slot(len(questions) + 1, qtype, cost, rationale))
				remaining -= cost
			if remaining == 0:
				break

		fillers = [t for t in by_cost if weights[t] > 0]
		while remaining > 0:
			fitting = [t for t in fillers if costs[t] <= remaining]
			if not fitting:
				if not questions:
					raise PlanningError(
						f"No allowed question type fits {target_points} points at level {level}",
						validation={"points_match": False, "computed_total": 0, "target_total": target_points},
					)
				last = questions[-1]
				last.points += remaining
				if last.type == MATCHING:
					last.pairs_count = last.points
				last.rationale = f"Adjusted {last.type} question with {last.points} points to reach exact target."
				logger.warning("Folded %d leftover points into question #%d", remaining, last.question_number)
				remaining = 0
				break
			qtype = fitting[0]
			cost = costs[qtype]
			if qtype == MATCHING:
				rationale = f"Additional matching question with {cost} pairs (1 point per pair) for {level} level."
			else:
				rationale = f"Additional {qtype} question ({cost} points) to reach exact target."
			questions.append(self._slot(len(questions) + 1, qtype, cost, rationale))
			remaining -= cost

		distribution = {f"{t}_total": 0 for t in self.tables.types}
		for q in questions:
			distribution[f"{q.type}_total"] += q.points
		computed = sum(q.points for q in questions)
		plan = QuestionPlan(questions, distribution, computed, target_points, level, weights)
		if not plan.points_match:
			logger.error("Plan validation failed: %s", plan.validation)
			raise PlanningError("Algorithmic plan validation failed", validation=plan.validation)
		logger.info("Plan generated: %d questions, %d points", len(questions), computed)
		return plan

	def point_guidelines(self, level: str) -> Dict[str, int]:
		return {t: self.tables.cost(t, level) if level in self.tables.levels else self.tables.points[t] for t in self.tables.types}
