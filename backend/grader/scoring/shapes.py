"""
Shape classification for historical reading-comprehension records.

Reading questions were authored over several years in formats that share field
names, so a record is recognized by which fields it carries *and* by the type of
the elements inside its ``options`` array. The variants are tested in the order
of :data:`SHAPE_PRIORITY`; the first predicate that holds wins.

Ordering rules:

- ``scenario_letter_choice`` precedes ``simple_choice``: both carry
  ``scenario_text`` + ``options``; the element type decides.
- ``structured_choice`` precedes ``lettered_options``: a record with structured
  options and ``correct_answer_letter`` also satisfies the looser
  ``question_text`` + ``options`` + ``correct_answer`` predicate whenever it
  carries a stray ``correct_answer``.
- ``true_false`` precedes ``opinion_letter``: neither is a subset of the other,
  so the historical order is kept.

A record that matches nothing is reported as ``unknown`` and must be routed to
manual review by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Tuple

from .normalize import as_text


class ShapeVariant(str, Enum):
	TRUE_FALSE = "true_false"
	SCENARIO_LETTER_CHOICE = "scenario_letter_choice"
	SIMPLE_CHOICE = "simple_choice"
	LETTER_FIELD_CHOICE = "letter_field_choice"
	STRUCTURED_CHOICE = "structured_choice"
	LETTERED_OPTIONS = "lettered_options"
	OPINION_LETTER = "opinion_letter"
	HEADLINE_MATCHING = "headline_matching"
	UNKNOWN = "unknown"


TRUE_FALSE_ANSWERS = frozenset({"richtig", "falsch", "true", "false"})
TRUE_FALSE_LABELS: Tuple[str, ...] = ("Richtig", "Falsch")
LETTER_FIELDS: Tuple[str, ...] = ("option_a", "option_b", "option_c")

_MISSING = object()


def _first_option(record: Mapping[str, Any]) -> Any:
	options = record.get("options")
	if isinstance(options, list) and options:
		return options[0]
	return _MISSING


def _has(record: Mapping[str, Any], *keys: str) -> bool:
	return all(key in record for key in keys)


def _is_true_false(record: Mapping[str, Any]) -> bool:
	answer = record.get("correct_answer")
	return "statement_text" in record and isinstance(answer, str) and answer.lower() in TRUE_FALSE_ANSWERS


def _is_scenario_letter_choice(record: Mapping[str, Any]) -> bool:
	first = _first_option(record)
	return (
		_has(record, "scenario_text", "correct_answer")
		and isinstance(first, dict)
		and "option_letter" in first
	)


def _is_simple_choice(record: Mapping[str, Any]) -> bool:
	return _has(record, "scenario_text", "correct_answer") and isinstance(_first_option(record), str)


def _is_letter_field_choice(record: Mapping[str, Any]) -> bool:
	return (
		_has(record, "question_text", "option_a", "option_b")
		and record.get("correct_answer") in ("a", "b", "c")
	)


def _is_structured_choice(record: Mapping[str, Any]) -> bool:
	first = _first_option(record)
	return (
		_has(record, "question_text", "correct_answer_letter")
		and isinstance(first, dict)
		and "text" in first
	)


def _is_lettered_options(record: Mapping[str, Any]) -> bool:
	return (
		"question_text" in record
		and isinstance(record.get("options"), list)
		and isinstance(record.get("correct_answer"), str)
	)


def _is_opinion_letter(record: Mapping[str, Any]) -> bool:
	return "statement_text" in record and isinstance(record.get("correct_opinion_letter"), str)


def _is_headline_matching(record: Mapping[str, Any]) -> bool:
	return _has(record, "text_number", "text_content", "correct_headline")


# Specific before generic. Reordering this tuple changes how overlapping records resolve.
SHAPE_PRIORITY: Tuple[Tuple[ShapeVariant, Callable[[Mapping[str, Any]], bool]], ...] = (
	(ShapeVariant.TRUE_FALSE, _is_true_false),
	(ShapeVariant.SCENARIO_LETTER_CHOICE, _is_scenario_letter_choice),
	(ShapeVariant.SIMPLE_CHOICE, _is_simple_choice),
	(ShapeVariant.LETTER_FIELD_CHOICE, _is_letter_field_choice),
	(ShapeVariant.STRUCTURED_CHOICE, _is_structured_choice),
	(ShapeVariant.LETTERED_OPTIONS, _is_lettered_options),
	(ShapeVariant.OPINION_LETTER, _is_opinion_letter),
	(ShapeVariant.HEADLINE_MATCHING, _is_headline_matching),
)


@dataclass(frozen=True)
class ReadingItem:
	"""A classified reading record in normalized form."""

	variant: ShapeVariant
	number: Optional[int]
	statement: str
	correct_answer: str
	explanation: str
	options: Tuple[str, ...] = ()
	is_example: bool = False
	record: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}), repr=False, compare=False)

	@property
	def is_known(self) -> bool:
		return self.variant is not ShapeVariant.UNKNOWN

	def is_correct(self, user_answer: Any) -> bool:
		if user_answer is None or not self.is_known:
			return False
		answer = user_answer if isinstance(user_answer, str) else as_text(user_answer)
		if self.variant is ShapeVariant.TRUE_FALSE:
			return answer.lower() == self.correct_answer
		if self.variant is ShapeVariant.STRUCTURED_CHOICE:
			return answer == self.record.get("correct_answer_letter") or answer == self.correct_answer
		return answer == self.correct_answer

	def explanation_for(self, user_answer: Any = None) -> str:
		if self.variant not in (ShapeVariant.SCENARIO_LETTER_CHOICE, ShapeVariant.STRUCTURED_CHOICE):
			return self.explanation
		options = [o for o in self.record.get("options") or [] if isinstance(o, dict)]
		if user_answer is not None:
			for option in options:
				if user_answer in (option.get("option_letter"), option.get("text")) and option.get("explanation"):
					return str(option["explanation"])
		correct_letter = self.record.get(
			"correct_answer" if self.variant is ShapeVariant.SCENARIO_LETTER_CHOICE else "correct_answer_letter"
		)
		for option in options:
			if option.get("option_letter") == correct_letter and option.get("explanation"):
				return str(option["explanation"])
		return self.explanation


def matching_variants(record: Mapping[str, Any]) -> List[ShapeVariant]:
	"""Every variant whose predicate holds, in priority order. Used to audit overlaps."""
	if not isinstance(record, Mapping):
		return []
	return [variant for variant, predicate in SHAPE_PRIORITY if predicate(record)]


def _number(value: Any) -> Optional[int]:
	try:
		return int(value)
	except (TypeError, ValueError):
		return None


def _option_texts(options: Any) -> Tuple[str, ...]:
	texts = []
	for option in options or []:
		if isinstance(option, dict):
			texts.append(str(option.get("text", "")))
		else:
			texts.append(str(option))
	return tuple(texts)


def _normalize(variant: ShapeVariant, record: Mapping[str, Any]) -> ReadingItem:
	explanation = str(record.get("explanation") or "")
	number = _number(record.get("question_number"))
	frozen = MappingProxyType(dict(record))
	common = dict(explanation=explanation, is_example=bool(record.get("is_example")), record=frozen)

	if variant is ShapeVariant.TRUE_FALSE:
		return ReadingItem(
			variant, number, str(record["statement_text"]), str(record["correct_answer"]).lower(),
			options=TRUE_FALSE_LABELS, **common,
		)
	if variant in (ShapeVariant.SCENARIO_LETTER_CHOICE, ShapeVariant.SIMPLE_CHOICE):
		return ReadingItem(
			variant, number, str(record["scenario_text"]), str(record["correct_answer"]),
			options=_option_texts(record.get("options")), **common,
		)
	if variant is ShapeVariant.LETTER_FIELD_CHOICE:
		options = tuple(str(record[key]) for key in LETTER_FIELDS if key in record)
		return ReadingItem(variant, number, str(record["question_text"]), str(record["correct_answer"]), options=options, **common)
	if variant is ShapeVariant.STRUCTURED_CHOICE:
		letter = record["correct_answer_letter"]
		correct = next(
			(o.get("text") for o in record["options"] if isinstance(o, dict) and o.get("option_letter") == letter),
			None,
		)
		return ReadingItem(
			variant, number, str(record["question_text"]), str(correct if correct else letter),
			options=_option_texts(record["options"]), **common,
		)
	if variant is ShapeVariant.LETTERED_OPTIONS:
		return ReadingItem(
			variant, number, str(record["question_text"]), record["correct_answer"],
			options=_option_texts(record["options"]), **common,
		)
	if variant is ShapeVariant.OPINION_LETTER:
		return ReadingItem(variant, number, str(record["statement_text"]), record["correct_opinion_letter"], **common)
	if variant is ShapeVariant.HEADLINE_MATCHING:
		return ReadingItem(
			variant, _number(record["text_number"]), str(record["text_content"]), str(record["correct_headline"]),
			**common,
		)
	raise ValueError(f"No normalizer for {variant}")


def classify(record: Any) -> ReadingItem:
	if isinstance(record, Mapping):
		for variant, predicate in SHAPE_PRIORITY:
			if predicate(record):
				return _normalize(variant, record)
		number = _number(record.get("question_number", record.get("text_number")))
		return ReadingItem(
			ShapeVariant.UNKNOWN, number, "", "", str(record.get("explanation") or ""),
			is_example=bool(record.get("is_example")), record=MappingProxyType(dict(record)),
		)
	return ReadingItem(ShapeVariant.UNKNOWN, None, "", "", "")
