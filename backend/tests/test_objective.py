import itertools

import pytest

from grader.scoring import objective
from grader.scoring.normalize import as_text
from grader.scoring.shapes import classify


@pytest.mark.parametrize(
	"value, text",
	[(True, "true"), (False, "false"), (None, "null"), (2.0, "2"), (2.5, "2.5"), ("B", "B"), (["a", 1], '["a",1]')],
)
def test_text_form(value, text):
	assert as_text(value) == text


def test_multiple_choice_is_case_insensitive_all_or_nothing():
	assert objective.score_multiple_choice("b", "B", 2).points_earned == 2
	wrong = objective.score_multiple_choice("a", "B", 2)
	assert wrong.is_correct is False
	assert wrong.points_earned == 0


def test_true_false_compares_text_forms():
	result = objective.score_true_false(True, "True", 1)
	assert result.is_correct
	assert objective.score_true_false("false", True, 1).points_earned == 0


def test_objective_scoring_is_deterministic():
	first = objective.score_matching({"1": "a", "2": "c"}, {"1": "a", "2": "b"}, 3)
	second = objective.score_matching({"1": "a", "2": "c"}, {"1": "a", "2": "b"}, 3)
	assert first == second


def test_checkbox_order_and_case_do_not_matter():
	result = objective.score_checkbox(["c", "B"], ["b", "c"], 2)
	assert result.is_correct is True
	assert result.points_earned == 2
	assert result.evaluation_data == {"user_selections": 2, "required_selections": 2}


def test_checkbox_every_permutation_scores_the_same():
	correct = ["a", "c", "d"]
	results = {objective.score_checkbox(list(p), correct, 3).points_earned for p in itertools.permutations(["D", "a", "C"])}
	assert results == {3}


def test_checkbox_extra_or_missing_selection_scores_zero():
	assert objective.score_checkbox(["a", "b", "c"], ["a", "b"], 2).points_earned == 0
	assert objective.score_checkbox(["a"], ["a", "b"], 2).points_earned == 0


def test_checkbox_non_list_answer_is_an_empty_selection():
	result = objective.score_checkbox("a", ["a"], 1)
	assert result.is_correct is False
	assert result.evaluation_data["user_selections"] == 0


def test_matching_partial_credit():
	result = objective.score_matching({"1": "a", "2": "c", "3": "c"}, {"1": "a", "2": "b", "3": "c"}, 3)
	assert result.points_earned == 2.0
	assert result.is_correct is False
	assert result.evaluation_data == {"correct_matches": 2, "total_matches": 3}


def test_matching_rounds_to_two_decimals():
	result = objective.score_matching({"1": "a"}, {"1": "a", "2": "b", "3": "c"}, 1)
	assert result.points_earned == 0.33


def test_matching_is_case_sensitive_and_missing_keys_do_not_match():
	result = objective.score_matching({"1": "A"}, {"1": "a", "2": "b"}, 2)
	assert result.points_earned == 0
	assert result.evaluation_data["correct_matches"] == 0


def test_matching_compares_text_forms_of_values():
	assert objective.score_matching({"1": 2}, {"1": "2"}, 1).is_correct


def test_matching_with_empty_key_goes_to_manual_review():
	result = objective.score_matching({"1": "a"}, {}, 2)
	assert result.points_earned == 0
	assert result.requires_manual_review


def test_reordering_exact_sequence_only():
	assert objective.score_reordering([0, 1, 2, 3], [0, 1, 2, 3], 2).points_earned == 2
	swapped = objective.score_reordering([1, 0, 2, 3], [0, 1, 2, 3], 2)
	assert swapped.points_earned == 0
	assert swapped.evaluation_data == {"user_order": [1, 0, 2, 3], "correct_order": [0, 1, 2, 3]}


def test_reordering_non_list_answer_scores_zero():
	assert objective.score_reordering("0123", [0, 1, 2, 3], 2).is_correct is False


def test_reading_item_uses_variant_check():
	item = classify({"question_number": 1, "statement_text": "...", "correct_answer": "Falsch"})
	result = objective.score_reading_item(item, "falsch", 1)
	assert result.is_correct
	assert result.evaluation_data["variant"] == "true_false"


def test_unknown_reading_shape_goes_to_manual_review():
	item = classify({"question_number": 1})
	result = objective.score_reading_item(item, "a", 1)
	assert result.points_earned == 0
	assert result.requires_manual_review


def test_unknown_type_never_raises():
	result = objective.score_unknown("crossword")
	assert result.is_correct is False
	assert result.points_earned == 0
	assert result.evaluation_data["error"] == "Unknown question type"
	assert result.requires_manual_review
