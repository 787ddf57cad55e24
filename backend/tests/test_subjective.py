import asyncio

from conftest import FakeJudge, verdict
from grader.errors import JudgeError
from grader.scoring.subjective import SubjectiveEvaluator, clamp_points


def test_clamp_points_bounds_and_garbage():
	assert clamp_points(7, 5) == 5
	assert clamp_points(-2, 5) == 0
	assert clamp_points("3.5", 5) == 3.5
	assert clamp_points("lots", 5) == 0
	assert clamp_points(float("nan"), 5) == 0


def test_fill_in_blank_uses_judge_boolean(config):
	judge = FakeJudge([verdict(True, 0.3)])
	result = asyncio.run(SubjectiveEvaluator(judge, config).fill_in_blank("gehe", "gehe", None, 2))
	assert result.is_correct
	assert result.points_earned == 2
	assert result.evaluation_data["ai_evaluated"] is True
	assert judge.requests[0].kind == "fill_in_the_blanks"


def test_fill_in_blank_falls_back_to_exact_match(config):
	judge = FakeJudge([JudgeError("boom")])
	result = asyncio.run(SubjectiveEvaluator(judge, config).fill_in_blank("  Gehe ", "gehe", None, 1))
	assert result.is_correct
	assert result.points_earned == 1
	assert result.evaluation_data["fallback"] == "exact_match"
	assert result.evaluation_data["ai_error"] == "boom"


def test_judge_timeout_triggers_fallback(config):
	judge = FakeJudge([verdict(True, 1)], delay=2)
	result = asyncio.run(SubjectiveEvaluator(judge, config).fill_in_blank("x", "y", None, 1))
	assert result.is_correct is False
	assert result.evaluation_data["fallback"] == "exact_match"
	assert "timed out" in result.evaluation_data["ai_error"]


def test_short_answer_points_are_clamped(config):
	judge = FakeJudge([verdict(True, 12)])
	result = asyncio.run(SubjectiveEvaluator(judge, config).short_answer("Berlin", "Berlin", None, 3))
	assert result.points_earned == 3


def test_short_answer_failure_needs_manual_review(config):
	judge = FakeJudge([RuntimeError("network")])
	result = asyncio.run(SubjectiveEvaluator(judge, config).short_answer("Berlin", "Berlin", None, 3))
	assert result.is_correct is False
	assert result.points_earned == 0
	assert result.evaluation_data["fallback"] == "failed"
	assert result.requires_manual_review


def test_short_essay_is_rejected_without_calling_the_judge(config):
	judge = FakeJudge([verdict(True, 10)])
	result = asyncio.run(SubjectiveEvaluator(judge, config).essay("too short", "sample", None, 5, None, 10))
	assert judge.calls == 0
	assert result.is_correct is False
	assert result.points_earned == 0
	assert result.evaluation_data["feedback"] == "Answer is too short. Minimum 5 words required, got 2 words."


def test_essay_correctness_is_decided_locally(config):
	text = "one two three four five six seven"
	judge = FakeJudge([verdict(True, 5), verdict(False, 6)])
	evaluator = SubjectiveEvaluator(judge, config)
	below = asyncio.run(evaluator.essay(text, "sample", ["clarity"], None, None, 10))
	at = asyncio.run(evaluator.essay(text, "sample", ["clarity"], None, None, 10))
	assert below.is_correct is False
	assert below.points_earned == 5
	assert at.is_correct is True
	assert at.evaluation_data["word_count"] == 7
	assert judge.requests[0].min_words == config.essay_min_words
	assert judge.requests[0].grading_criteria == ["clarity"]


def test_essay_failure_is_failed_fallback(config):
	judge = FakeJudge([JudgeError("bad json")])
	result = asyncio.run(SubjectiveEvaluator(judge, config).essay("a b c d e f", "s", None, None, None, 10))
	assert result.evaluation_data["fallback"] == "failed"
	assert result.points_earned == 0


def test_error_correction_fallback_flags_manual_review(config):
	judge = FakeJudge([JudgeError("down")])
	result = asyncio.run(SubjectiveEvaluator(judge, config).error_correction("Ich bin müde.", "ich bin müde.", None, 2))
	assert result.is_correct
	assert result.points_earned == 2
	assert result.evaluation_data["fallback"] == "exact_match"
	assert result.requires_manual_review


def test_sentence_transformation_accepted_variation_skips_judge(config):
	judge = FakeJudge()
	result = asyncio.run(SubjectiveEvaluator(judge, config).sentence_transformation(
		" The letter was written by him ", "The letter was written by him.", ["The letter was written by him"], None, 2,
	))
	assert judge.calls == 0
	assert result.points_earned == 2
	assert result.evaluation_data == {"matched": "exact"}


def test_sentence_transformation_judged_when_no_variation_matches(config):
	judge = FakeJudge([verdict(False, 1)])
	result = asyncio.run(SubjectiveEvaluator(judge, config).sentence_transformation(
		"Him wrote the letter", "The letter was written by him.", None, "Use the passive", 2,
	))
	assert result.points_earned == 1
	assert judge.requests[0].context == "Use the passive"


def test_verb_conjugation_all_or_nothing_with_details(config):
	judge = FakeJudge([verdict(True, 0.5)])
	result = asyncio.run(SubjectiveEvaluator(judge, config).verb_conjugation("gehst", "gehst", "gehen", "Präsens", "du", 1))
	assert result.points_earned == 1
	assert judge.requests[0].details == {"verb": "gehen", "tense": "Präsens", "subject": "du"}
