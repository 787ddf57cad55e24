import pytest

from grader.errors import PlanningError
from grader.planning.allocator import QuizPlanner
from grader.planning.tables import DEFAULT_TABLES, LEVELS, PlanningTables


@pytest.fixture
def planner():
	return QuizPlanner()


def test_a1_multiple_choice_true_false_hits_ten(planner):
	plan = planner.plan(10, ["multiple_choice", "true_false"], "A1")
	assert sum(q.points for q in plan.questions) == 10
	assert plan.validation == {"points_match": True, "computed_total": 10, "target_total": 10}
	assert [q.question_number for q in plan.questions] == list(range(1, len(plan.questions) + 1))


@pytest.mark.parametrize("level", LEVELS)
@pytest.mark.parametrize("target", [8, 9, 13, 20, 37, 60])
@pytest.mark.parametrize(
	"types",
	[
		["multiple_choice"],
		["multiple_choice", "match_the_following"],
		["short_answer", "multiple_choice", "sentence_reordering"],
		["essay", "match_the_following", "fill_in_the_blanks", "multiple_choice", "true_false", "short_answer"],
	],
)
def test_plan_is_exact_whenever_multiple_choice_is_allowed(planner, level, target, types):
	plan = planner.plan(target, types, level)
	assert plan.computed_total == target
	assert sum(plan.point_distribution.values()) == target


def test_phase_one_follows_weights_cheapest_first(planner):
	# estimate 8 at A1: TF ceil(2.8)=3, MC ceil(3.6)=4, then the first cheapest type fills the rest
	plan = planner.plan(10, ["true_false", "multiple_choice"], "A1")
	assert [q.type for q in plan.questions] == ["true_false"] * 3 + ["multiple_choice"] * 4 + ["true_false"] * 3
	assert plan.point_distribution["true_false_total"] == 6
	assert plan.point_distribution["multiple_choice_total"] == 4


def test_matching_points_equal_pairs_for_level(planner):
	plan = planner.plan(20, ["match_the_following", "multiple_choice"], "C2")
	matching = [q for q in plan.questions if q.type == "match_the_following"]
	assert matching
	assert all(q.points == 6 and q.pairs_count == 6 for q in matching)
	assert all("pairs_count" not in q.to_dict() for q in plan.questions if q.type == "multiple_choice")


def test_forbidden_type_at_level_is_not_used_to_fill(planner):
	plan = planner.plan(12, ["multiple_choice", "short_answer"], "A1")
	assert {q.type for q in plan.questions} == {"multiple_choice"}


def test_leftover_is_folded_into_last_question(planner):
	# Short answers alone cannot make 10 from cost 3
	plan = planner.plan(10, ["short_answer"], "B2")
	assert plan.computed_total == 10
	last = plan.questions[-1]
	assert last.points == 4
	assert last.rationale.startswith("Adjusted short_answer question with 4 points")


def test_no_question_to_adjust_is_a_planning_error(planner):
	with pytest.raises(PlanningError) as exc:
		planner.plan(2, ["short_answer"], "B2")
	assert exc.value.validation["points_match"] is False


def test_type_forbidden_everywhere_cannot_plan(planner):
	with pytest.raises(PlanningError):
		planner.plan(10, ["essay"], "A1")


@pytest.mark.parametrize(
	"target, types, level",
	[
		(0, ["multiple_choice"], "A1"),
		(10, [], "A1"),
		(10, ["multiple_choice", "crossword"], "A1"),
		(10, ["multiple_choice"], "D1"),
	],
)
def test_invalid_input_is_rejected(planner, target, types, level):
	with pytest.raises(PlanningError):
		planner.plan(target, types, level)


def test_duplicate_types_are_ignored(planner):
	once = planner.plan(15, ["multiple_choice", "true_false"], "B1")
	twice = planner.plan(15, ["multiple_choice", "true_false", "multiple_choice"], "B1")
	assert [q.to_dict() for q in once.questions] == [q.to_dict() for q in twice.questions]


def test_distribution_lists_every_type(planner):
	plan = planner.plan(8, ["multiple_choice"], "A2")
	assert set(plan.point_distribution) == {f"{t}_total" for t in DEFAULT_TABLES.types}


def test_tables_are_read_only():
	with pytest.raises(TypeError):
		DEFAULT_TABLES.weights["A1"]["essay"] = 1.0
	with pytest.raises(TypeError):
		DEFAULT_TABLES.points["essay"] = 1


def test_estimate_is_clamped(planner):
	assert planner.estimate_question_count(1) == 8
	assert planner.estimate_question_count(24) == 16
	assert planner.estimate_question_count(300) == 20


def test_injected_tables_change_costs():
	planner = QuizPlanner(PlanningTables(points={"multiple_choice": 2, "match_the_following": 4}, weights={"A1": {"multiple_choice": 1.0}}))
	plan = planner.plan(10, ["multiple_choice"], "A1")
	assert [q.points for q in plan.questions] == [2] * 5
