import pytest

from tests.factories import make_test
from timed_assessment.models.test_model import Answer, Question, TestDefinition
from timed_assessment.services import grading_service


def test_only_heavier_question_correct_fails() -> None:
    test = make_test(points=(5, 10), pass_score_percent=70)
    outcome = grading_service.grade(test, {"q2": "right"})
    assert outcome.score == 10
    assert outcome.max_score == 15
    assert outcome.percentage == 67
    assert outcome.is_passed is False


def test_all_correct_passes() -> None:
    test = make_test(points=(5, 10), pass_score_percent=70)
    outcome = grading_service.grade(test, {"q1": "right", "q2": "right"})
    assert (outcome.score, outcome.max_score, outcome.percentage) == (15, 15, 100)
    assert outcome.is_passed is True


def test_unanswered_and_wrong_score_zero() -> None:
    test = make_test(points=(5, 10))
    outcome = grading_service.grade(test, {"q1": "wrong"})
    assert outcome.score == 0
    assert outcome.percentage == 0
    assert outcome.is_passed is False


def test_unknown_answer_id_scores_zero() -> None:
    test = make_test(points=(5,))
    assert grading_service.grade(test, {"q1": "nope"}).score == 0


def test_grade_is_deterministic() -> None:
    test = make_test(points=(3, 4, 7))
    answers = {"q1": "right", "q3": "wrong"}
    first = grading_service.grade(test, answers)
    second = grading_service.grade(test, dict(answers))
    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


@pytest.mark.parametrize(
    "score, max_score, expected",
    [(1, 8, 13), (1, 200, 1), (1, 3, 33), (2, 3, 67), (0, 0, 0), (5, 5, 100)],
)
def test_percentage_rounds_half_up(score: int, max_score: int, expected: int) -> None:
    # 1/8 = 12.5 → 13, 1/200 = 0.5 → 1
    assert grading_service.calculate_percentage(score, max_score) == expected


def test_pass_threshold_is_inclusive() -> None:
    assert grading_service.is_passed(70, 70) is True
    assert grading_service.is_passed(69, 70) is False
    assert grading_service.is_passed(0, 0) is True


def test_multi_correct_question_credits_any_flagged_answer() -> None:
    question = Question(
        id="q1",
        points=4,
        answers=[
            Answer(id="a", is_correct=True),
            Answer(id="b", is_correct=True),
            Answer(id="c", is_correct=False),
        ],
    )
    test = TestDefinition(id="t", title="t", time_limit_seconds=10, questions=[question])
    assert grading_service.grade(test, {"q1": "b"}).score == 4
    assert grading_service.grade(test, {"q1": "c"}).score == 0


def test_build_review_verdicts() -> None:
    test = make_test(points=(5, 10, 2))
    review = grading_service.build_review(test, {"q1": "right", "q2": "wrong"})
    assert [r.verdict for r in review] == ["correct", "incorrect", "unanswered"]
    assert [r.earned_points for r in review] == [5, 0, 0]
    assert review[1].selected_answer_id == "wrong"
    assert review[1].correct_answer_ids == ["right"]
    assert review[2].selected_answer_id is None


def test_performance_level_bands() -> None:
    assert grading_service.performance_level(95) == "excellent"
    assert grading_service.performance_level(80) == "good"
    assert grading_service.performance_level(70) == "satisfactory"
    assert grading_service.performance_level(69) == "needs_improvement"
