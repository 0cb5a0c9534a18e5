from datetime import datetime, timezone

from tests.factories import make_test
from timed_assessment.models.result_model import Result
from timed_assessment.models.session_state import SessionStatus
from timed_assessment.services.progress_service import (
    compute_test_stats,
    leaderboard,
    summarize_progress,
)


def _result(
    session_id: str,
    test_id: str,
    percentage: int,
    passed: bool,
    user_id: str = "u1",
    seconds: int = 30,
    minute: int = 0,
) -> Result:
    now = datetime(2024, 1, 15, 10, minute, tzinfo=timezone.utc)
    return Result(
        session_id=session_id,
        test_id=test_id,
        user_id=user_id,
        status=SessionStatus.SUBMITTED,
        score=percentage,
        max_score=100,
        percentage=percentage,
        is_passed=passed,
        time_spent_seconds=seconds,
        started_at=now,
        completed_at=now,
    )


def test_summary_counts_distinct_tests() -> None:
    tests = [
        make_test("a", points=(1,), pass_score_percent=50),
        make_test("b", points=(1,)),
        make_test("c", points=(1,)),
        make_test("retired", points=(1,), is_active=False),
    ]
    results = [
        _result("s1", "a", 40, False),
        _result("s2", "a", 90, True),
        _result("s3", "b", 65, False),
        _result("s4", "c", 100, True, user_id="someone-else"),
    ]
    summary = summarize_progress("u1", results, tests)

    assert summary.total_tests == 3
    assert summary.completed_tests == 2
    assert summary.passed_tests == 1
    assert summary.average_score == 65.0
    assert summary.total_points == 50


def test_summary_without_results() -> None:
    summary = summarize_progress("u1", [], [make_test()])
    assert summary.completed_tests == 0
    assert summary.average_score == 0.0
    assert summary.total_points == 0
    assert summary.total_tests == 1


# ── 순위표 ───────────────────────────────────────────────────────────────────

def test_leaderboard_keeps_best_attempt_per_user() -> None:
    results = [
        _result("s1", "t1", 60, False, user_id="alice", minute=1),
        _result("s2", "t1", 90, True, user_id="alice", minute=2),
        _result("s3", "t1", 90, True, user_id="bob", seconds=20, minute=3),
        _result("s4", "t1", 70, True, user_id="carol", minute=4),
    ]
    board = leaderboard(results, limit=10)

    assert [(e.rank, e.user_id) for e in board] == [(1, "bob"), (2, "alice"), (3, "carol")]
    assert board[1].session_id == "s2"
    assert board[0].completion_time == 20
    assert board[0].completed_at == results[2].completed_at


def test_leaderboard_limit() -> None:
    results = [_result(f"s{i}", "t1", i * 10, False, user_id=f"u{i}") for i in range(5)]
    assert [e.user_id for e in leaderboard(results, limit=2)] == ["u4", "u3"]
    assert leaderboard(results, limit=0) == []
    assert leaderboard([], limit=5) == []


# ── 시험 통계 ────────────────────────────────────────────────────────────────

def test_stats_over_all_attempts() -> None:
    results = [
        _result("s1", "t1", 95, True, seconds=40),
        _result("s2", "t1", 65, False, seconds=20),
        _result("s3", "t1", 80, True, user_id="u2", seconds=31),
        _result("s4", "other", 10, False),
    ]
    stats = compute_test_stats("t1", results)

    assert stats.total_attempts == 3
    assert stats.pass_rate == 66.7
    assert stats.average_score == 80.0
    assert stats.average_completion_time == 30.3
    assert stats.level_distribution == {"excellent": 1, "needs_improvement": 1, "good": 1}


def test_stats_without_attempts() -> None:
    stats = compute_test_stats("t1", [])
    assert stats.total_attempts == 0
    assert stats.pass_rate == 0.0
    assert stats.level_distribution == {}
