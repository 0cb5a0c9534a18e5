"""
services/progress_service.py

결과 이력 집계. 모두 순수 함수.

Public API:
  - summarize_progress(user_id, results, tests) -> ProgressSummary
  - leaderboard(results, limit)                 -> List[LeaderboardEntry]
  - compute_test_stats(test_id, results)        -> TestStats
"""

from typing import Dict, Iterable, List

from timed_assessment.models.result_model import (
    LeaderboardEntry,
    ProgressSummary,
    Result,
    TestStats,
)
from timed_assessment.models.test_model import TestDefinition
from timed_assessment.services.grading_service import performance_level


def _mean(values: List[float]) -> float:
    return round(sum(values) / len(values), 1) if values else 0.0


def summarize_progress(
    user_id: str,
    results: Iterable[Result],
    tests: List[TestDefinition],
) -> ProgressSummary:
    """
    Returns:
        total_tests     : 응시 가능한 시험 수
        completed_tests : 결과가 하나라도 있는 시험 수 (중복 응시는 1회로)
        passed_tests    : 합격 결과가 있는 시험 수
        average_score   : 전체 결과의 평균 백분율 (소수점 첫째 자리)
        total_points    : 합격한 시험들의 포인트 합
    """
    results = [r for r in results if r.user_id == user_id]
    completed = {r.test_id for r in results}
    passed = {r.test_id for r in results if r.is_passed}

    points_by_test = {t.id: t.points for t in tests}

    return ProgressSummary(
        user_id=user_id,
        total_tests=sum(1 for t in tests if t.is_active),
        completed_tests=len(completed),
        passed_tests=len(passed),
        average_score=_mean([r.percentage for r in results]),
        total_points=sum(points_by_test.get(test_id, 0) for test_id in passed),
    )


def _rank_key(r: Result):
    # 점수, 백분율 높은 순 → 소요 시간 짧은 순 → 먼저 끝낸 순
    return (-r.score, -r.percentage, r.time_spent_seconds, r.completed_at)


def leaderboard(results: Iterable[Result], limit: int = 10) -> List[LeaderboardEntry]:
    """
    한 시험의 결과로 순위표를 만든다. 사용자당 최고 기록 하나만 올린다.
    limit 이 0 이하이면 빈 리스트.
    """
    best: Dict[str, Result] = {}
    for r in results:
        current = best.get(r.user_id)
        if current is None or _rank_key(r) < _rank_key(current):
            best[r.user_id] = r

    ranked = sorted(best.values(), key=_rank_key)[:max(0, limit)]
    return [
        LeaderboardEntry(
            rank=idx,
            user_id=r.user_id,
            session_id=r.session_id,
            score=r.score,
            percentage=r.percentage,
            completion_time=r.time_spent_seconds,
            completed_at=r.completed_at,
        )
        for idx, r in enumerate(ranked, start=1)
    ]


def compute_test_stats(test_id: str, results: Iterable[Result]) -> TestStats:
    """시험 하나의 응시 통계. 모든 응시(재응시 포함)를 센다."""
    results = [r for r in results if r.test_id == test_id]
    if not results:
        return TestStats(test_id=test_id)

    distribution: Dict[str, int] = {}
    for r in results:
        level = performance_level(r.percentage)
        distribution[level] = distribution.get(level, 0) + 1

    passed = sum(1 for r in results if r.is_passed)
    return TestStats(
        test_id=test_id,
        total_attempts=len(results),
        pass_rate=round(passed * 100 / len(results), 1),
        average_score=_mean([r.percentage for r in results]),
        average_completion_time=_mean([r.time_spent_seconds for r in results]),
        level_distribution=distribution,
    )
