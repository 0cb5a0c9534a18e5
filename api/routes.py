"""
api/routes.py — FastAPI 엔드포인트

엔진 예외 → HTTP 상태 코드 변환은 api/app.py 의 예외 핸들러가 담당한다.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from timed_assessment.models.result_model import (
    LeaderboardEntry,
    ProgressSummary,
    QuestionReview,
    Result,
    TestStats,
)
from timed_assessment.models.session_state import SessionSnapshot
from timed_assessment.models.test_model import TestSummary
from timed_assessment.services.grading_service import performance_level
from timed_assessment.services.progress_service import (
    compute_test_stats,
    leaderboard,
    summarize_progress,
)
from timed_assessment.services.session_engine import SessionEngine

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class StartSessionBody(BaseModel):
    user_id: str = Field(..., min_length=1)
    test_id: str = Field(..., min_length=1)

class RecordAnswerBody(BaseModel):
    question_id: str = Field(..., min_length=1)
    answer_id: str = Field(..., min_length=1)

class NavigateBody(BaseModel):
    index: int = Field(..., description="이동할 문제 인덱스 (0-based)")


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def get_engine(request: Request) -> SessionEngine:
    return request.app.state.engine


def _result_to_dict(result: Result) -> dict:
    d = result.model_dump(mode="json")
    d["performance_level"] = performance_level(result.percentage)
    return d


# ── 시험 목록 ────────────────────────────────────────────────────────────────

@router.get("/api/tests", response_model=list[TestSummary])
async def list_tests(engine: SessionEngine = Depends(get_engine)):
    return [TestSummary.from_definition(t) for t in engine.catalog.list_tests()]


@router.get("/api/tests/{test_id}/results")
async def test_results(test_id: str, engine: SessionEngine = Depends(get_engine)):
    return [_result_to_dict(r) for r in engine.result_store.load_results_for_test(test_id)]


@router.get("/api/tests/{test_id}/leaderboard", response_model=list[LeaderboardEntry])
async def test_leaderboard(
    test_id: str,
    limit: int = Query(10, ge=1, le=100),
    engine: SessionEngine = Depends(get_engine),
):
    return leaderboard(engine.result_store.load_results_for_test(test_id), limit)


@router.get("/api/tests/{test_id}/stats", response_model=TestStats)
async def test_statistics(test_id: str, engine: SessionEngine = Depends(get_engine)):
    return compute_test_stats(test_id, engine.result_store.load_results_for_test(test_id))


# ── 세션 ─────────────────────────────────────────────────────────────────────

@router.post("/api/sessions", status_code=201, response_model=SessionSnapshot)
async def start_session(body: StartSessionBody, engine: SessionEngine = Depends(get_engine)):
    session = engine.start_session(body.user_id, body.test_id)
    return engine.get_session_snapshot(session.session_id)


@router.get("/api/sessions/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str, engine: SessionEngine = Depends(get_engine)):
    return engine.get_session_snapshot(session_id)


@router.post("/api/sessions/{session_id}/answers", response_model=SessionSnapshot)
async def record_answer(
    session_id: str,
    body: RecordAnswerBody,
    engine: SessionEngine = Depends(get_engine),
):
    return engine.record_answer(session_id, body.question_id, body.answer_id)


@router.post("/api/sessions/{session_id}/navigate", response_model=SessionSnapshot)
async def navigate(
    session_id: str,
    body: NavigateBody,
    engine: SessionEngine = Depends(get_engine),
):
    return engine.navigate_to(session_id, body.index)


@router.post("/api/sessions/{session_id}/submit")
async def submit(session_id: str, engine: SessionEngine = Depends(get_engine)):
    result = engine.submit(session_id, forced=False)
    return _result_to_dict(result)


@router.post("/api/sessions/{session_id}/cancel", response_model=SessionSnapshot)
async def cancel(session_id: str, engine: SessionEngine = Depends(get_engine)):
    return engine.cancel(session_id)


@router.get("/api/sessions/{session_id}/result")
async def get_result(session_id: str, engine: SessionEngine = Depends(get_engine)):
    return _result_to_dict(engine.get_result(session_id))


@router.get("/api/sessions/{session_id}/review", response_model=list[QuestionReview])
async def get_review(session_id: str, engine: SessionEngine = Depends(get_engine)):
    return engine.get_review(session_id)


# ── 사용자 이력 ──────────────────────────────────────────────────────────────

@router.get("/api/users/{user_id}/results")
async def user_results(user_id: str, engine: SessionEngine = Depends(get_engine)):
    return [_result_to_dict(r) for r in engine.result_store.load_result_history(user_id)]


@router.get("/api/users/{user_id}/progress", response_model=ProgressSummary)
async def user_progress(user_id: str, engine: SessionEngine = Depends(get_engine)):
    return summarize_progress(
        user_id,
        engine.result_store.load_result_history(user_id),
        engine.catalog.list_tests(active_only=False),
    )


@router.get("/api/users/{user_id}/active-session", response_model=Optional[SessionSnapshot])
async def active_session(user_id: str, engine: SessionEngine = Depends(get_engine)):
    """진행 중인 세션이 없으면 null."""
    return engine.get_active_session(user_id)
