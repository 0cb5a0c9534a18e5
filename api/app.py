"""
api/app.py — FastAPI 앱 인스턴스 + 엔진 조립 + Ticker/정리 스레드 수명 관리
"""

import logging
import os
import threading
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import (
    CATALOG_PATH,
    CLEANUP_INTERVAL_SECONDS,
    FINISHED_SESSION_TTL,
    RESULTS_PATH,
    TICK_INTERVAL_SECONDS,
    TIME_WARNING_SECONDS,
)
from api.routes import router
from api.sample_tests import SAMPLE_TESTS
from timed_assessment.errors import (
    AssessmentError,
    CollaboratorError,
    ResultNotAvailable,
    SessionAlreadyActive,
    SessionNotActive,
    SessionNotFound,
    TestNotFound,
)
from timed_assessment.services.catalog import InMemoryTestCatalog, JsonTestCatalog
from timed_assessment.services.result_store import JsonResultStore
from timed_assessment.services.session_engine import SessionEngine
from timed_assessment.services.ticker import Ticker

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = [
    ((SessionNotFound, TestNotFound), 404),
    ((SessionAlreadyActive, SessionNotActive, ResultNotAvailable), 409),
    ((CollaboratorError,), 503),
]


def _status_for(exc: AssessmentError) -> int:
    for types, status in _STATUS_BY_ERROR:
        if isinstance(exc, types):
            return status
    return 422


def build_engine() -> SessionEngine:
    """설정값으로 카탈로그, 결과 저장소, Ticker 를 조립한다."""
    if os.path.exists(CATALOG_PATH):
        catalog = JsonTestCatalog(CATALOG_PATH)
    else:
        logger.warning(f"카탈로그 파일 없음 ({CATALOG_PATH}), 샘플 시험 사용")
        catalog = InMemoryTestCatalog(SAMPLE_TESTS)

    return SessionEngine(
        catalog=catalog,
        result_store=JsonResultStore(RESULTS_PATH),
        ticker=Ticker(interval=TICK_INTERVAL_SECONDS),
        time_warning_seconds=TIME_WARNING_SECONDS,
    )


def create_app(engine: Optional[SessionEngine] = None, start_ticker: bool = True) -> FastAPI:
    engine = engine or build_engine()

    # 종료 세션 주기적 정리 + 보류 결과 재저장 (5분마다)
    stop_cleanup = threading.Event()

    def _cleanup_loop():
        while not stop_cleanup.wait(CLEANUP_INTERVAL_SECONDS):
            engine.retry_pending_results()
            removed = engine.cleanup_finished(FINISHED_SESSION_TTL)
            if removed:
                logger.info(f"종료 세션 {removed}개 정리")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cleanup_thread = None
        if start_ticker:
            engine.ticker.start()
            cleanup_thread = threading.Thread(target=_cleanup_loop, daemon=True)
            cleanup_thread.start()
        yield
        if start_ticker:
            stop_cleanup.set()
            engine.ticker.stop()

    app = FastAPI(title="Timed Assessment Engine", lifespan=lifespan)
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AssessmentError)
    async def assessment_error_handler(request: Request, exc: AssessmentError):
        status = _status_for(exc)
        if status >= 500:
            logger.error(f"{request.url.path}: {exc.code} — {exc.message}")
        return JSONResponse(
            status_code=status,
            content={"detail": exc.message, "code": exc.code},
        )

    app.include_router(router)
    return app
