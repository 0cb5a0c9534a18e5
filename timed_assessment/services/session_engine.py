"""
services/session_engine.py

시험 세션 상태 머신.

상태 전이:
    start_session ─▶ ACTIVE ─┬─ submit(forced=False) ─▶ SUBMITTED  (결과 생성)
                             ├─ 남은 시간 0 도달      ─▶ EXPIRED    (결과 생성)
                             └─ cancel               ─▶ CANCELLED  (결과 없음)

동시성:
  - 세션마다 RLock 하나. 답안 기록, 이동, 제출, 취소, tick 은 모두 이 락 안에서 처리.
  - 최초의 종료 전이만 유효하다. 종료와 동시에 Ticker 구독을 해지하므로
    이후 도착하는 tick 과 명시적 호출은 SessionNotActive 로 거부된다.
  - 결과 저장은 락 밖에서 수행하며 session_id 기준 멱등이다.
    저장 실패 시 종료 상태는 되돌리지 않고 결과를 보류 목록에 남긴다.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from typing import Dict, List, Optional, Set

from timed_assessment.errors import (
    IndexOutOfRange,
    InvalidTestDefinition,
    ResultNotAvailable,
    ResultStoreError,
    SessionAlreadyActive,
    SessionNotActive,
    SessionNotFound,
    TestNotFound,
    UnknownAnswer,
    UnknownQuestion,
)
from timed_assessment.models.result_model import QuestionReview, Result
from timed_assessment.models.session_state import Session, SessionSnapshot, SessionStatus
from timed_assessment.models.test_model import QuestionView, TestDefinition
from timed_assessment.services import grading_service
from timed_assessment.services.catalog import TestCatalog
from timed_assessment.services.clock import (
    TIME_WARNING_SECONDS,
    SystemClock,
    format_remaining,
    is_time_warning,
)
from timed_assessment.services.result_store import ResultStore
from timed_assessment.services.session_repository import SessionRepository
from timed_assessment.services.ticker import Ticker

logger = logging.getLogger(__name__)


@dataclass
class _SessionEntry:
    session: Session
    test: TestDefinition
    last_tick_at: float
    lock: threading.RLock = field(default_factory=threading.RLock)
    result: Optional[Result] = None
    finished_at: Optional[float] = None


class SessionEngine:
    def __init__(
        self,
        catalog: TestCatalog,
        result_store: ResultStore,
        repository: Optional[SessionRepository] = None,
        clock=None,
        ticker: Optional[Ticker] = None,
        time_warning_seconds: int = TIME_WARNING_SECONDS,
    ) -> None:
        self.catalog = catalog
        self.result_store = result_store
        self.repository = repository or SessionRepository()
        self.clock = clock or SystemClock()
        self.ticker = ticker or Ticker()
        self.time_warning_seconds = time_warning_seconds

        self._lock = threading.Lock()
        self._entries: Dict[str, _SessionEntry] = {}
        self._pending: Dict[str, Result] = {}
        # 메모리에서 정리된 취소 세션 id. 정리 후에도 ResultNotAvailable 로 응답한다.
        self._cancelled: Set[str] = set()

    # ── 조회 헬퍼 ────────────────────────────────────────────────────────────

    def _get_entry(self, session_id: str) -> _SessionEntry:
        with self._lock:
            entry = self._entries.get(session_id)
        if entry is None:
            raise SessionNotFound(f"세션을 찾을 수 없습니다: {session_id}")
        return entry

    @staticmethod
    def _require_active(entry: _SessionEntry) -> None:
        if entry.session.status.is_terminal:
            raise SessionNotActive(
                f"세션 {entry.session.session_id}은(는) 이미 종료되었습니다 "
                f"({entry.session.status.value})."
            )

    # ── 시작 ────────────────────────────────────────────────────────────────

    def start_session(self, user_id: str, test_id: str) -> Session:
        """
        새 세션을 시작한다.

        Raises:
            SessionAlreadyActive:  사용자에게 진행 중인 세션이 있는 경우.
            TestNotFound:          카탈로그에 없거나 비활성 시험.
            InvalidTestDefinition: 문제가 없거나 제한 시간이 0 이하.
            CatalogUnavailable:    카탈로그 장애. 세션은 등록되지 않는다.
        """
        existing = self.repository.get_active(user_id)
        if existing is not None:
            raise SessionAlreadyActive(
                f"사용자 {user_id}에게 진행 중인 세션이 있습니다: {existing.session_id}"
            )

        test = self.catalog.fetch_test_definition(test_id)
        if test is None or not test.is_active:
            raise TestNotFound(f"시험을 찾을 수 없습니다: {test_id}")
        if not test.questions:
            raise InvalidTestDefinition(f"시험 {test_id}에 문제가 없습니다.")
        if test.time_limit_seconds <= 0:
            raise InvalidTestDefinition(
                f"시험 {test_id}의 제한 시간이 올바르지 않습니다: {test.time_limit_seconds}"
            )

        session = Session(
            user_id=user_id,
            test_id=test_id,
            remaining_seconds=test.time_limit_seconds,
        )
        self.repository.register(session)

        entry = _SessionEntry(session=session, test=test, last_tick_at=self.clock.now())
        with self._lock:
            self._entries[session.session_id] = entry
        self.ticker.subscribe(session.session_id, partial(self.tick, session.session_id))

        logger.info(
            f"세션 시작: session={session.session_id} user={user_id} test={test_id} "
            f"({len(test.questions)}문제, {test.time_limit_seconds}초)"
        )
        return session.model_copy(deep=True)

    # ── 응시 중 조작 ─────────────────────────────────────────────────────────

    def record_answer(self, session_id: str, question_id: str, answer_id: str) -> SessionSnapshot:
        """답안을 기록한다. 같은 문제에 다시 기록하면 덮어쓴다."""
        entry = self._get_entry(session_id)
        with entry.lock:
            self._require_active(entry)
            question = entry.test.find_question(question_id)
            if question is None:
                raise UnknownQuestion(f"시험 {entry.test.id}에 없는 문제입니다: {question_id}")
            if question.find_answer(answer_id) is None:
                raise UnknownAnswer(f"문제 {question_id}에 없는 보기입니다: {answer_id}")
            entry.session.answers[question_id] = answer_id
            return self._snapshot(entry)

    def navigate_to(self, session_id: str, index: int) -> SessionSnapshot:
        entry = self._get_entry(session_id)
        with entry.lock:
            self._require_active(entry)
            total = len(entry.test.questions)
            if not (0 <= index < total):
                raise IndexOutOfRange(f"문제 인덱스 범위 초과: {index} (0 ~ {total - 1})")
            entry.session.current_question_index = index
            return self._snapshot(entry)

    # ── 종료 ────────────────────────────────────────────────────────────────

    def submit(self, session_id: str, forced: bool = False) -> Result:
        """
        세션을 채점하고 종료한다.

        forced=False 이면 SUBMITTED, 시간 만료로 호출되면 EXPIRED.
        두 번째 호출은 SessionNotActive — 세션당 결과는 최대 하나.

        Raises:
            SessionNotActive: 이미 종료된 세션.
            ResultStoreError: 저장 실패. 세션은 이미 종료되었고 결과는 보류 목록에 남는다.
        """
        entry = self._get_entry(session_id)
        with entry.lock:
            self._require_active(entry)
            status = SessionStatus.EXPIRED if forced else SessionStatus.SUBMITTED
            result = self._finish_with_result(entry, status)
        self._persist(result)
        return result

    def cancel(self, session_id: str) -> SessionSnapshot:
        """채점 없이 세션을 버린다."""
        entry = self._get_entry(session_id)
        with entry.lock:
            self._require_active(entry)
            self._finish(entry, SessionStatus.CANCELLED)
            logger.info(f"세션 취소: session={session_id}")
            return self._snapshot(entry)

    def _finish(self, entry: _SessionEntry, status: SessionStatus) -> None:
        """종료 전이 공통 처리. entry.lock 을 잡은 상태에서만 호출한다."""
        session = entry.session
        session.status = status
        session.completed_at = datetime.now(timezone.utc)
        entry.finished_at = self.clock.now()
        self.ticker.unsubscribe(session.session_id)
        self.repository.release(session.session_id)

    def _finish_with_result(self, entry: _SessionEntry, status: SessionStatus) -> Result:
        session = entry.session
        answers = dict(session.answers)
        outcome = grading_service.grade(entry.test, answers)
        self._finish(entry, status)

        result = Result(
            session_id=session.session_id,
            test_id=session.test_id,
            user_id=session.user_id,
            status=status,
            score=outcome.score,
            max_score=outcome.max_score,
            percentage=outcome.percentage,
            is_passed=outcome.is_passed,
            time_spent_seconds=entry.test.time_limit_seconds - session.remaining_seconds,
            answers_snapshot=answers,
            started_at=session.started_at,
            completed_at=session.completed_at,
        )
        entry.result = result
        logger.info(
            f"세션 종료({status.value}): session={session.session_id} "
            f"score={result.score}/{result.max_score} ({result.percentage}%) "
            f"passed={result.is_passed}"
        )
        return result

    def _persist(self, result: Result) -> None:
        try:
            self.result_store.save_result(result)
        except ResultStoreError as e:
            with self._lock:
                self._pending[result.session_id] = result
            logger.error(f"결과 저장 실패, 보류 목록에 추가: {result.session_id} — {e}")
            raise
        with self._lock:
            self._pending.pop(result.session_id, None)

    def retry_pending_results(self) -> int:
        """
        저장에 실패한 결과를 다시 저장한다. 저장소가 session_id 기준 멱등이므로
        몇 번을 재시도해도 결과는 하나만 남는다.

        Returns:
            이번에 저장에 성공한 결과 수.
        """
        with self._lock:
            pending = list(self._pending.values())

        saved = 0
        for result in pending:
            try:
                self._persist(result)
            except ResultStoreError:
                continue
            saved += 1
        if pending:
            logger.info(f"보류 결과 재저장: {saved}/{len(pending)}건 성공")
        return saved

    @property
    def pending_result_ids(self) -> List[str]:
        with self._lock:
            return list(self._pending)

    # ── 시간 ────────────────────────────────────────────────────────────────

    def tick(self, session_id: str) -> None:
        """
        경과 시간만큼 남은 시간을 줄인다. 0 에 도달하면 강제 제출(EXPIRED).

        경과 시간은 정수 초 단위로 소비하고 나머지는 다음 tick 으로 이월한다.
        종료된 세션으로 온 tick 은 무시한다.
        """
        with self._lock:
            entry = self._entries.get(session_id)
        if entry is None:
            self.ticker.unsubscribe(session_id)
            return

        result: Optional[Result] = None
        with entry.lock:
            if entry.session.status.is_terminal:
                self.ticker.unsubscribe(session_id)
                return
            elapsed = int(self.clock.now() - entry.last_tick_at)
            if elapsed <= 0:
                return
            entry.last_tick_at += elapsed
            session = entry.session
            session.remaining_seconds = max(0, session.remaining_seconds - elapsed)
            if session.remaining_seconds == 0:
                logger.info(f"시험 시간 종료: session={session_id}")
                result = self._finish_with_result(entry, SessionStatus.EXPIRED)

        if result is not None:
            try:
                self._persist(result)
            except ResultStoreError:
                logger.warning(f"만료 결과는 재시도 대기 중: session={session_id}")

    # ── 읽기 ────────────────────────────────────────────────────────────────

    def _snapshot(self, entry: _SessionEntry) -> SessionSnapshot:
        session = entry.session
        questions = entry.test.questions
        answered = [q.id for q in questions if q.id in session.answers]
        current = questions[session.current_question_index]
        return SessionSnapshot(
            session_id=session.session_id,
            user_id=session.user_id,
            test_id=session.test_id,
            status=session.status,
            started_at=session.started_at,
            completed_at=session.completed_at,
            remaining_seconds=session.remaining_seconds,
            remaining_display=format_remaining(session.remaining_seconds),
            is_time_warning=is_time_warning(session.remaining_seconds, self.time_warning_seconds),
            current_question_index=session.current_question_index,
            question_count=len(questions),
            answered_question_ids=answered,
            answered_count=len(answered),
            current_question=QuestionView.from_question(current),
        )

    def get_session_snapshot(self, session_id: str) -> SessionSnapshot:
        entry = self._get_entry(session_id)
        with entry.lock:
            return self._snapshot(entry)

    def get_active_session(self, user_id: str) -> Optional[SessionSnapshot]:
        """사용자의 진행 중인 세션 스냅샷. 없으면 None (세션 재개용)."""
        session = self.repository.get_active(user_id)
        if session is None:
            return None
        with self._lock:
            entry = self._entries.get(session.session_id)
        if entry is None:
            return None
        with entry.lock:
            if entry.session.status.is_terminal:
                return None
            return self._snapshot(entry)

    def get_result(self, session_id: str) -> Result:
        """
        종료된 세션의 결과. 진행 중이거나 취소된 세션이면 ResultNotAvailable.
        메모리에 없는 세션은 결과 저장소에서 찾는다.
        """
        with self._lock:
            entry = self._entries.get(session_id)
            cancelled = session_id in self._cancelled
        if cancelled:
            raise ResultNotAvailable(f"세션 {session_id}의 결과가 없습니다 (cancelled).")
        if entry is None:
            stored = self.result_store.get(session_id)
            if stored is None:
                raise SessionNotFound(f"세션을 찾을 수 없습니다: {session_id}")
            return stored

        with entry.lock:
            if entry.result is None:
                raise ResultNotAvailable(
                    f"세션 {session_id}의 결과가 없습니다 ({entry.session.status.value})."
                )
            return entry.result

    def get_review(self, session_id: str) -> List[QuestionReview]:
        """종료된 세션의 문제별 채점 내역 (정답 포함)."""
        result = self.get_result(session_id)
        with self._lock:
            entry = self._entries.get(session_id)
        test = entry.test if entry is not None else self.catalog.fetch_test_definition(result.test_id)
        if test is None:
            raise TestNotFound(f"시험을 찾을 수 없습니다: {result.test_id}")
        return grading_service.build_review(test, result.answers_snapshot)

    # ── 정리 ────────────────────────────────────────────────────────────────

    def cleanup_finished(self, max_age_seconds: float) -> int:
        """
        종료 후 max_age_seconds 가 지난 세션을 메모리에서 제거한다.
        저장 보류 중인 결과가 있는 세션은 남겨둔다. 취소 세션은 id 만 남긴다.
        제거된 수 반환.
        """
        now = self.clock.now()
        with self._lock:
            stale = [
                sid for sid, e in self._entries.items()
                if e.finished_at is not None
                and now - e.finished_at > max_age_seconds
                and sid not in self._pending
            ]
            for sid in stale:
                if self._entries[sid].session.status is SessionStatus.CANCELLED:
                    self._cancelled.add(sid)
                del self._entries[sid]
        return len(stale)
