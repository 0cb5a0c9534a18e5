"""
services/session_repository.py — 사용자별 활성 세션 슬롯 (인메모리)

사용자당 ACTIVE 세션은 최대 하나.
register / release 는 하나의 락 안에서 check-and-set 으로 처리되어
같은 사용자의 동시 시작 요청 중 하나만 성공한다.
"""

import logging
import threading
from typing import Dict, Optional

from timed_assessment.errors import SessionAlreadyActive
from timed_assessment.models.session_state import Session

logger = logging.getLogger(__name__)


class SessionRepository:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active_by_user: Dict[str, Session] = {}
        self._user_by_session: Dict[str, str] = {}

    def get_active(self, user_id: str) -> Optional[Session]:
        """사용자의 활성 세션. 없으면 None."""
        with self._lock:
            return self._active_by_user.get(user_id)

    def register(self, session: Session) -> None:
        """
        세션을 사용자의 활성 슬롯에 등록한다.

        Raises:
            SessionAlreadyActive: 같은 사용자에게 다른 활성 세션이 있는 경우.
        """
        with self._lock:
            existing = self._active_by_user.get(session.user_id)
            if existing is not None and existing.session_id != session.session_id:
                raise SessionAlreadyActive(
                    f"사용자 {session.user_id}에게 진행 중인 세션이 있습니다: {existing.session_id}"
                )
            self._active_by_user[session.user_id] = session
            self._user_by_session[session.session_id] = session.user_id
        logger.debug(f"세션 등록: user={session.user_id} session={session.session_id}")

    def release(self, session_id: str) -> bool:
        """
        세션의 활성 슬롯을 해제한다. 이미 해제되었거나 모르는 세션이면 False.
        """
        with self._lock:
            user_id = self._user_by_session.pop(session_id, None)
            if user_id is None:
                return False
            current = self._active_by_user.get(user_id)
            if current is not None and current.session_id == session_id:
                del self._active_by_user[user_id]
        logger.debug(f"세션 해제: user={user_id} session={session_id}")
        return True

    def active_count(self) -> int:
        with self._lock:
            return len(self._active_by_user)
