"""
models/session_state.py

시험 진행 상태를 담는 OMR 카드 모델.
Pydantic BaseModel 기반 — 직렬화/역직렬화 및 타입 안전성 확보.
상태 전이 규칙은 services/session_engine.py 가 담당한다.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from timed_assessment.models.test_model import QuestionView


class SessionStatus(str, Enum):
    """세션 상태. ACTIVE 외에는 모두 종료 상태."""

    ACTIVE = "active"
    SUBMITTED = "submitted"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.ACTIVE


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Session(BaseModel):
    """
    사용자의 시험 세션 전체 상태를 표현하는 모델.

    Attributes:
        session_id:             세션 식별자 (UUID hex).
        user_id / test_id:      응시자와 시험.
        status:                 현재 상태.
        started_at:             시험 시작 시각 (UTC).
        completed_at:           종료 시각. ACTIVE 동안에는 None.
        remaining_seconds:      남은 시간 (초). ACTIVE 동안 감소만 한다.
        answers:                답안지. {question.id: 선택한 answer.id}
        current_question_index: 현재 보고 있는 문제 인덱스 (0-based).
    """

    session_id: str = Field(
        default_factory=lambda: uuid.uuid4().hex,
        description="세션 식별자"
    )
    user_id: str = Field(..., min_length=1, description="응시자 식별자")
    test_id: str = Field(..., min_length=1, description="시험 식별자")
    status: SessionStatus = Field(
        default=SessionStatus.ACTIVE,
        description="세션 상태"
    )
    started_at: datetime = Field(
        default_factory=_utc_now,
        description="시험 시작 시각 (UTC)"
    )
    completed_at: Optional[datetime] = Field(
        default=None,
        description="종료 시각 (UTC)"
    )
    remaining_seconds: int = Field(
        ...,
        ge=0,
        description="남은 시간 (초)"
    )
    answers: Dict[str, str] = Field(
        default_factory=dict,
        description="사용자 답안지. key: question.id, value: answer.id"
    )
    current_question_index: int = Field(
        default=0,
        ge=0,
        description="현재 풀고 있는 문제 인덱스 (0-based)"
    )


class SessionSnapshot(BaseModel):
    """
    외부에 공개되는 세션 읽기 전용 뷰.
    응시 중에는 정답 플래그를 절대 포함하지 않는다.
    """

    session_id: str
    user_id: str
    test_id: str
    status: SessionStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    remaining_seconds: int
    remaining_display: str
    is_time_warning: bool
    current_question_index: int
    question_count: int
    answered_question_ids: List[str]
    answered_count: int
    current_question: Optional[QuestionView] = None
