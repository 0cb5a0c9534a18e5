"""
models/result_model.py

채점 결과 모델. 종료 시점에 한 번 생성되며 이후 변경 불가.
"""

from datetime import datetime
from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field

from timed_assessment.models.session_state import SessionStatus


class GradeOutcome(BaseModel):
    """grade() 의 순수 출력."""

    model_config = {"frozen": True}

    score: int = Field(..., ge=0, description="정답 문제 배점 합")
    max_score: int = Field(..., ge=0, description="전체 배점 합")
    percentage: int = Field(..., ge=0, le=100, description="백분율 (반올림)")
    is_passed: bool = Field(..., description="합격 여부")


class Result(BaseModel):
    """
    종료된 세션의 채점 결과.
    결과 저장소는 session_id 를 키로 멱등 저장한다.
    """

    model_config = {"frozen": True}

    session_id: str
    test_id: str
    user_id: str
    status: SessionStatus = Field(..., description="SUBMITTED 또는 EXPIRED")
    score: int
    max_score: int
    percentage: int
    is_passed: bool
    time_spent_seconds: int = Field(..., ge=0)
    answers_snapshot: Dict[str, str] = Field(default_factory=dict)
    started_at: datetime
    completed_at: datetime


class QuestionReview(BaseModel):
    """종료 후 오답 노트용 문제별 채점 내역."""

    question_id: str
    question_index: int
    points: int
    earned_points: int
    selected_answer_id: Optional[str] = None
    correct_answer_ids: List[str]
    verdict: str = Field(..., description="correct / incorrect / unanswered")


class ProgressSummary(BaseModel):
    """사용자 진행 현황. 문자열 파싱 대신 숫자 필드만 사용한다."""

    user_id: str
    total_tests: int = 0
    completed_tests: int = 0
    passed_tests: int = 0
    average_score: float = 0.0
    total_points: int = 0


class LeaderboardEntry(BaseModel):
    """리더보드 한 줄. 사용자별 최고 기록."""

    rank: int = Field(..., ge=1)
    user_id: str
    session_id: str
    score: int
    percentage: int
    completion_time: int = Field(..., ge=0, description="소요 시간 (초)")
    completed_at: datetime


class TestStats(BaseModel):
    """시험 하나의 응시 통계."""

    __test__: ClassVar[bool] = False

    test_id: str
    total_attempts: int = 0
    pass_rate: float = Field(0.0, description="합격 비율 (%, 소수점 첫째 자리)")
    average_score: float = Field(0.0, description="평균 백분율")
    average_completion_time: float = Field(0.0, description="평균 소요 시간 (초)")
    level_distribution: Dict[str, int] = Field(
        default_factory=dict,
        description="성취 수준별 응시 수 (excellent / good / satisfactory / needs_improvement)",
    )
