"""
errors.py

시험 세션 엔진의 예외 계층.

  - PreconditionError : 호출자의 요청이 잘못된 경우. 자동 재시도하지 않는다.
  - CollaboratorError : 외부 협력자(문제 카탈로그, 결과 저장소) 장애.

라우터는 이 예외들을 HTTPException으로 변환한다.
"""


class AssessmentError(Exception):
    """엔진이 발생시키는 모든 예외의 기반 클래스."""

    code = "assessment_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


# ── 전제조건 위반 ────────────────────────────────────────────────────────────

class PreconditionError(AssessmentError):
    code = "precondition_failed"


class SessionAlreadyActive(PreconditionError):
    code = "session_already_active"


class SessionNotActive(PreconditionError):
    code = "session_not_active"


class SessionNotFound(PreconditionError):
    code = "session_not_found"


class UnknownQuestion(PreconditionError):
    code = "unknown_question"


class UnknownAnswer(PreconditionError):
    code = "unknown_answer"


class IndexOutOfRange(PreconditionError):
    code = "index_out_of_range"


class TestNotFound(PreconditionError):
    code = "test_not_found"
    __test__ = False  # pytest 수집 대상 아님


class InvalidTestDefinition(PreconditionError):
    code = "invalid_test_definition"
    __test__ = False


class ResultNotAvailable(PreconditionError):
    code = "result_not_available"


# ── 협력자 장애 ──────────────────────────────────────────────────────────────

class CollaboratorError(AssessmentError):
    code = "collaborator_failure"


class CatalogUnavailable(CollaboratorError):
    code = "catalog_unavailable"


class ResultStoreError(CollaboratorError):
    code = "result_store_error"
