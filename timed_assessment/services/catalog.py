"""
services/catalog.py

문제 카탈로그 (외부 협력자) 구현.

Public API:
  - fetch_test_definition(test_id) -> TestDefinition | None
  - list_tests(active_only=True)   -> List[TestDefinition]

구현:
  - InMemoryTestCatalog : 메모리 상의 시험 정의 목록.
  - JsonTestCatalog     : JSON 파일에서 시험 정의를 읽는다.
                          파일을 읽을 수 없으면 CatalogUnavailable.
                          검증 실패 항목은 건너뛰고 경고만 남긴다.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from pydantic import ValidationError

from timed_assessment.errors import CatalogUnavailable
from timed_assessment.models.test_model import TestDefinition

logger = logging.getLogger(__name__)


class TestCatalog(Protocol):
    def fetch_test_definition(self, test_id: str) -> Optional[TestDefinition]: ...

    def list_tests(self, active_only: bool = True) -> List[TestDefinition]: ...


class InMemoryTestCatalog:
    def __init__(self, tests: Iterable[TestDefinition] = ()) -> None:
        self._tests: Dict[str, TestDefinition] = {t.id: t for t in tests}

    def add(self, test: TestDefinition) -> None:
        self._tests[test.id] = test

    def fetch_test_definition(self, test_id: str) -> Optional[TestDefinition]:
        return self._tests.get(test_id)

    def list_tests(self, active_only: bool = True) -> List[TestDefinition]:
        return [t for t in self._tests.values() if t.is_active or not active_only]


def parse_test_definitions(payload: object) -> List[TestDefinition]:
    """
    JSON 페이로드를 TestDefinition 리스트로 변환한다.

    허용 형식: [{...}, ...] 또는 {"tests": [{...}, ...]}
    """
    if isinstance(payload, dict):
        payload = payload.get("tests", [])
    if not isinstance(payload, list):
        raise CatalogUnavailable("카탈로그 형식이 올바르지 않습니다 (list 또는 {'tests': list}).")

    tests: List[TestDefinition] = []
    for idx, item in enumerate(payload):
        try:
            tests.append(TestDefinition.model_validate(item))
        except (ValidationError, TypeError) as e:
            logger.warning(f"item[{idx}]: TestDefinition 생성 실패 — {e}")
    return tests


class JsonTestCatalog:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._tests: Optional[Dict[str, TestDefinition]] = None

    def _load(self) -> Dict[str, TestDefinition]:
        with self._lock:
            if self._tests is None:
                try:
                    raw = self.path.read_text(encoding="utf-8")
                    payload = json.loads(raw)
                except (OSError, json.JSONDecodeError) as e:
                    logger.error(f"카탈로그 로드 실패: {self.path} — {e}")
                    raise CatalogUnavailable(f"카탈로그를 읽을 수 없습니다: {self.path}") from e
                tests = parse_test_definitions(payload)
                self._tests = {t.id: t for t in tests}
                logger.info(f"카탈로그 로드: {len(self._tests)}개 시험 ({self.path})")
            return self._tests

    def fetch_test_definition(self, test_id: str) -> Optional[TestDefinition]:
        return self._load().get(test_id)

    def list_tests(self, active_only: bool = True) -> List[TestDefinition]:
        return [t for t in self._load().values() if t.is_active or not active_only]
