"""
services/result_store.py

결과 저장소 (외부 협력자) 구현.

Public API:
  - save_result(result)              : session_id 키로 멱등 저장 (추가 전용)
  - get(session_id)                  -> Result | None
  - load_result_history(user_id)     -> List[Result]  (최근 종료 순)
  - load_results_for_test(test_id)   -> List[Result]  (최근 종료 순)

같은 session_id 로 다시 저장하면 기존 결과를 유지한다.
저장 실패는 ResultStoreError 로 알린다.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from pydantic import ValidationError

from timed_assessment.errors import ResultStoreError
from timed_assessment.models.result_model import Result

logger = logging.getLogger(__name__)


class ResultStore(Protocol):
    def save_result(self, result: Result) -> None: ...

    def get(self, session_id: str) -> Optional[Result]: ...

    def load_result_history(self, user_id: str) -> List[Result]: ...

    def load_results_for_test(self, test_id: str) -> List[Result]: ...


def _newest_first(results: List[Result]) -> List[Result]:
    return sorted(results, key=lambda r: r.completed_at, reverse=True)


class InMemoryResultStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: Dict[str, Result] = {}

    def save_result(self, result: Result) -> None:
        with self._lock:
            existing = self._results.get(result.session_id)
            if existing is not None:
                if existing != result:
                    logger.warning(f"결과 재저장 무시 (내용 불일치): {result.session_id}")
                return
            self._results[result.session_id] = result

    def get(self, session_id: str) -> Optional[Result]:
        with self._lock:
            return self._results.get(session_id)

    def load_result_history(self, user_id: str) -> List[Result]:
        with self._lock:
            found = [r for r in self._results.values() if r.user_id == user_id]
        return _newest_first(found)

    def load_results_for_test(self, test_id: str) -> List[Result]:
        with self._lock:
            found = [r for r in self._results.values() if r.test_id == test_id]
        return _newest_first(found)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)


class JsonResultStore(InMemoryResultStore):
    """
    JSON 파일 하나에 {session_id: result} 형태로 저장한다.
    쓰기는 임시 파일 작성 후 os.replace 로 교체한다.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        self._results = self._read_file()

    def _read_file(self) -> Dict[str, Result]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ResultStoreError(f"결과 파일을 읽을 수 없습니다: {self.path}") from e
        if not isinstance(payload, dict):
            raise ResultStoreError(
                f"결과 파일 형식 오류 (객체 아님: {type(payload).__name__}): {self.path}"
            )

        results: Dict[str, Result] = {}
        for session_id, item in payload.items():
            try:
                results[session_id] = Result.model_validate(item)
            except ValidationError as e:
                logger.warning(f"결과 {session_id}: 로드 실패 — {e}")
        logger.info(f"결과 {len(results)}건 로드 ({self.path})")
        return results

    def _write_file(self, results: Dict[str, Result]) -> None:
        payload = {sid: r.model_dump(mode="json") for sid, r in results.items()}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise ResultStoreError(f"결과 저장 실패: {self.path}") from e

    def save_result(self, result: Result) -> None:
        with self._lock:
            existing = self._results.get(result.session_id)
            if existing is not None:
                if existing != result:
                    logger.warning(f"결과 재저장 무시 (내용 불일치): {result.session_id}")
                return
            updated = dict(self._results)
            updated[result.session_id] = result
            self._write_file(updated)
            self._results = updated
        logger.info(f"결과 저장: {result.session_id} ({self.path})")
