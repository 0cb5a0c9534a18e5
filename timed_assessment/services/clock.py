"""
services/clock.py

시험 시간 측정용 시계와 남은 시간 표시 유틸.

  - SystemClock : time.monotonic() 기반. 운영 환경 기본값.
  - ManualClock : 테스트에서 시간을 직접 전진시키는 시계.
"""

import threading
import time

TIME_WARNING_SECONDS = 300  # 5분 이하이면 경고 표시


class SystemClock:
    """단조 증가 시계."""

    def now(self) -> float:
        return time.monotonic()


class ManualClock:
    """advance() 호출로만 흐르는 시계."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("시간은 거꾸로 흐를 수 없습니다.")
        with self._lock:
            self._now += seconds
            return self._now


def format_remaining(seconds: int) -> str:
    """
    남은 시간을 표시용 문자열로 변환한다.

    1시간 이상이면 HH:MM:SS, 미만이면 MM:SS.
    """
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def is_time_warning(seconds: int, threshold: int = TIME_WARNING_SECONDS) -> bool:
    return seconds <= threshold
