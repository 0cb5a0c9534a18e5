"""
services/ticker.py

활성 세션에 주기적으로 tick 을 전달하는 구독 관리자.

백그라운드 데몬 스레드 하나가 interval 마다 fire() 를 호출한다.
테스트에서는 start() 없이 fire() 를 직접 호출해 시간을 흉내낸다.
구독자 목록은 락 안에서 복사하고, 콜백은 락 밖에서 호출한다.
"""

import logging
import threading
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class Ticker:
    def __init__(self, interval: float = 1.0) -> None:
        self.interval = interval
        self._lock = threading.Lock()
        self._subscribers: Dict[str, TickCallback] = {}
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ── 구독 ────────────────────────────────────────────────────────────────

    def subscribe(self, key: str, callback: TickCallback) -> None:
        with self._lock:
            self._subscribers[key] = callback

    def unsubscribe(self, key: str) -> None:
        with self._lock:
            self._subscribers.pop(key, None)

    def is_subscribed(self, key: str) -> bool:
        with self._lock:
            return key in self._subscribers

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    # ── 전달 ────────────────────────────────────────────────────────────────

    def fire(self) -> int:
        """
        현재 구독자 전원에게 tick 을 한 번 전달한다.

        한 세션의 콜백 실패는 로그만 남기고 나머지 세션에는 계속 전달한다.

        Returns:
            tick 을 전달한 구독자 수.
        """
        with self._lock:
            callbacks = list(self._subscribers.items())

        for key, callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception(f"tick 처리 실패: {key}")
        return len(callbacks)

    # ── 백그라운드 루프 ──────────────────────────────────────────────────────

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="session-ticker", daemon=True)
        self._thread.start()
        logger.info(f"Ticker 시작 (간격 {self.interval}초)")

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Ticker 중지")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.fire()
