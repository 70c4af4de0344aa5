import logging
import threading
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

from fastapi import Request

from src.common.config.settings import get_settings
from src.common.exceptions import AppError

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


class SlidingWindowRateLimiter:
    """클라이언트 IP별 슬라이딩 윈도우 요청 제한 (프로세스 내 메모리)"""

    def __init__(self, name: str, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)

    def hit(self, key: str) -> bool:
        """요청을 기록하고 허용 여부를 반환합니다."""
        now = self.clock()
        window_start = now - self.window_seconds
        with self._lock:
            # 윈도우마다 한 번씩 요청이 끊긴 IP를 정리
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(window_start)
                self._last_sweep = now
            hits = self._hits[key]
            while hits and hits[0] <= window_start:
                hits.popleft()
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    def _sweep(self, window_start: float) -> None:
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= window_start]:
            del self._hits[key]

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()

    async def __call__(self, request: Request) -> None:
        client_ip = request.client.host if request.client else "unknown"
        if not self.hit(client_ip):
            logger.warning(f"Rate limit '{self.name}' exceeded for {client_ip}")
            raise AppError("RATE_LIMIT_EXCEEDED", RATE_LIMIT_MESSAGE, 429)


_settings = get_settings()

general_rate_limit = SlidingWindowRateLimiter(
    "general", _settings.RATE_LIMIT_GENERAL_MAX, _settings.RATE_LIMIT_WINDOW_SECONDS
)
mutation_rate_limit = SlidingWindowRateLimiter(
    "mutation", _settings.RATE_LIMIT_MUTATION_MAX, _settings.RATE_LIMIT_WINDOW_SECONDS
)
read_rate_limit = SlidingWindowRateLimiter(
    "read", _settings.RATE_LIMIT_READ_MAX, _settings.RATE_LIMIT_WINDOW_SECONDS
)

RATE_LIMITERS = (general_rate_limit, mutation_rate_limit, read_rate_limit)


def reset_rate_limiters() -> None:
    for limiter in RATE_LIMITERS:
        limiter.reset()
