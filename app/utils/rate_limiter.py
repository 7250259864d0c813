# ledger_service/app/utils/rate_limiter.py
import logging
import time
from typing import Callable, Optional, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestThrottle:
    """
    Spacing and 429 back-off for one upstream client.

    State lives on the instance (``last_request_time``, ``retry_count``) so two
    clients never share a budget and tests can drive it with a fake clock.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        retry_delay: float = 5.0,
        max_retries: int = 1,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.min_interval = min_interval
        self.retry_delay = retry_delay
        self.max_retries = max_retries
        self._clock = clock or time.monotonic
        self._sleep = sleep or time.sleep
        self.last_request_time: Optional[float] = None
        self.retry_count = 0

    def _wait_for_slot(self):
        if self.last_request_time is not None:
            elapsed = self._clock() - self.last_request_time
            if elapsed < self.min_interval:
                self._sleep(self.min_interval - elapsed)
        self.last_request_time = self._clock()

    def call(self, request_fn: Callable[[], T]) -> T:
        self._wait_for_slot()
        attempt = 0
        while True:
            try:
                return request_fn()
            except httpx.HTTPStatusError as e:
                if e.response.status_code != 429 or attempt >= self.max_retries:
                    raise
                attempt += 1
                self.retry_count += 1
                logger.warning(f"Rate limited, retrying in {self.retry_delay}s (attempt {attempt}/{self.max_retries})")
                self._sleep(self.retry_delay)
                self.last_request_time = self._clock()

    def reset(self):
        self.last_request_time = None
        self.retry_count = 0
