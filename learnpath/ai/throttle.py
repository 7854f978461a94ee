"""Sliding-window request throttle for model calls."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class RequestThrottle:
  """Delay a call when ``limit`` calls already happened inside ``window_seconds``."""

  def __init__(
    self,
    *,
    limit: int = 2,
    window_seconds: float = 1.0,
    delay_seconds: float = 2.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
  ) -> None:
    self._limit = limit
    self._window_seconds = window_seconds
    self._delay_seconds = delay_seconds
    self._clock = clock
    self._sleep = sleep
    self._timestamps: deque[float] = deque()

  async def acquire(self) -> None:
    """Wait if the window is full, then record the new request."""
    now = self._clock()
    while self._timestamps and now - self._timestamps[0] > self._window_seconds:
      self._timestamps.popleft()

    if len(self._timestamps) >= self._limit:
      logger.info("Model throttle engaged; waiting %.1fs to avoid overload.", self._delay_seconds)
      await self._sleep(self._delay_seconds)

    self._timestamps.append(self._clock())
