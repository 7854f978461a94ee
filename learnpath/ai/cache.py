"""Response cache for model completions, keyed by prompt and model id."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Callable

from learnpath.config import Settings

CacheKey = tuple[str, str]


class EvictionPolicy(ABC):
  """Decides which cache entries survive reads and writes."""

  @abstractmethod
  def is_expired(self, stored_at: float, now: float) -> bool:
    """Return True when an entry stored at ``stored_at`` must be dropped."""

  @abstractmethod
  def overflow(self, size: int) -> int:
    """Return how many least-recently-used entries to evict at ``size``."""


class UnboundedPolicy(EvictionPolicy):
  """Keep every entry for the lifetime of the cache."""

  def is_expired(self, stored_at: float, now: float) -> bool:
    return False

  def overflow(self, size: int) -> int:
    return 0


class LRUPolicy(EvictionPolicy):
  """Cap the cache at ``max_entries`` and evict the least recently used."""

  def __init__(self, max_entries: int) -> None:
    if max_entries <= 0:
      raise ValueError("max_entries must be positive")
    self.max_entries = max_entries

  def is_expired(self, stored_at: float, now: float) -> bool:
    return False

  def overflow(self, size: int) -> int:
    return max(0, size - self.max_entries)


class TTLPolicy(EvictionPolicy):
  """Expire entries ``ttl_seconds`` after they were stored."""

  def __init__(self, ttl_seconds: float) -> None:
    if ttl_seconds <= 0:
      raise ValueError("ttl_seconds must be positive")
    self.ttl_seconds = ttl_seconds

  def is_expired(self, stored_at: float, now: float) -> bool:
    return now - stored_at >= self.ttl_seconds

  def overflow(self, size: int) -> int:
    return 0


class ResponseCache:
  """In-memory map of (prompt, model id) to raw completion text.

  Instances are passed into the model client explicitly, so tests get a fresh
  cache per client. Writers may race on one key; values are re-derivations of
  the same prompt, so a lost update only costs a later network call.
  """

  def __init__(self, policy: EvictionPolicy | None = None, *, clock: Callable[[], float] = time.monotonic) -> None:
    self._policy = policy or UnboundedPolicy()
    self._clock = clock
    self._entries: OrderedDict[CacheKey, tuple[str, float]] = OrderedDict()

  def __len__(self) -> int:
    return len(self._entries)

  def __contains__(self, key: object) -> bool:
    return key in self._entries

  def get(self, prompt: str, model_id: str) -> str | None:
    key = (prompt, model_id)
    entry = self._entries.get(key)
    if entry is None:
      return None

    text, stored_at = entry
    if self._policy.is_expired(stored_at, self._clock()):
      self._entries.pop(key, None)
      return None

    self._entries.move_to_end(key)
    return text

  def set(self, prompt: str, model_id: str, text: str) -> None:
    key = (prompt, model_id)
    self._entries[key] = (text, self._clock())
    self._entries.move_to_end(key)

    for _ in range(self._policy.overflow(len(self._entries))):
      self._entries.popitem(last=False)

  def clear(self) -> None:
    self._entries.clear()


def build_response_cache(settings: Settings) -> ResponseCache:
  """Create a cache with the eviction policy selected in settings."""
  if settings.cache_policy == "lru":
    return ResponseCache(LRUPolicy(settings.cache_max_entries))
  if settings.cache_policy == "ttl":
    return ResponseCache(TTLPolicy(settings.cache_ttl_seconds))
  return ResponseCache(UnboundedPolicy())
