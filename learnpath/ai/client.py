"""Model invocation client with response caching and a single JSON repair retry."""

from __future__ import annotations

import logging

from learnpath.ai.cache import ResponseCache, build_response_cache
from learnpath.ai.errors import ModelError
from learnpath.ai.json_repair import repair
from learnpath.ai.providers.base import CompletionEndpoint
from learnpath.ai.providers.gemini import GeminiEndpoint
from learnpath.ai.throttle import RequestThrottle
from learnpath.config import Settings

logger = logging.getLogger(__name__)


def build_json_retry_prompt(prompt: str) -> str:
  """Wrap a prompt with an explicit pure-JSON instruction for the repair retry."""
  return "\n\n".join(
    [
      "IMPORTANT: Your previous answer could not be parsed. Your output must be pure JSON.",
      "Return ONLY a single valid JSON object. No markdown fences, no commentary, no text before or after the JSON.",
      "--- ORIGINAL REQUEST ---",
      prompt,
      "--- END OF REQUEST ---",
      "Output must be pure JSON.",
    ]
  )


class ModelClient:
  """Invoke a completion endpoint at most twice per request."""

  def __init__(self, endpoint: CompletionEndpoint, *, cache: ResponseCache | None = None, throttle: RequestThrottle | None = None) -> None:
    self._endpoint = endpoint
    self._cache = cache if cache is not None else ResponseCache()
    self._throttle = throttle

  @property
  def model_id(self) -> str:
    return self._endpoint.model_id

  @property
  def cache(self) -> ResponseCache:
    return self._cache

  async def _call(self, prompt: str) -> str:
    if self._throttle is not None:
      await self._throttle.acquire()
    return await self._endpoint.complete(prompt)

  async def invoke(self, prompt: str, use_cache: bool = True) -> str:
    """Return raw completion text for ``prompt``.

    A cache hit returns immediately. Otherwise the endpoint is called once; if
    the text does not repair to a non-empty JSON object, one retry is made
    with a stricter prompt. The retry's text is returned only when it repairs
    to a non-empty object, otherwise the original text is returned unchanged.
    Only text confirmed to repair to a non-empty object is cached.
    """
    model_id = self._endpoint.model_id
    if use_cache:
      cached = self._cache.get(prompt, model_id)
      if cached is not None:
        logger.debug("Model cache hit model=%s prompt_chars=%d", model_id, len(prompt))
        return cached

    # ModelError propagates to the collaborator that asked for this completion.
    text = await self._call(prompt)
    if repair(text):
      if use_cache:
        self._cache.set(prompt, model_id, text)
      return text

    logger.warning("Model response was not parseable JSON; retrying once with a strict JSON prompt model=%s", model_id)
    try:
      retry_text = await self._call(build_json_retry_prompt(prompt))
    except ModelError as exc:
      logger.warning("JSON repair retry failed model=%s category=%s: %s", model_id, exc.category, exc)
      return text

    if repair(retry_text):
      if use_cache:
        self._cache.set(prompt, model_id, retry_text)
      return retry_text

    logger.warning("JSON repair retry still unparseable; returning original response model=%s", model_id)
    return text


def build_model_client(settings: Settings, *, cache: ResponseCache | None = None) -> ModelClient:
  """Create the Gemini-backed client configured from settings."""
  endpoint = GeminiEndpoint(settings.model_id, api_key=settings.gemini_api_key, timeout_seconds=settings.model_timeout_seconds)
  throttle = RequestThrottle(limit=settings.throttle_limit, window_seconds=settings.throttle_window_seconds, delay_seconds=settings.throttle_delay_seconds)
  return ModelClient(endpoint, cache=cache if cache is not None else build_response_cache(settings), throttle=throttle)
