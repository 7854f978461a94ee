"""Gemini endpoint implementation using the google-genai SDK."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Final

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from learnpath.ai.errors import ModelError
from learnpath.ai.providers.base import CompletionEndpoint

logger = logging.getLogger(__name__)

DEFAULT_MODEL: Final[str] = "gemini-2.0-flash"
_BLOCKED_CATEGORIES: Final[tuple[types.HarmCategory, ...]] = (
  types.HarmCategory.HARM_CATEGORY_HARASSMENT,
  types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
  types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
  types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)


def _safety_settings() -> list[types.SafetySetting]:
  return [types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE) for category in _BLOCKED_CATEGORIES]


def _block_reason(response: Any) -> str | None:
  """Return the safety block reason carried by a response, if any."""
  feedback = getattr(response, "prompt_feedback", None)
  reason = getattr(feedback, "block_reason", None) if feedback else None
  if reason:
    return str(getattr(reason, "name", reason))

  candidates = getattr(response, "candidates", None) or []
  if candidates:
    finish_reason = getattr(candidates[0], "finish_reason", None)
    if finish_reason == types.FinishReason.SAFETY:
      return "SAFETY"
  return None


class GeminiEndpoint(CompletionEndpoint):
  """Gemini model client with an explicit per-call timeout."""

  def __init__(self, model_id: str = DEFAULT_MODEL, *, api_key: str | None, timeout_seconds: float = 45.0) -> None:
    self.model_id = model_id
    self._api_key = api_key
    self._timeout_seconds = timeout_seconds
    self._client: genai.Client | None = None

  def _get_client(self) -> genai.Client:
    if not self._api_key:
      raise ModelError("GEMINI_API_KEY is not set in the environment variables.", category=ModelError.CREDENTIALS)
    if self._client is None:
      self._client = genai.Client(api_key=self._api_key)
    return self._client

  async def complete(self, prompt: str) -> str:
    """Send one prompt to Gemini and return the completion text."""
    client = self._get_client()
    config = types.GenerateContentConfig(safety_settings=_safety_settings())

    try:
      # Use the async client to avoid blocking the asyncio event loop.
      response = await asyncio.wait_for(client.aio.models.generate_content(model=self.model_id, contents=prompt, config=config), timeout=self._timeout_seconds)
    except asyncio.TimeoutError as exc:
      raise ModelError(f"Gemini call timed out after {self._timeout_seconds:.0f}s", category=ModelError.TIMEOUT) from exc
    except genai_errors.APIError as exc:
      raise ModelError(f"Gemini API request failed with status {exc.code}: {exc.message}", category=ModelError.HTTP_STATUS, status=exc.code) from exc
    except (httpx.HTTPError, OSError) as exc:
      raise ModelError(f"Gemini request failed: {exc}", category=ModelError.NETWORK) from exc

    block_reason = _block_reason(response)
    if block_reason:
      raise ModelError(f"Gemini blocked the response: {block_reason}", category=ModelError.SAFETY_BLOCK)

    text = response.text or ""
    if not text.strip():
      raise ModelError("Gemini API returned an empty text response.", category=ModelError.EMPTY)

    if response.usage_metadata:
      logger.debug("Gemini usage model=%s prompt_tokens=%s completion_tokens=%s", self.model_id, response.usage_metadata.prompt_token_count, response.usage_metadata.candidates_token_count)
    return text
