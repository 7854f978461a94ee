"""Unit tests for mapping Gemini SDK outcomes onto model errors."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.genai import errors as genai_errors
from google.genai import types

from learnpath.ai.errors import ModelError
from learnpath.ai.providers.gemini import GeminiEndpoint


def _response(text: str | None = "{}", *, block_reason=None, finish_reason=None):
  feedback = SimpleNamespace(block_reason=block_reason) if block_reason else None
  candidates = [SimpleNamespace(finish_reason=finish_reason)] if finish_reason else []
  return SimpleNamespace(text=text, prompt_feedback=feedback, candidates=candidates, usage_metadata=None)


@pytest.fixture
def make_endpoint():
  """Build an endpoint whose SDK client is a mock around ``generate``."""
  patchers = []

  def _make(generate: AsyncMock, **kwargs) -> tuple[GeminiEndpoint, MagicMock]:
    fake_client = MagicMock()
    fake_client.aio.models.generate_content = generate
    patcher = patch("learnpath.ai.providers.gemini.genai.Client", return_value=fake_client)
    client_cls = patcher.start()
    patchers.append(patcher)
    return GeminiEndpoint("gemini-test", api_key="key", **kwargs), client_cls

  yield _make
  for patcher in patchers:
    patcher.stop()


@pytest.mark.anyio
async def test_returns_text_and_reuses_sdk_client(make_endpoint) -> None:
  generate = AsyncMock(return_value=_response('{"ok": true}'))
  endpoint, client_cls = make_endpoint(generate)

  assert await endpoint.complete("prompt") == '{"ok": true}'
  assert await endpoint.complete("prompt") == '{"ok": true}'
  client_cls.assert_called_once_with(api_key="key")
  assert generate.await_args.kwargs["model"] == "gemini-test"
  assert generate.await_args.kwargs["contents"] == "prompt"


@pytest.mark.anyio
async def test_missing_api_key_is_a_credentials_error() -> None:
  endpoint = GeminiEndpoint(api_key=None)

  with pytest.raises(ModelError) as exc_info:
    await endpoint.complete("prompt")
  assert exc_info.value.category == ModelError.CREDENTIALS


@pytest.mark.anyio
async def test_timeout_is_reported(make_endpoint) -> None:
  endpoint, _ = make_endpoint(AsyncMock(side_effect=asyncio.TimeoutError()))

  with pytest.raises(ModelError) as exc_info:
    await endpoint.complete("prompt")
  assert exc_info.value.category == ModelError.TIMEOUT


@pytest.mark.anyio
async def test_slow_call_is_cut_off_by_timeout(make_endpoint) -> None:
  async def _slow(**_kwargs):
    await asyncio.sleep(1)
    return _response()

  endpoint, _ = make_endpoint(AsyncMock(side_effect=_slow), timeout_seconds=0.01)

  with pytest.raises(ModelError) as exc_info:
    await endpoint.complete("prompt")
  assert exc_info.value.category == ModelError.TIMEOUT


@pytest.mark.anyio
async def test_api_error_keeps_status(make_endpoint) -> None:
  error = genai_errors.APIError(429, {"error": {"code": 429, "message": "quota exhausted", "status": "RESOURCE_EXHAUSTED"}})
  endpoint, _ = make_endpoint(AsyncMock(side_effect=error))

  with pytest.raises(ModelError) as exc_info:
    await endpoint.complete("prompt")
  assert exc_info.value.category == ModelError.HTTP_STATUS
  assert exc_info.value.status == 429
  assert exc_info.value.as_details() == {"category": "http_status", "status": 429}


@pytest.mark.anyio
async def test_transport_failure_is_a_network_error(make_endpoint) -> None:
  endpoint, _ = make_endpoint(AsyncMock(side_effect=httpx.ConnectError("refused")))

  with pytest.raises(ModelError) as exc_info:
    await endpoint.complete("prompt")
  assert exc_info.value.category == ModelError.NETWORK


@pytest.mark.parametrize(
  "response",
  [
    _response(None, block_reason="SAFETY"),
    _response("", finish_reason=types.FinishReason.SAFETY),
  ],
)
@pytest.mark.anyio
async def test_safety_blocks_are_reported(make_endpoint, response) -> None:
  endpoint, _ = make_endpoint(AsyncMock(return_value=response))

  with pytest.raises(ModelError) as exc_info:
    await endpoint.complete("prompt")
  assert exc_info.value.category == ModelError.SAFETY_BLOCK


@pytest.mark.anyio
async def test_empty_text_is_reported(make_endpoint) -> None:
  endpoint, _ = make_endpoint(AsyncMock(return_value=_response("   ")))

  with pytest.raises(ModelError) as exc_info:
    await endpoint.complete("prompt")
  assert exc_info.value.category == ModelError.EMPTY
