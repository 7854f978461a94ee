"""Unit tests for the model client's cache and single repair retry."""

from __future__ import annotations

import pytest

from learnpath.ai.cache import ResponseCache
from learnpath.ai.client import ModelClient, build_json_retry_prompt
from learnpath.ai.errors import ModelError
from learnpath.ai.throttle import RequestThrottle

VALID = '{"title": "Hooks"}'
PROSE = "Sure! Here is a lesson about hooks, but not as JSON."


@pytest.mark.anyio
async def test_parseable_response_is_returned_and_cached(client_factory) -> None:
  client, endpoint = client_factory(VALID)

  assert await client.invoke("prompt") == VALID
  assert await client.invoke("prompt") == VALID
  assert endpoint.calls == 1
  assert client.cache.get("prompt", "fake-model") == VALID


@pytest.mark.anyio
async def test_use_cache_false_skips_read_and_write(client_factory) -> None:
  client, endpoint = client_factory(VALID, VALID)

  await client.invoke("prompt", use_cache=False)
  await client.invoke("prompt", use_cache=False)
  assert endpoint.calls == 2
  assert len(client.cache) == 0


@pytest.mark.anyio
async def test_unparseable_response_retries_once_with_strict_prompt(client_factory) -> None:
  client, endpoint = client_factory(PROSE, VALID)

  assert await client.invoke("prompt") == VALID
  assert endpoint.calls == 2
  assert endpoint.prompts[1] == build_json_retry_prompt("prompt")
  assert "pure JSON" in endpoint.prompts[1]
  assert "prompt" in endpoint.prompts[1]
  # Cached under the caller's prompt, never the amended one.
  assert client.cache.get("prompt", "fake-model") == VALID
  assert client.cache.get(endpoint.prompts[1], "fake-model") is None


@pytest.mark.anyio
async def test_failed_retry_returns_original_text_uncached(client_factory) -> None:
  client, endpoint = client_factory(PROSE, "still not json")

  assert await client.invoke("prompt") == PROSE
  assert endpoint.calls == 2
  assert len(client.cache) == 0


@pytest.mark.anyio
async def test_model_error_on_retry_returns_original_text(client_factory) -> None:
  client, endpoint = client_factory(PROSE, ModelError("boom", category=ModelError.NETWORK))

  assert await client.invoke("prompt") == PROSE
  assert endpoint.calls == 2


@pytest.mark.anyio
async def test_model_error_on_first_call_propagates(client_factory) -> None:
  client, endpoint = client_factory(ModelError("blocked", category=ModelError.SAFETY_BLOCK))

  with pytest.raises(ModelError) as exc_info:
    await client.invoke("prompt")
  assert exc_info.value.category == ModelError.SAFETY_BLOCK
  assert endpoint.calls == 1


@pytest.mark.anyio
async def test_never_more_than_two_endpoint_calls(client_factory) -> None:
  client, endpoint = client_factory(PROSE, PROSE, PROSE)

  await client.invoke("prompt")
  assert endpoint.calls == 2


@pytest.mark.anyio
async def test_cache_is_shared_through_injected_instance(fake_endpoint_factory) -> None:
  cache = ResponseCache()
  first = ModelClient(fake_endpoint_factory(VALID), cache=cache)
  second_endpoint = fake_endpoint_factory()
  second = ModelClient(second_endpoint, cache=cache)

  await first.invoke("prompt")
  assert await second.invoke("prompt") == VALID
  assert second_endpoint.calls == 0


@pytest.mark.anyio
async def test_throttle_runs_before_each_endpoint_call(fake_endpoint_factory) -> None:
  sleeps: list[float] = []

  async def _sleep(seconds: float) -> None:
    sleeps.append(seconds)

  throttle = RequestThrottle(limit=1, window_seconds=60, delay_seconds=2, clock=lambda: 0.0, sleep=_sleep)
  endpoint = fake_endpoint_factory(PROSE, VALID)
  client = ModelClient(endpoint, throttle=throttle)

  await client.invoke("prompt")
  assert endpoint.calls == 2
  assert sleeps == [2]
