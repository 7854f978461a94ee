"""Shared fixtures: fake model endpoints and an authenticated ASGI client."""

from __future__ import annotations

from collections.abc import Iterable

import pytest
from httpx import ASGITransport, AsyncClient

from learnpath.ai.cache import ResponseCache
from learnpath.ai.client import ModelClient
from learnpath.ai.providers.base import CompletionEndpoint
from learnpath.core.security import get_current_user_id
from learnpath.main import app


class FakeEndpoint(CompletionEndpoint):
  """Scripted endpoint that records every prompt it receives."""

  def __init__(self, responses: Iterable[str | Exception], model_id: str = "fake-model") -> None:
    self.model_id = model_id
    self._responses = list(responses)
    self.prompts: list[str] = []

  @property
  def calls(self) -> int:
    return len(self.prompts)

  async def complete(self, prompt: str) -> str:
    self.prompts.append(prompt)
    if not self._responses:
      raise AssertionError(f"Unexpected endpoint call #{self.calls}")
    item = self._responses.pop(0)
    if isinstance(item, Exception):
      raise item
    return item


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def fake_endpoint_factory():
  def _make(*responses: str | Exception, model_id: str = "fake-model") -> FakeEndpoint:
    return FakeEndpoint(responses, model_id=model_id)

  return _make


@pytest.fixture
def client_factory():
  """Build a model client around a scripted endpoint with a fresh cache."""

  def _make(*responses: str | Exception, cache: ResponseCache | None = None) -> tuple[ModelClient, FakeEndpoint]:
    endpoint = FakeEndpoint(responses)
    return ModelClient(endpoint, cache=cache if cache is not None else ResponseCache()), endpoint

  return _make


@pytest.fixture
async def async_client():
  async def _user_id() -> str:
    return "user-123"

  app.dependency_overrides[get_current_user_id] = _user_id
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
    yield client
  app.dependency_overrides.clear()
