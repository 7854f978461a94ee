"""Base interfaces for generative model endpoints."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CompletionEndpoint(ABC):
  """A single generative model reachable with a prompt-in, text-out call."""

  model_id: str

  @abstractmethod
  async def complete(self, prompt: str) -> str:
    """Return the completion text, raising ``ModelError`` on any failure."""
