"""Shared plumbing for prompt-driven agents."""

from __future__ import annotations

import logging

from learnpath.ai.client import ModelClient
from learnpath.ai.errors import ParseError
from learnpath.ai.json_repair import repair
from learnpath.ai.pipeline.contracts import GenerationRequest
from learnpath.schema.validation import ModelT, ValidatedPayload, validate

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 200


class BaseAgent:
  """Invoke the model, recover JSON from its reply and coerce it to a contract model."""

  name = "Agent"

  def __init__(self, client: ModelClient) -> None:
    self._client = client

  @property
  def client(self) -> ModelClient:
    return self._client

  async def _generate_json(self, request: GenerationRequest, schema: type[ModelT]) -> ValidatedPayload[ModelT]:
    """Return the validated payload for one prompt or raise ParseError."""
    text = await self._client.invoke(request.prompt, use_cache=request.use_cache)
    recovered = repair(text)
    if not recovered:
      logger.error("%s agent received no recoverable JSON (chars=%d)", self.name, len(text or ""))
      raise ParseError(f"{self.name} agent response contained no JSON object.", preview=(text or "")[:_PREVIEW_CHARS])

    payload = validate(recovered, schema)
    if payload.warnings:
      logger.info("%s agent payload coerced: %s", self.name, "; ".join(payload.warnings))
    return payload
