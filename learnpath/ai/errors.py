"""Error taxonomy for model calls, JSON recovery, schema checks and pipeline steps."""

from __future__ import annotations

from typing import Any


class ModelError(RuntimeError):
  """Raised when the generative endpoint cannot produce a usable completion."""

  CREDENTIALS = "credentials"
  HTTP_STATUS = "http_status"
  SAFETY_BLOCK = "safety_block"
  EMPTY = "empty"
  TIMEOUT = "timeout"
  NETWORK = "network"

  def __init__(self, message: str, *, category: str, status: int | None = None) -> None:
    super().__init__(message)
    self.category = category
    self.status = status

  def as_details(self) -> dict[str, Any]:
    details: dict[str, Any] = {"category": self.category}
    if self.status is not None:
      details["status"] = self.status
    return details


class ParseError(ValueError):
  """Raised when a model response could not be recovered into a JSON object."""

  def __init__(self, message: str, *, preview: str | None = None) -> None:
    super().__init__(message)
    self.preview = preview


class SchemaValidationError(ValueError):
  """Raised when a payload is missing required fields that have no default."""

  def __init__(self, message: str, *, errors: list[str]) -> None:
    super().__init__(message)
    self.errors = errors


class StepError(RuntimeError):
  """Structured failure naming the pipeline step that stopped a run."""

  def __init__(self, *, step: str, code: str, message: str, details: Any = None) -> None:
    super().__init__(message)
    self.step = step
    self.code = code
    self.message = message
    self.details = details

  def as_dict(self) -> dict[str, Any]:
    return {"code": self.code, "step": self.step, "message": self.message, "details": self.details}

  def __repr__(self) -> str:
    return f"StepError(step={self.step!r}, code={self.code!r}, message={self.message!r})"
