"""Lenient validation of recovered model payloads against pydantic models.

``validate`` runs ``model_validate`` with a warnings collector in the
validation context. Models built on :class:`LenientModel`, and fields
annotated with the helpers below, read that collector and repair what
they can instead of failing:

- fields with a default fall back to it when their value is unusable
- ``case_folded`` literals match their choices case-insensitively
- ``clamped`` numbers are pulled into range
- ``drop_invalid`` lists keep only the items that validate

Without the collector a plain ``model_validate`` applies the same
declarations strictly, so one model serves the agents and the pipeline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, get_args

from pydantic import (
  AfterValidator,
  BaseModel,
  BeforeValidator,
  ConfigDict,
  ValidationError,
  ValidationInfo,
  ValidatorFunctionWrapHandler,
  WrapValidator,
  field_validator,
)

from learnpath.ai.errors import SchemaValidationError

logger = logging.getLogger(__name__)

_WARNINGS_KEY = "warnings"
_TRUE_STRINGS = {"true", "yes", "1", "on"}
_FALSE_STRINGS = {"false", "no", "0", "off"}

ModelT = TypeVar("ModelT", bound=BaseModel)


def _collector(info: ValidationInfo) -> list[str] | None:
  context = info.context
  if isinstance(context, dict):
    return context.get(_WARNINGS_KEY)
  return None


def lenient(info: ValidationInfo) -> bool:
  """Return whether the current validation collects warnings instead of failing."""
  return _collector(info) is not None


def warn(info: ValidationInfo, message: str) -> None:
  warnings = _collector(info)
  if warnings is not None:
    warnings.append(message)


def _field(info: ValidationInfo) -> str:
  return info.field_name or "value"


def _describe(exc: ValidationError) -> str:
  return "; ".join(_format_error(error) for error in exc.errors(include_url=False))


def _format_error(error: Any) -> str:
  loc = ".".join(str(part) for part in error["loc"])
  return f"{loc}: {error['msg']}" if loc else error["msg"]


class LenientModel(BaseModel):
  """Base for payloads recovered from model output."""

  model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, allow_inf_nan=False)

  @field_validator("*", mode="wrap")
  @classmethod
  def _default_on_error(cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
    try:
      return handler(value)
    except ValidationError as exc:
      model_field = cls.model_fields[info.field_name]
      if not lenient(info) or model_field.is_required():
        raise
      fallback = model_field.get_default(call_default_factory=True)
      warn(info, f"{cls.__name__}.{info.field_name}: {_describe(exc)}; using default {fallback!r}")
      return fallback


def case_folded(literal: Any) -> BeforeValidator:
  """Match a ``Literal``'s string choices regardless of case and padding."""
  choices = get_args(literal)

  def _fold(value: Any, info: ValidationInfo) -> Any:
    if not lenient(info) or not isinstance(value, str) or value in choices:
      return value
    for choice in choices:
      if choice.lower() == value.strip().lower():
        return choice
    return value

  return BeforeValidator(_fold)


def clamped(lower: float, upper: float) -> AfterValidator:
  """Reject out-of-range numbers, or clamp them while collecting warnings."""

  def _clamp(value: Any, info: ValidationInfo) -> Any:
    if lower <= value <= upper:
      return value
    if not lenient(info):
      raise ValueError(f"must be between {lower} and {upper}")
    bounded = type(value)(min(max(value, lower), upper))
    warn(info, f"{_field(info)}: {value} outside [{lower}, {upper}]; clamped to {bounded}")
    return bounded

  return AfterValidator(_clamp)


def _flag_strings(value: Any, info: ValidationInfo) -> Any:
  if not lenient(info) or not isinstance(value, str):
    return value
  lowered = value.strip().lower()
  if lowered in _TRUE_STRINGS:
    return True
  if lowered in _FALSE_STRINGS:
    return False
  return value


# Strict booleans that still accept "true"/"no" style strings from model output.
flag_strings = BeforeValidator(_flag_strings)


def _drop_invalid_items(value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
  if not lenient(info) or value is None or isinstance(value, dict):
    return handler(value)

  if isinstance(value, tuple):
    value = list(value)
  if not isinstance(value, list):
    warn(info, f"{_field(info)}: expected a list, wrapped the single value")
    value = [value]

  kept: list[Any] = []
  for index, item in enumerate(value):
    try:
      kept.extend(handler([item]))
    except ValidationError as exc:
      warn(info, f"{_field(info)}[{index}]: dropped ({_describe(exc)})")
  return kept


drop_invalid = WrapValidator(_drop_invalid_items)


@dataclass
class ValidatedPayload(Generic[ModelT]):
  """A payload coerced to a model plus the discrepancies found on the way."""

  data: dict[str, Any]
  warnings: list[str] = field(default_factory=list)
  errors: list[str] = field(default_factory=list)
  model: ModelT | None = None

  @property
  def ok(self) -> bool:
    return not self.errors

  def raise_for_errors(self, schema_name: str = "payload") -> ValidatedPayload[ModelT]:
    if self.errors:
      raise SchemaValidationError(f"{schema_name} failed validation: {'; '.join(self.errors)}", errors=list(self.errors))
    return self


def _defaults(schema: type[BaseModel]) -> dict[str, Any]:
  return {
    name: model_field.get_default(call_default_factory=True)
    for name, model_field in schema.model_fields.items()
    if not model_field.is_required() and name != "kind"
  }


def validate(candidate: Any, schema: type[ModelT]) -> ValidatedPayload[ModelT]:
  """Coerce ``candidate`` to ``schema``; never raises for malformed model output.

  Required fields that cannot be satisfied are reported in ``errors`` and
  left out of ``data``, which then holds only the schema defaults.
  """
  warnings: list[str] = []
  if not isinstance(candidate, dict):
    warnings.append(f"{schema.__name__}: expected object, got {type(candidate).__name__}")
    candidate = {}

  try:
    model = schema.model_validate(candidate, context={_WARNINGS_KEY: warnings})
  except ValidationError as exc:
    errors = [_format_error(error) for error in exc.errors(include_url=False)]
    return ValidatedPayload(data=_defaults(schema), warnings=warnings, errors=errors)

  if warnings:
    logger.debug("Schema %s validation warnings: %s", schema.__name__, warnings)
  return ValidatedPayload(data=model.model_dump(exclude={"kind"}), warnings=warnings, model=model)
