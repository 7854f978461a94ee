"""FastAPI exception handlers that keep request payloads and model output out of responses."""

import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from learnpath.ai.errors import ModelError, ParseError, SchemaValidationError
from learnpath.config import get_settings

logger = logging.getLogger("uvicorn.error")

# Keys that may echo request bodies or generated text back to the caller.
_SCRUBBED_KEYS = frozenset({"input", "body", "payload", "content"})

_UPSTREAM_MESSAGES: dict[type[Exception], str] = {
  ModelError: "The AI model could not produce a response.",
  ParseError: "The AI model returned a response that could not be read.",
  SchemaValidationError: "The AI model returned an incomplete response.",
}


def _request_id(request: Request) -> str | None:
  return getattr(request.state, "request_id", None)


def _json_safe(value: Any) -> Any:
  """Reduce ``value`` to JSON primitives, rendering exceptions as ``Type: message``."""
  if isinstance(value, BaseException):
    message = str(value)
    return f"{type(value).__name__}: {message}" if message else type(value).__name__
  if isinstance(value, dict):
    return {str(key): _json_safe(item) for key, item in value.items()}
  if isinstance(value, list | tuple | set):
    return [_json_safe(item) for item in value]
  if value is None or isinstance(value, bool | int | float | str):
    return value
  return str(value)


def _scrub(value: Any) -> Any:
  """Drop scrubbed keys at every depth."""
  if isinstance(value, dict):
    return {key: _scrub(item) for key, item in value.items() if key not in _SCRUBBED_KEYS}
  if isinstance(value, list):
    return [_scrub(item) for item in value]
  return value


def _sanitize_validation_errors(errors: Any) -> list[Any]:
  return [_json_safe(_scrub(dict(error))) for error in errors]


def _error_payload(detail: Any, *, request_id: str | None = None) -> dict[str, Any]:
  payload: dict[str, Any] = {"detail": detail}
  # Lets support match a client report to the server log line.
  if request_id:
    payload["requestId"] = request_id
  return payload


def _error_response(request: Request, status_code: int, detail: Any, headers: dict[str, str] | None = None) -> JSONResponse:
  return JSONResponse(status_code=status_code, content=_error_payload(detail, request_id=_request_id(request)), headers=headers)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Catch-all for errors no other handler claimed."""
  logger.error("Unhandled exception request_id=%s path=%s error_type=%s", _request_id(request), request.url.path, type(exc).__name__, exc_info=True)
  return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  errors = _sanitize_validation_errors(exc.errors())
  logger.warning("Request validation failed request_id=%s %s %s errors=%s", _request_id(request), request.method, request.url.path, errors)
  return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Pass 4xx details through; replace 5xx details with a generic message."""
  if exc.status_code >= 500:
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", _request_id(request), request.url.path, exc.status_code, exc.detail, exc_info=True)
    return _error_response(request, exc.status_code, "Internal Server Error")

  if get_settings().log_http_4xx:
    logger.warning("HTTPException request_id=%s path=%s status_code=%s detail=%s", _request_id(request), request.url.path, exc.status_code, _scrub(exc.detail))
  return _error_response(request, exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


async def ai_error_handler(request: Request, exc: Exception) -> JSONResponse:
  """Map model, parse and schema failures outside the lesson pipeline to 502.

  Provider messages and model output stay in the logs. Model errors add
  their category (and upstream status, when known) to the response detail.
  """
  message = next((text for error_type, text in _UPSTREAM_MESSAGES.items() if isinstance(exc, error_type)), "The AI model request failed.")
  detail: Any = message
  if isinstance(exc, ModelError):
    detail = {"message": message, **exc.as_details()}
  elif isinstance(exc, SchemaValidationError):
    logger.error("Incomplete model output request_id=%s path=%s errors=%s", _request_id(request), request.url.path, exc.errors)

  logger.error("AI request failed request_id=%s path=%s error_type=%s: %s", _request_id(request), request.url.path, type(exc).__name__, exc)
  return _error_response(request, status.HTTP_502_BAD_GATEWAY, detail)
