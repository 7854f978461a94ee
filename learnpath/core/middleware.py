import logging
import re
import time
import uuid
from typing import Any

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("learnpath.core.middleware")

REQUEST_ID_HEADER = "x-request-id"
# Lesson generation chains several model calls; anything slower is worth a warning.
SLOW_REQUEST_MS = 60_000.0

_CLIENT_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


def _request_id_for(scope: Scope) -> str:
  """Reuse a well-formed caller-supplied request id, otherwise mint one."""
  supplied = Headers(scope=scope).get(REQUEST_ID_HEADER)
  if supplied and _CLIENT_REQUEST_ID.match(supplied):
    return supplied
  return uuid.uuid4().hex


class RequestLoggingMiddleware:
  """Tag each HTTP request with an id and log its outcome and latency.

  The id is stored on ``scope["state"]`` for the exception handlers and
  echoed in the ``x-request-id`` response header. Bodies are never read.
  """

  def __init__(self, app: ASGIApp, *, slow_request_ms: float = SLOW_REQUEST_MS) -> None:
    self.app = app
    self.slow_request_ms = slow_request_ms

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    request_id = _request_id_for(scope)
    scope.setdefault("state", {})["request_id"] = request_id
    method = scope.get("method", "UNKNOWN")
    path = scope.get("path", "")
    started = time.perf_counter()
    status_code = 0

    async def send_with_request_id(message: dict[str, Any]) -> None:
      nonlocal status_code
      if message["type"] == "http.response.start":
        status_code = message["status"]
        MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
      await send(message)

    try:
      await self.app(scope, receive, send_with_request_id)
    finally:
      elapsed_ms = (time.perf_counter() - started) * 1000
      level = logging.WARNING if status_code >= 500 or elapsed_ms > self.slow_request_ms else logging.INFO
      logger.log(level, "%s %s status=%s request_id=%s (took %.2fms)", method, path, status_code or "-", request_id, elapsed_ms)
