import logging
import logging.handlers
import sys
import time
import traceback
from pathlib import Path
from types import TracebackType

from learnpath.config import Settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Server loggers get our handlers directly instead of their own.
_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")
# SDK transports log every request at DEBUG.
_QUIET_LOGGERS = ("google_genai", "google.auth", "httpx", "httpcore", "urllib3")

_log_file: Path | None = None

ExcInfo = tuple[type[BaseException] | None, BaseException | None, TracebackType | None]


class TruncatedFormatter(logging.Formatter):
  """Keep the exception header and only the innermost frames of a traceback."""

  def __init__(self, fmt: str = LOG_LINE_FORMAT, datefmt: str = LOG_DATE_FORMAT, *, tail_lines: int = 5) -> None:
    super().__init__(fmt, datefmt=datefmt)
    self.tail_lines = tail_lines

  def formatException(self, ei: ExcInfo) -> str:  # noqa: N802
    lines = traceback.format_exception(*ei)
    if len(lines) <= self.tail_lines + 1:
      return "".join(lines)
    return "".join([lines[0], "    ...\n", *lines[-self.tail_lines :]])


def _rotated_name(default_name: str) -> str:
  """learnpath_x.log.1 -> learnpath_x.log-1"""
  stem, _, counter = default_name.rpartition(".")
  return f"{stem}-{counter}" if counter.isdigit() else default_name


def _create_log_file(settings: Settings) -> Path:
  log_dir = Path(settings.log_dir).expanduser().resolve()
  log_path = log_dir / f"learnpath_{time.strftime('%Y%m%d_%H%M%S')}.log"
  try:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path.touch(exist_ok=True)
  except OSError as exc:
    raise RuntimeError(f"Cannot write logs to {log_path}: {exc}") from exc
  return log_path


def _file_handler(log_path: Path, settings: Settings) -> logging.Handler:
  handler = logging.handlers.RotatingFileHandler(log_path, encoding="utf-8", maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count)
  handler.namer = _rotated_name
  # Full tracebacks go to the file; stdout keeps them short.
  handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  return handler


def setup_logging(settings: Settings) -> Path:
  """Send every logger to stdout and a rotating file under ``settings.log_dir``."""
  log_path = _create_log_file(settings)
  stdout_handler = logging.StreamHandler(sys.stdout)
  stdout_handler.setFormatter(TruncatedFormatter())
  handlers = [stdout_handler, _file_handler(log_path, settings)]

  level = logging.DEBUG if settings.debug else logging.INFO
  logging.basicConfig(level=level, handlers=handlers, force=True)

  for name in _ROUTED_LOGGERS:
    server_logger = logging.getLogger(name)
    server_logger.handlers = list(handlers)
    server_logger.propagate = False
  for name in _QUIET_LOGGERS:
    logging.getLogger(name).setLevel(logging.WARNING)
  return log_path


def _initialize_logging(settings: Settings) -> None:
  """Configure logging once per process and record where the log file lives."""
  global _log_file
  if _log_file is not None:
    return

  _log_file = setup_logging(settings)
  logger = logging.getLogger("learnpath.core.logging")
  logger.info("Logging initialized. Writing to %s", _log_file)
  logger.info("Model %s, cache policy %s, environment %s", settings.model_id, settings.cache_policy, settings.environment)
