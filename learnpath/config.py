"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from learnpath.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

_CACHE_POLICIES = {"unbounded", "lru", "ttl"}


@dataclass(frozen=True)
class Settings:
  """Typed settings for the LearnPath service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  gemini_api_key: str | None
  model_id: str
  model_timeout_seconds: float
  throttle_limit: int
  throttle_window_seconds: float
  throttle_delay_seconds: float
  cache_policy: str
  cache_max_entries: int
  cache_ttl_seconds: float
  firebase_project_id: str | None
  firebase_service_account_json_path: str | None
  validation_confidence_threshold: float
  lesson_min_words: int
  quiz_question_count: int
  quiz_pass_score: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ("http://localhost:3000",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("LEARNPATH_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("LEARNPATH_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  return value or None


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _positive_float(name: str, default: str) -> float:
  value = float(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive number.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("LEARNPATH_ENV", "development").lower()

  # Debug turns on DEBUG logging and the /docs page.
  debug = _parse_bool(os.getenv("LEARNPATH_DEBUG"))

  log_dir = (os.getenv("LEARNPATH_LOG_DIR") or "./logs").strip()
  log_max_bytes = _positive_int("LEARNPATH_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("LEARNPATH_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("LEARNPATH_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # 4xx responses are client errors and stay out of the logs unless asked for.
  log_http_4xx = _parse_bool(os.getenv("LEARNPATH_LOG_HTTP_4XX"))

  # The platform historically read GOOGLE_API_KEY; keep it as a fallback.
  gemini_api_key = _optional_str(os.getenv("GEMINI_API_KEY")) or _optional_str(os.getenv("GOOGLE_API_KEY"))
  model_id = (os.getenv("LEARNPATH_MODEL_ID") or "gemini-2.0-flash").strip()
  model_timeout_seconds = _positive_float("LEARNPATH_MODEL_TIMEOUT_SECONDS", "45")

  throttle_limit = _positive_int("LEARNPATH_THROTTLE_LIMIT", "2")
  throttle_window_seconds = _positive_float("LEARNPATH_THROTTLE_WINDOW_SECONDS", "1")
  throttle_delay_seconds = float(os.getenv("LEARNPATH_THROTTLE_DELAY_SECONDS", "2"))
  if throttle_delay_seconds < 0:
    raise ValueError("LEARNPATH_THROTTLE_DELAY_SECONDS must not be negative.")

  cache_policy = (os.getenv("LEARNPATH_CACHE_POLICY") or "unbounded").strip().lower()
  if cache_policy not in _CACHE_POLICIES:
    raise ValueError(f"LEARNPATH_CACHE_POLICY must be one of {sorted(_CACHE_POLICIES)}.")
  cache_max_entries = _positive_int("LEARNPATH_CACHE_MAX_ENTRIES", "512")
  cache_ttl_seconds = _positive_float("LEARNPATH_CACHE_TTL_SECONDS", "3600")

  validation_confidence_threshold = float(os.getenv("LEARNPATH_VALIDATION_CONFIDENCE_THRESHOLD", "0.7"))
  if not 0.0 <= validation_confidence_threshold <= 1.0:
    raise ValueError("LEARNPATH_VALIDATION_CONFIDENCE_THRESHOLD must be between 0 and 1.")

  lesson_min_words = int(os.getenv("LEARNPATH_LESSON_MIN_WORDS", "100"))
  if lesson_min_words < 0:
    raise ValueError("LEARNPATH_LESSON_MIN_WORDS must be zero or a positive integer.")

  quiz_question_count = _positive_int("LEARNPATH_QUIZ_QUESTION_COUNT", "5")
  quiz_pass_score = int(os.getenv("LEARNPATH_QUIZ_PASS_SCORE", "80"))
  if not 0 <= quiz_pass_score <= 100:
    raise ValueError("LEARNPATH_QUIZ_PASS_SCORE must be between 0 and 100.")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("LEARNPATH_ALLOWED_ORIGINS")),
    log_dir=log_dir,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=log_http_4xx,
    gemini_api_key=gemini_api_key,
    model_id=model_id,
    model_timeout_seconds=model_timeout_seconds,
    throttle_limit=throttle_limit,
    throttle_window_seconds=throttle_window_seconds,
    throttle_delay_seconds=throttle_delay_seconds,
    cache_policy=cache_policy,
    cache_max_entries=cache_max_entries,
    cache_ttl_seconds=cache_ttl_seconds,
    firebase_project_id=_optional_str(os.getenv("LEARNPATH_FIREBASE_PROJECT_ID")),
    firebase_service_account_json_path=_optional_str(os.getenv("LEARNPATH_FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
    validation_confidence_threshold=validation_confidence_threshold,
    lesson_min_words=lesson_min_words,
    quiz_question_count=quiz_question_count,
    quiz_pass_score=quiz_pass_score,
  )
