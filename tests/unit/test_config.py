from __future__ import annotations

import pytest

from learnpath.config import get_settings
from learnpath.utils.env import load_env_file, parse_env_text


@pytest.fixture(autouse=True)
def _fresh_settings():
  get_settings.cache_clear()
  yield
  get_settings.cache_clear()


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
  for name in ("LEARNPATH_ALLOWED_ORIGINS", "LEARNPATH_CACHE_POLICY", "LEARNPATH_QUIZ_QUESTION_COUNT", "LEARNPATH_DEBUG"):
    monkeypatch.delenv(name, raising=False)

  settings = get_settings()

  assert settings.allowed_origins == ("http://localhost:3000",)
  assert settings.cache_policy == "unbounded"
  assert settings.quiz_question_count == 5
  assert settings.debug is False


def test_google_api_key_is_a_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.delenv("GEMINI_API_KEY", raising=False)
  monkeypatch.setenv("GOOGLE_API_KEY", "legacy-key")

  assert get_settings().gemini_api_key == "legacy-key"


def test_origins_are_split_and_trimmed(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("LEARNPATH_ALLOWED_ORIGINS", " https://a.example , https://b.example ,")

  assert get_settings().allowed_origins == ("https://a.example", "https://b.example")


@pytest.mark.parametrize(
  ("name", "value"),
  [
    ("LEARNPATH_ALLOWED_ORIGINS", "*"),
    ("LEARNPATH_CACHE_POLICY", "fifo"),
    ("LEARNPATH_THROTTLE_LIMIT", "0"),
    ("LEARNPATH_VALIDATION_CONFIDENCE_THRESHOLD", "1.5"),
    ("LEARNPATH_QUIZ_PASS_SCORE", "101"),
  ],
)
def test_invalid_values_are_rejected(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
  monkeypatch.setenv(name, value)

  with pytest.raises(ValueError):
    get_settings()


def test_env_text_parsing() -> None:
  text = "\n".join(
    [
      "# local overrides",
      "export GEMINI_API_KEY='abc 123'",
      "LEARNPATH_DEBUG=true  # verbose",
      'LEARNPATH_LOG_DIR="/tmp/logs # not a comment"',
      "not a pair",
      "1BAD=value",
    ]
  )

  assert parse_env_text(text) == {"GEMINI_API_KEY": "abc 123", "LEARNPATH_DEBUG": "true", "LEARNPATH_LOG_DIR": "/tmp/logs # not a comment"}


def test_env_file_does_not_override_by_default(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
  env_file = tmp_path / ".env"
  env_file.write_text("LEARNPATH_ENV=staging\nLEARNPATH_MODEL_ID=gemini-test\n", encoding="utf-8")
  monkeypatch.setenv("LEARNPATH_ENV", "production")
  # Registered with monkeypatch so teardown removes the value the loader writes.
  monkeypatch.setenv("LEARNPATH_MODEL_ID", "placeholder")
  monkeypatch.delenv("LEARNPATH_MODEL_ID")

  applied = load_env_file(env_file)

  assert applied == {"LEARNPATH_MODEL_ID": "gemini-test"}
  assert get_settings().environment == "production"
  assert get_settings().model_id == "gemini-test"


def test_missing_env_file_is_ignored(tmp_path) -> None:
  assert load_env_file(tmp_path / "absent.env") == {}
