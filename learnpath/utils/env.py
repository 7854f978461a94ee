"""Lightweight .env loader for local configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path

# KEY=value, optionally prefixed by ``export``; keys follow shell naming rules.
_ASSIGNMENT = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$")
_INLINE_COMMENT = re.compile(r"\s+#.*$")


def default_env_path() -> Path:
  """Return the .env path at the repository root."""
  return Path(__file__).resolve().parents[2] / ".env"


def _unquote(value: str) -> str:
  if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
    return value[1:-1]
  # Unquoted values may carry a trailing ``# comment``.
  return _INLINE_COMMENT.sub("", value)


def parse_env_text(text: str) -> dict[str, str]:
  """Parse .env text into a mapping; malformed lines are skipped."""
  values: dict[str, str] = {}
  for line in text.splitlines():
    match = _ASSIGNMENT.match(line.strip())
    if match is None:
      continue
    key, raw_value = match.groups()
    values[key] = _unquote(raw_value.strip())
  return values


def load_env_file(path: Path, *, override: bool = False) -> dict[str, str]:
  """Copy a .env file into ``os.environ`` and return the pairs that were applied."""
  if not path.is_file():
    return {}

  applied = {key: value for key, value in parse_env_text(path.read_text(encoding="utf-8")).items() if override or key not in os.environ}
  os.environ.update(applied)
  return applied
