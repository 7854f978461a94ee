"""Best-effort recovery of JSON objects from generative model output.

The recovery runs as an ordered chain of small stages, cheapest and most
precise first:

1. strict parse of the raw, then fence-stripped, text (valid JSON is never mutated)
2. normalization followed by a direct parse
3. truncation patch (cut at the last closing brace/bracket)
4. deep recovery (balance quotes and brackets, then shrink from the end)
5. fallback to an empty object with a bounded diagnostic log

Each stage returns a :class:`RepairOutcome` so it can be exercised on its own.
"""

from __future__ import annotations

import json
import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 400
MAX_SHRINK_ATTEMPTS = 5
_SHRINK_STEP = 0.05
_SHRINK_CAP = 0.25

_LEADING_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_JSON_FENCE_RE = re.compile(r"```(?:json|JSON)[ \t]*\r?\n?")
_UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_WHITESPACE_RE = re.compile(r"\s+")
_SMART_QUOTES = str.maketrans({"“": '"', "”": '"', "„": '"', "‟": '"', "‘": "'", "’": "'"})
_CLOSERS = {"{": "}", "[": "]"}


@dataclass(frozen=True)
class RepairOutcome:
  """Result of a single recovery stage."""

  stage: str
  value: dict[str, Any] | None = None
  reason: str | None = None

  @property
  def ok(self) -> bool:
    return self.value is not None


def strip_fences(text: str) -> str:
  """Remove a wrapping markdown code fence while keeping fences nested in the payload."""
  stripped = text.strip()
  if stripped.startswith("```"):
    opening = _LEADING_FENCE_RE.match(stripped)
  else:
    opening = _JSON_FENCE_RE.search(stripped)
    # A fence after an opening brace belongs to a string value, not to the wrapper.
    if opening is not None and "{" in stripped[: opening.start()]:
      opening = None
  if opening is None:
    return stripped

  body = stripped[opening.end() :].rstrip()
  if body.endswith("```"):
    body = body[:-3]
  return body.strip()


def _escape_non_ascii(text: str) -> str:
  """Re-escape non-ASCII characters as JSON \\uXXXX sequences."""
  parts: list[str] = []
  for char in text:
    code = ord(char)
    if code < 0x80:
      parts.append(char)
    elif code <= 0xFFFF:
      parts.append(f"\\u{code:04x}")
    else:
      # Astral characters need a surrogate pair to stay valid JSON.
      offset = code - 0x10000
      parts.append(f"\\u{0xD800 + (offset >> 10):04x}\\u{0xDC00 + (offset & 0x3FF):04x}")
  return "".join(parts)


def normalize(text: str) -> str:
  """Clean model output so strict JSON parsers have a chance to accept it."""
  cleaned = strip_fences(text).replace("\x00", "")
  cleaned = _UNICODE_ESCAPE_RE.sub(lambda match: chr(int(match.group(1), 16)), cleaned)
  cleaned = cleaned.replace("\\n", "\n").replace('\\"', '"')
  cleaned = unicodedata.normalize("NFC", cleaned)
  # Smart quotes must be straightened before the non-ASCII pass would escape them.
  cleaned = cleaned.translate(_SMART_QUOTES)
  cleaned = _escape_non_ascii(cleaned)
  return _WHITESPACE_RE.sub(" ", cleaned).strip()


def _loads_object(text: str) -> dict[str, Any] | None:
  """Parse text and accept only JSON objects."""
  try:
    parsed = json.loads(text, strict=False)
  except (json.JSONDecodeError, RecursionError):
    return None

  if isinstance(parsed, dict):
    return parsed
  return None


def parse_strict(text: str) -> RepairOutcome:
  """Parse the raw text, then the fence-stripped text, without any mutation."""
  value = _loads_object(text.strip())
  if value is None:
    value = _loads_object(strip_fences(text))
  if value is None:
    return RepairOutcome(stage="strict", reason="not a JSON object")
  return RepairOutcome(stage="strict", value=value)


def parse_direct(normalized: str) -> RepairOutcome:
  """Parse normalized text as-is."""
  value = _loads_object(normalized)
  if value is None:
    return RepairOutcome(stage="direct", reason="normalized text is not a JSON object")
  return RepairOutcome(stage="direct", value=value)


def patch_truncation(normalized: str) -> RepairOutcome:
  """Cut trailing commentary after the last closing brace or bracket."""
  last_close = max(normalized.rfind("}"), normalized.rfind("]"))
  candidate = normalized[: last_close + 1] if last_close >= 0 else normalized

  # Leading prose is dropped the same way trailing commentary is.
  first_open = candidate.find("{")
  if first_open > 0:
    candidate = candidate[first_open:]

  if not candidate.endswith(("}", "]")):
    candidate += "}"

  value = _loads_object(candidate)
  if value is None:
    return RepairOutcome(stage="truncation", reason="patched candidate still invalid")
  return RepairOutcome(stage="truncation", value=value)


def _strip_trailing_commas(text: str) -> str:
  return _TRAILING_COMMA_RE.sub(r"\1", text)


def _patch_candidate(fragment: str) -> str:
  """Apply the cheap textual fixes used by deep recovery."""
  patched = fragment.rstrip()
  if patched.count('"') % 2 == 1:
    patched += '"'
  if not patched.endswith(("}", "]")):
    patched += "}"
  patched = _strip_trailing_commas(patched)
  return patched.replace('\\\\"', '\\"')


def _close_structures(fragment: str) -> list[str]:
  """Close open strings and brackets, plus a variant cut at the last complete value."""
  stack: list[str] = []
  cut_points: list[tuple[int, tuple[str, ...]]] = []
  in_string = False
  escape = False

  for index, char in enumerate(fragment):
    if in_string:
      if escape:
        escape = False
      elif char == "\\":
        escape = True
      elif char == '"':
        in_string = False
      continue

    if char == '"':
      in_string = True
    elif char in _CLOSERS:
      stack.append(char)
    elif char in "}]":
      if stack:
        stack.pop()
      cut_points.append((index + 1, tuple(stack)))
      if not stack:
        break
    elif char == ",":
      cut_points.append((index, tuple(stack)))

  def _closers(open_stack: tuple[str, ...] | list[str]) -> str:
    return "".join(_CLOSERS[opener] for opener in reversed(open_stack))

  candidates: list[str] = []
  if stack or in_string:
    tail = fragment.rstrip().rstrip(",")
    if in_string:
      # A dangling backslash would escape the closing quote.
      if escape:
        tail = tail[:-1]
      tail += '"'
    candidates.append(tail + _closers(stack))

  if cut_points:
    index, open_stack = cut_points[-1]
    candidates.append(fragment[:index] + _closers(open_stack))

  return [_strip_trailing_commas(candidate) for candidate in candidates]


def _try_fragment(fragment: str) -> dict[str, Any] | None:
  value = _loads_object(_patch_candidate(fragment))
  if value is not None:
    return value

  for candidate in _close_structures(fragment):
    value = _loads_object(candidate)
    if value is not None:
      return value
  return None


def recover_deep(normalized: str) -> RepairOutcome:
  """Recover truncated or unbalanced payloads, shrinking from the end when needed."""
  start = normalized.find("{")
  if start < 0:
    return RepairOutcome(stage="deep", reason="no opening brace")

  base = normalized[start:].rstrip()
  value = _try_fragment(base)
  if value is not None:
    return RepairOutcome(stage="deep", value=value)

  for attempt in range(1, MAX_SHRINK_ATTEMPTS + 1):
    fraction = min(_SHRINK_STEP * attempt, _SHRINK_CAP)
    cut = max(1, int(len(base) * fraction))
    if cut >= len(base):
      break

    value = _try_fragment(base[:-cut])
    if value is not None:
      logger.debug("Deep JSON recovery succeeded after trimming %d chars (attempt %d)", cut, attempt)
      return RepairOutcome(stage="deep", value=value)

  return RepairOutcome(stage="deep", reason=f"unrecoverable after {MAX_SHRINK_ATTEMPTS} shrink attempts")


def _preview(text: str) -> tuple[str, str]:
  return text[:PREVIEW_CHARS], text[-PREVIEW_CHARS:]


def repair_with_outcome(text: Any) -> RepairOutcome:
  """Run the recovery chain and report which stage produced the object."""
  if not isinstance(text, str) or not text.strip():
    return RepairOutcome(stage="fallback", value={}, reason="empty input")

  strict = parse_strict(text)
  if strict.ok:
    return strict

  normalized = normalize(text)
  for stage in (parse_direct, patch_truncation, recover_deep):
    outcome = stage(normalized)
    if outcome.ok:
      return outcome

  head, tail = _preview(normalized)
  logger.warning("JSON recovery failed (%d chars). head=%r tail=%r", len(normalized), head, tail)
  return RepairOutcome(stage="fallback", value={}, reason="all recovery stages failed")


def repair(text: Any) -> dict[str, Any]:
  """Return the best-effort JSON object in ``text``; never raises, ``{}`` on failure."""
  outcome = repair_with_outcome(text)
  return outcome.value if outcome.value is not None else {}
