"""Unit tests for best-effort JSON recovery from model output."""

from __future__ import annotations

import json
import logging

import pytest

from learnpath.ai.json_repair import normalize, parse_strict, patch_truncation, recover_deep, repair, repair_with_outcome, strip_fences


WELL_FORMED = [
  '{"a": 1, "b": [1, 2], "c": {"d": "x"}}',
  '{"title": "Caf\\u00e9", "note": "line\\nbreak", "quote": "say \\"hi\\""}',
  '{"title": "Café ☕", "empty": {}, "flag": true, "none": null}',
  json.dumps({"title": "JSON basics", "content": '## Example\nUse this:\n```json\n{"a": 1}\n```\nDone.'}),
  json.dumps({"tip": "Wrap output in ```json fences", "n": 2}),
  json.dumps({"snippet": "```\nprint('hi')\n```", "closing": "```"}),
  json.dumps({"quote": 'She said \\"fine\\" and left', "nested": {"raw": '{\\"k\\": 1}'}}),
]


@pytest.mark.parametrize("payload", WELL_FORMED)
def test_well_formed_objects_round_trip_exactly(payload: str) -> None:
  assert repair(payload) == json.loads(payload)


@pytest.mark.parametrize("payload", WELL_FORMED)
def test_fenced_payload_matches_unfenced(payload: str) -> None:
  assert repair(f"```json\n{payload}\n```") == repair(payload)
  assert repair(f"```\n{payload}\n```") == repair(payload)


def test_fence_inside_a_string_value_is_not_a_wrapper() -> None:
  payload = json.dumps({"tip": "Wrap output in ```json fences", "n": 2})

  assert strip_fences(payload) == payload
  assert repair_with_outcome(payload).stage == "strict"


def test_fenced_json_repairs_to_the_unwrapped_value() -> None:
  body = '{"sources": [{"title": "React docs", "url": "https://react.dev"}]}'
  assert repair(f"```json\n{body}\n```") == json.loads(body)
  assert repair(f"```\n{body}\n```") == json.loads(body)


def test_fence_after_prose_and_trailing_commentary() -> None:
  text = 'Here is the lesson you asked for:\n```json\n{"a": 1}\n```\nLet me know if you need more.'
  assert repair(text) == {"a": 1}


def test_truncated_object_keeps_complete_leading_pairs() -> None:
  text = '{"title": "Intro", "overview": "Basics", "content": "Some text that was cut'
  result = repair(text)
  assert result["title"] == "Intro"
  assert result["overview"] == "Basics"


def test_truncation_inside_nested_array_recovers_earlier_items() -> None:
  text = '{"sources": [{"title": "A", "url": "https://a.dev"}, {"title": "B", "url": "https://b'
  result = repair(text)
  assert result["sources"][0] == {"title": "A", "url": "https://a.dev"}


def test_trailing_commas_are_stripped() -> None:
  assert repair('{"a": 1, "b": [1, 2,],}') == {"a": 1, "b": [1, 2]}


def test_non_ascii_survives_normalization() -> None:
  assert repair('{"title": "Café", }') == {"title": "Café"}


def test_smart_quotes_are_straightened() -> None:
  assert repair("{“title”: “Hello”}") == {"title": "Hello"}


def test_escaped_json_text_is_unescaped() -> None:
  assert repair('{\\"a\\": \\"b\\"}') == {"a": "b"}


@pytest.mark.parametrize("text", ["", "   ", None, 42, ["not", "text"]])
def test_empty_or_non_string_input_returns_empty_object(text: object) -> None:
  assert repair(text) == {}


def test_non_object_json_counts_as_failure() -> None:
  assert repair("[1, 2, 3]") == {}
  assert repair('"just a string"') == {}


def test_prose_falls_back_with_bounded_log(caplog: pytest.LogCaptureFixture) -> None:
  text = "lorem ipsum " * 300
  with caplog.at_level(logging.WARNING, logger="learnpath.ai.json_repair"):
    outcome = repair_with_outcome(text)

  assert outcome.stage == "fallback"
  assert outcome.value == {}
  messages = [record.getMessage() for record in caplog.records if record.name == "learnpath.ai.json_repair"]
  assert messages
  assert all(len(message) < len(text) for message in messages)


def test_strip_fences_leaves_plain_text_alone() -> None:
  assert strip_fences('  {"a": 1}  ') == '{"a": 1}'
  assert strip_fences('```\n{"a": 1}\n```') == '{"a": 1}'


def test_normalize_collapses_whitespace_and_removes_nul() -> None:
  assert normalize('{"a":\n\n   1,\x00 "b": 2}') == '{"a": 1, "b": 2}'


def test_stage_outcomes_report_their_stage() -> None:
  assert parse_strict('{"a": 1}').stage == "strict"
  assert parse_strict("nope").ok is False

  truncated = patch_truncation('{"a": 1} and some closing remarks')
  assert truncated.ok
  assert truncated.value == {"a": 1}

  missing = recover_deep("no braces at all")
  assert not missing.ok
  assert missing.reason == "no opening brace"


def test_outcome_names_the_recovering_stage() -> None:
  assert repair_with_outcome('{"a": 1}').stage == "strict"
  assert repair_with_outcome("{“a”: 1}").stage == "direct"
  assert repair_with_outcome('{"a": 1, "b": "cut').stage == "deep"
