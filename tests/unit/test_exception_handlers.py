from __future__ import annotations

from learnpath.core.exceptions import _error_payload, _json_safe, _sanitize_validation_errors, _scrub


def test_validation_errors_drop_raw_input() -> None:
  errors = [{"loc": ("body", "topic"), "msg": "too long", "input": "secret", "ctx": {"max_length": 200, "input": "secret"}}]

  sanitized = _sanitize_validation_errors(errors)

  assert sanitized == [{"loc": ["body", "topic"], "msg": "too long", "ctx": {"max_length": 200}}]


def test_scrub_drops_payload_keys_at_any_depth() -> None:
  detail = {"message": "bad", "body": "raw", "nested": [{"content": "x", "field": "topic"}]}

  assert _scrub(detail) == {"message": "bad", "nested": [{"field": "topic"}]}


def test_exceptions_are_rendered_as_strings() -> None:
  assert _json_safe(ValueError("nope")) == "ValueError: nope"
  assert _json_safe(KeyError()) == "KeyError"
  assert _json_safe({1: {2, 3}}) in ({"1": [2, 3]}, {"1": [3, 2]})


def test_error_payload_includes_request_id_when_known() -> None:
  assert _error_payload("oops", request_id="abc") == {"detail": "oops", "requestId": "abc"}
  assert _error_payload("oops") == {"detail": "oops"}
