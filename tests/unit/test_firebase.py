from __future__ import annotations

from unittest.mock import patch

import firebase_admin
import pytest
from firebase_admin import auth

from learnpath.config import get_settings
from learnpath.core import firebase


@pytest.fixture
def no_firebase_app(monkeypatch: pytest.MonkeyPatch):
  monkeypatch.setattr(firebase_admin, "_apps", {})
  monkeypatch.delenv("LEARNPATH_FIREBASE_PROJECT_ID", raising=False)
  get_settings.cache_clear()
  yield
  get_settings.cache_clear()


def test_unconfigured_firebase_disables_storage_and_auth(no_firebase_app) -> None:
  assert firebase.initialize_firebase() is False
  assert firebase.get_firestore_client() is None
  assert firebase.verify_id_token("token") is None


def test_initialization_failure_is_logged_not_raised(no_firebase_app, monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("LEARNPATH_FIREBASE_PROJECT_ID", "learnpath-test")
  get_settings.cache_clear()

  with patch.object(firebase.firebase_admin, "initialize_app", side_effect=ValueError("bad credentials")) as initialize_app:
    assert firebase.initialize_firebase() is False
  initialize_app.assert_called_once_with(None, {"projectId": "learnpath-test"})


def test_rejected_tokens_return_none(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setattr(firebase_admin, "_apps", {"[DEFAULT]": object()})

  with patch.object(firebase.auth, "verify_id_token", side_effect=auth.InvalidIdTokenError("malformed")):
    assert firebase.verify_id_token("bogus") is None

  with patch.object(firebase.auth, "verify_id_token", return_value={"uid": "user-1"}):
    assert firebase.verify_id_token("good") == {"uid": "user-1"}
