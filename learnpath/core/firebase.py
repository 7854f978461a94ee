"""Firebase Admin bootstrap for ID token checks and Firestore access."""

import logging
from typing import Any

import firebase_admin
from firebase_admin import auth, credentials, firestore
from google.cloud.firestore import Client as FirestoreClient

from learnpath.config import Settings, get_settings

logger = logging.getLogger(__name__)

_REJECTED_TOKEN_ERRORS = (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError, auth.RevokedIdTokenError, auth.CertificateFetchError)


def _credential(settings: Settings) -> credentials.Base | None:
  # None makes the SDK fall back to Application Default Credentials.
  if settings.firebase_service_account_json_path:
    return credentials.Certificate(settings.firebase_service_account_json_path)
  return None


def initialize_firebase(settings: Settings | None = None) -> bool:
  """Initialize the default Firebase app once. Returns whether it is usable."""
  if firebase_admin._apps:
    return True

  settings = settings or get_settings()
  if not settings.firebase_project_id:
    logger.warning("LEARNPATH_FIREBASE_PROJECT_ID is not set; sign-in checks will fail and generated content will not be stored.")
    return False

  try:
    firebase_admin.initialize_app(_credential(settings), {"projectId": settings.firebase_project_id})
  except (ValueError, OSError) as exc:
    logger.error("Failed to initialize Firebase Admin SDK project=%s: %s", settings.firebase_project_id, exc)
    return False

  source = "service account" if settings.firebase_service_account_json_path else "application default credentials"
  logger.info("Firebase Admin SDK initialized project=%s using %s", settings.firebase_project_id, source)
  return True


def get_firestore_client() -> FirestoreClient | None:
  """Return the Firestore client, or None when Firebase is not configured."""
  if not initialize_firebase():
    return None
  try:
    return firestore.client()
  except ValueError as exc:
    logger.error("Failed to get Firestore client: %s", exc)
    return None


def verify_id_token(id_token: str) -> dict[str, Any] | None:
  """Return the decoded claims of a valid Firebase ID token, else None."""
  if not initialize_firebase():
    return None
  try:
    return auth.verify_id_token(id_token)
  except _REJECTED_TOKEN_ERRORS as exc:
    logger.info("Rejected Firebase ID token: %s", type(exc).__name__)
    return None
