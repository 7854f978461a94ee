"""Shared FastAPI dependencies for model access, persistence and services."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, HTTPException, status

from learnpath.ai.agents import QuizReviewAgent, RecommendationAgent, RoadmapAgent
from learnpath.ai.client import ModelClient, build_model_client
from learnpath.ai.orchestrator import LessonPipeline
from learnpath.config import Settings, get_settings
from learnpath.core.firebase import get_firestore_client
from learnpath.services.lessons import LessonService
from learnpath.services.progress import ProgressService
from learnpath.services.roadmaps import RoadmapService
from learnpath.storage.lessons_repo import FirestoreLessonsRepository

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_model_client() -> ModelClient:
  """Process-wide model client so every request shares one response cache."""
  return build_model_client(get_settings())


def get_lessons_repository() -> FirestoreLessonsRepository | None:
  """Return the Firestore repository, or None when Firestore is not configured."""
  client = get_firestore_client()
  if client is None:
    return None
  return FirestoreLessonsRepository(client)


def get_lesson_service(
  client: ModelClient = Depends(get_model_client),  # noqa: B008
  repository: FirestoreLessonsRepository | None = Depends(get_lessons_repository),  # noqa: B008
  settings: Settings = Depends(get_settings),  # noqa: B008
) -> LessonService:
  return LessonService(LessonPipeline.from_client(client, settings), repository)


def get_roadmap_service(
  client: ModelClient = Depends(get_model_client),  # noqa: B008
  repository: FirestoreLessonsRepository | None = Depends(get_lessons_repository),  # noqa: B008
) -> RoadmapService:
  return RoadmapService(RoadmapAgent(client), repository)


def get_quiz_review_agent(client: ModelClient = Depends(get_model_client)) -> QuizReviewAgent:  # noqa: B008
  return QuizReviewAgent(client)


def get_progress_service(
  client: ModelClient = Depends(get_model_client),  # noqa: B008
  repository: FirestoreLessonsRepository | None = Depends(get_lessons_repository),  # noqa: B008
) -> ProgressService:
  if repository is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Lesson storage is not configured.")
  return ProgressService(repository, RecommendationAgent(client))
