"""Lesson generation service: run the pipeline, then persist or log the outcome."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from fastapi.concurrency import run_in_threadpool

from learnpath.ai.orchestrator import LessonPipeline
from learnpath.ai.pipeline.contracts import PipelineResult, PipelineSuccess
from learnpath.storage.lessons_repo import FirestoreLessonsRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LessonGenerationOutcome:
  """Pipeline result plus the id of the persisted quiz, when one was saved."""

  result: PipelineResult
  quiz_id: str | None = None
  created_by: str | None = None


class LessonService:
  """Run the lesson pipeline and persist successful runs."""

  def __init__(self, pipeline: LessonPipeline, repository: FirestoreLessonsRepository | None = None) -> None:
    self._pipeline = pipeline
    self._repository = repository

  async def generate_lesson(self, *, user_id: str, topic: str, phase: str, topic_id: str, roadmap_id: str, lesson_id: str) -> LessonGenerationOutcome:
    """Execute core lesson generation logic."""
    start = time.monotonic()
    result = await self._pipeline.run(topic, phase, lesson_id)
    latency_ms = int((time.monotonic() - start) * 1000)

    if not isinstance(result, PipelineSuccess):
      logger.warning("Lesson generation failed user=%s lesson_id=%s step=%s code=%s latency_ms=%d", user_id, lesson_id, result.error.step, result.error.code, latency_ms)
      if self._repository is not None:
        await run_in_threadpool(self._repository.log_generation_failure, user_id, topic, phase, result.error)
      return LessonGenerationOutcome(result=result, created_by=user_id)

    if self._repository is None:
      logger.warning("Firestore unavailable; generated lesson %s was not persisted.", lesson_id)
      return LessonGenerationOutcome(result=result, created_by=user_id)

    quiz_id = await run_in_threadpool(self._repository.save_generated_lesson, user_id, topic_id, roadmap_id, lesson_id, result.data)
    logger.info("Lesson generated user=%s lesson_id=%s quiz_id=%s latency_ms=%d", user_id, lesson_id, quiz_id, latency_ms)
    return LessonGenerationOutcome(result=result, quiz_id=quiz_id, created_by=user_id)
