"""Lesson progress tracking, learning statistics, recommendations and daily planning."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Sequence
from typing import Any

from fastapi.concurrency import run_in_threadpool

from learnpath.ai.agents import RecommendationAgent
from learnpath.schema.progress import DailyTask, DailyTaskLesson, LessonProgress, ProgressStats, SectionStatus
from learnpath.storage.lessons_repo import FirestoreLessonsRepository

logger = logging.getLogger(__name__)

CONTEXT_LESSONS = 5


def learning_context(lessons: Sequence[dict[str, Any]], *, limit: int = CONTEXT_LESSONS) -> str:
  """Summarize the most recently touched lessons, one line each."""
  recent = sorted(lessons, key=lambda lesson: str(lesson.get("updated_at") or lesson.get("created_at") or ""), reverse=True)[:limit]
  lines = [
    f"- {lesson.get('title') or lesson.get('lesson_id', 'Untitled lesson')} (topic {lesson.get('topic_id', '?')}): "
    f"{lesson.get('status', 'Learning')}, {int(lesson.get('progressPercent') or 0)}% complete"
    for lesson in recent
  ]
  return "\n".join(lines)


def plan_daily_tasks(lessons: Sequence[DailyTaskLesson], *, user_id: str, topic_id: str, tasks_per_day: int = 3, start: datetime.date) -> list[DailyTask]:
  """Assign lessons to consecutive days, ``tasks_per_day`` at a time, in order."""
  if tasks_per_day < 1:
    raise ValueError("tasks_per_day must be at least 1")
  return [
    DailyTask(userId=user_id, topicId=topic_id, lessonId=lesson.lessonId, date=(start + datetime.timedelta(days=index // tasks_per_day)).isoformat())
    for index, lesson in enumerate(lessons)
  ]


class ProgressService:
  """Read and update stored lessons on behalf of one learner."""

  def __init__(self, repository: FirestoreLessonsRepository, recommender: RecommendationAgent) -> None:
    self._repository = repository
    self._recommender = recommender

  async def get_lesson(self, *, user_id: str, topic_id: str, roadmap_id: str, lesson_id: str) -> dict[str, Any]:
    return await run_in_threadpool(self._repository.get_lesson, user_id, topic_id, roadmap_id, lesson_id)

  async def update_progress(self, *, user_id: str, topic_id: str, roadmap_id: str, lesson_id: str, section_id: str, status: SectionStatus) -> LessonProgress:
    return await run_in_threadpool(self._repository.update_lesson_progress, user_id, topic_id, roadmap_id, lesson_id, section_id, status)

  async def progress_stats(self, user_id: str) -> ProgressStats:
    return await run_in_threadpool(self._repository.progress_stats, user_id)

  async def recommend_next_lessons(self, user_id: str) -> dict[str, Any]:
    _topic_count, lessons = await run_in_threadpool(self._repository.list_lessons, user_id)
    logger.info("Recommending next lessons user=%s stored_lessons=%d", user_id, len(lessons))
    return await self._recommender.run(learning_context(lessons))
