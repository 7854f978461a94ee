"""Roadmap generation service."""

from __future__ import annotations

import logging
from typing import Any

from fastapi.concurrency import run_in_threadpool

from learnpath.ai.agents import RoadmapAgent
from learnpath.storage.lessons_repo import FirestoreLessonsRepository

logger = logging.getLogger(__name__)


class RoadmapService:
  """Generate a learning roadmap and store it on the user's topic."""

  def __init__(self, agent: RoadmapAgent, repository: FirestoreLessonsRepository | None = None) -> None:
    self._agent = agent
    self._repository = repository

  async def create_roadmap(self, *, user_id: str, topic_id: str, topic: str, duration: str, level: str, goal: str, target_audience: str) -> dict[str, Any]:
    roadmap = await self._agent.run(topic=topic, duration=duration, level=level, goal=goal, target_audience=target_audience)
    if self._repository is None:
      logger.warning("Firestore unavailable; roadmap for topic %s was not persisted.", topic_id)
      return roadmap

    await run_in_threadpool(self._repository.save_roadmap, user_id, topic_id, roadmap)
    return roadmap
