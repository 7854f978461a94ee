"""Roadmap generation agent implementation."""

from __future__ import annotations

import logging
import re
from typing import Any

from learnpath.ai.agents.base import BaseAgent
from learnpath.ai.agents.prompts import render_roadmap_prompt
from learnpath.ai.pipeline.contracts import GenerationRequest, Roadmap

logger = logging.getLogger(__name__)

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def _slugify(text: str) -> str:
  return _SLUG_PATTERN.sub("-", text.lower()).strip("-")


def _fill_ids(roadmap: list[dict[str, Any]]) -> None:
  """Assign stable phase and lesson ids where the model left them blank."""
  seen_lessons: set[str] = set()
  for phase_index, phase in enumerate(roadmap, start=1):
    if not phase["phaseId"]:
      phase["phaseId"] = _slugify(phase["title"]) or f"phase-{phase_index}"

    for lesson_index, lesson in enumerate(phase["lessons"], start=1):
      lesson_id = lesson["lessonId"] or f"{phase['phaseId']}-{lesson_index}"
      # Lesson ids key Firestore documents, so duplicates get a suffix.
      candidate = lesson_id
      suffix = 2
      while candidate in seen_lessons:
        candidate = f"{lesson_id}-{suffix}"
        suffix += 1
      seen_lessons.add(candidate)
      lesson["lessonId"] = candidate


class RoadmapAgent(BaseAgent):
  """Design a phased learning roadmap for a topic."""

  name = "Roadmap"

  async def run(self, *, topic: str, duration: str, level: str, goal: str, target_audience: str) -> dict[str, Any]:
    prompt = render_roadmap_prompt(topic=topic, duration=duration, level=level, goal=goal, target_audience=target_audience)
    payload = await self._generate_json(GenerationRequest(prompt=prompt), Roadmap)
    payload.raise_for_errors("roadmap")

    roadmap = dict(payload.data)
    if not roadmap["totalDuration"]:
      roadmap["totalDuration"] = duration
    _fill_ids(roadmap["roadmap"])
    logger.info("Generated roadmap topic=%r phases=%d", topic, len(roadmap["roadmap"]))
    return roadmap
