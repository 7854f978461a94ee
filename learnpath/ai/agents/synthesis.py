"""Lesson synthesis agent implementation."""

from __future__ import annotations

import logging
from typing import Any

from learnpath.ai.agents.base import BaseAgent
from learnpath.ai.agents.prompts import render_synthesis_prompt
from learnpath.ai.pipeline.contracts import GenerationRequest, LessonDraft

logger = logging.getLogger(__name__)


def _video_channel(domain: str) -> str:
  if domain in ("youtube.com", "m.youtube.com", "youtu.be"):
    return "YouTube"
  return domain


def video_links_from_sources(sources: list[dict[str, Any]]) -> list[dict[str, str]]:
  """Build lesson video links from the video-type sources."""
  return [
    {"title": source.get("title", ""), "url": source.get("url", ""), "channel": _video_channel(source.get("domain", ""))}
    for source in sources
    if source.get("type") == "video"
  ]


class SynthesisAgent(BaseAgent):
  """Write a structured Markdown lesson from discovered sources."""

  name = "Synthesis"

  async def run(self, topic: str, phase: str, sources: list[dict[str, Any]]) -> dict[str, Any]:
    request = GenerationRequest(prompt=render_synthesis_prompt(topic, phase, sources))
    payload = await self._generate_json(request, LessonDraft)

    content = payload.data.get("content", "")
    if not content.strip():
      logger.warning("Synthesis response has no lesson content topic=%r phase=%r", topic, phase)

    # Sources and videos are assembled from the input, not from the model.
    lesson = dict(payload.data)
    lesson["sources"] = [{**source, "short_note": f"A resource for learning about {topic}."} for source in sources]
    lesson["video_links"] = video_links_from_sources(sources)
    logger.info("Synthesized lesson title=%r words=%d videos=%d", lesson["title"], len(content.split()), len(lesson["video_links"]))
    return lesson
