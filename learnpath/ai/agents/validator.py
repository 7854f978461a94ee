"""Lesson validation agent implementation."""

from __future__ import annotations

import logging
import re
from typing import Any

from learnpath.ai.agents.base import BaseAgent
from learnpath.ai.agents.prompts import render_validation_prompt
from learnpath.ai.client import ModelClient
from learnpath.ai.pipeline.contracts import GenerationRequest, ValidationVerdict

logger = logging.getLogger(__name__)

_HEADING_PATTERN = re.compile(r"^#{2,3}\s+\S", re.MULTILINE)


def structure_issues(content: str, *, min_words: int) -> list[dict[str, str]]:
  """Return the structural problems found without asking the model."""
  issues: list[dict[str, str]] = []
  word_count = len(content.split())
  if word_count < min_words:
    issues.append({"type": "Structure", "detail": f"Lesson has {word_count} words; at least {min_words} are required."})
  if not _HEADING_PATTERN.search(content):
    issues.append({"type": "Structure", "detail": "Lesson has no ## or ### section headings."})
  return issues


class LessonValidatorAgent(BaseAgent):
  """Judge a synthesized lesson for accuracy and structure."""

  name = "LessonValidator"

  def __init__(self, client: ModelClient, *, confidence_threshold: float = 0.7, min_words: int = 100) -> None:
    super().__init__(client)
    self._confidence_threshold = confidence_threshold
    self._min_words = min_words

  async def run(self, lesson: dict[str, Any]) -> dict[str, Any]:
    issues = structure_issues(str(lesson.get("content") or ""), min_words=self._min_words)
    if issues:
      logger.info("Lesson failed structure checks: %s", [issue["detail"] for issue in issues])
      return {"valid": False, "confidence_score": 0.0, "issues": issues}

    request = GenerationRequest(prompt=render_validation_prompt(lesson))
    payload = await self._generate_json(request, ValidationVerdict)
    verdict = dict(payload.data)

    # A missing verdict stays missing; the pipeline reports it as invalid.
    if "valid" not in verdict:
      logger.warning("Validator response has no usable 'valid' field: %s", payload.errors)
      return verdict

    confidence = verdict["confidence_score"]
    if verdict["valid"] and confidence < self._confidence_threshold:
      verdict["valid"] = False
      if not verdict["issues"]:
        verdict["issues"].append(
          {
            "type": "Low Confidence",
            "detail": (
              f"The overall confidence score of {confidence} is below the required threshold of {self._confidence_threshold}, "
              "but no specific issues were itemized. Manual review is required."
            ),
          }
        )
    return verdict
