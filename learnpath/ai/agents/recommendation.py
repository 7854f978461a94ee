"""Next-lesson recommendation agent implementation."""

from __future__ import annotations

import logging
from typing import Any

from learnpath.ai.agents.base import BaseAgent
from learnpath.ai.agents.prompts import render_recommendation_prompt
from learnpath.ai.errors import SchemaValidationError
from learnpath.ai.pipeline.contracts import GenerationRequest, RecommendationList

logger = logging.getLogger(__name__)

RECOMMENDATION_COUNT = 3

# Offered to learners with no stored lessons yet.
STARTER_RECOMMENDATIONS = (
  {
    "title": "Introduction to Artificial Intelligence",
    "description": "The fundamental concepts of AI and where it shows up in daily life.",
    "reason": "No learning history yet, so the basics come first.",
    "difficulty": "beginner",
  },
  {
    "title": "How Computers Learn from Data",
    "description": "The principles of machine learning through small, concrete examples.",
    "reason": "Builds a foundation before more advanced topics.",
    "difficulty": "beginner",
  },
)


class RecommendationAgent(BaseAgent):
  """Suggest the next lessons from a summary of recent progress."""

  name = "Recommendation"

  async def run(self, learning_context: str) -> dict[str, Any]:
    if not learning_context.strip():
      logger.info("No learning context; returning starter recommendations")
      return {"recommendations": [dict(item) for item in STARTER_RECOMMENDATIONS]}

    prompt = render_recommendation_prompt(learning_context, count=RECOMMENDATION_COUNT)
    payload = await self._generate_json(GenerationRequest(prompt=prompt, use_cache=False), RecommendationList)
    recommendations = payload.data.get("recommendations", [])[:RECOMMENDATION_COUNT]
    if not recommendations:
      raise SchemaValidationError("Recommendation response had no usable recommendations.", errors=payload.errors or ["recommendations: empty"])

    logger.info("Recommended %d next lessons", len(recommendations))
    return {"recommendations": recommendations}
