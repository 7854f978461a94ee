"""Quiz review agent implementation."""

from __future__ import annotations

import logging
from typing import Any

from learnpath.ai.agents.base import BaseAgent
from learnpath.ai.agents.prompts import render_quiz_review_prompt
from learnpath.ai.pipeline.contracts import GenerationRequest, QuizReview

logger = logging.getLogger(__name__)

RELEVANCE_THRESHOLD = 0.8


class QuizReviewAgent(BaseAgent):
  """Check that quiz questions are answerable from the lesson alone."""

  name = "QuizReview"

  async def run(self, lesson_content: str, questions: list[dict[str, Any]]) -> dict[str, Any]:
    request = GenerationRequest(prompt=render_quiz_review_prompt(lesson_content, questions))
    payload = await self._generate_json(request, QuizReview)
    payload.raise_for_errors("quiz_review")

    review = dict(payload.data)
    score = review["relevance_score"]
    valid = score >= RELEVANCE_THRESHOLD
    review["valid"] = valid
    review["review_required"] = not valid

    # Out-of-range indices point at no question; keep them out of the report.
    review["invalid_questions"] = [item for item in review["invalid_questions"] if -1 <= item["index"] < len(questions)]
    if not valid and not review["invalid_questions"]:
      review["invalid_questions"].append(
        {
          "index": -1,
          "reason": f"The relevance score is below {RELEVANCE_THRESHOLD}, but no specific questions were itemized. Manual review is recommended.",
        }
      )

    logger.info("Quiz review score=%.2f valid=%s flagged=%d", score, valid, len(review["invalid_questions"]))
    return review
