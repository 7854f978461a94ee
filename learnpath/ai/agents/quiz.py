"""Quiz generation agent implementation."""

from __future__ import annotations

import logging
from typing import Any

from learnpath.ai.agents.base import BaseAgent
from learnpath.ai.agents.prompts import render_quiz_prompt
from learnpath.ai.client import ModelClient
from learnpath.ai.pipeline.contracts import GenerationRequest, Quiz

logger = logging.getLogger(__name__)


def _answer_in_options(question: dict[str, Any]) -> bool:
  answer = question["correct_answer"].strip().lower()
  return any(option.strip().lower() == answer for option in question["options"])


class QuizAgent(BaseAgent):
  """Create a multiple-choice quiz grounded in one lesson."""

  name = "Quiz"

  def __init__(self, client: ModelClient, *, question_count: int = 5, pass_score: int = 80) -> None:
    super().__init__(client)
    self._question_count = question_count
    self._pass_score = pass_score

  async def run(self, lesson_id: str, lesson_content: str) -> dict[str, Any]:
    prompt = render_quiz_prompt(lesson_id, lesson_content, question_count=self._question_count, pass_score=self._pass_score)
    # Quizzes are regenerated on every request so retakes see new questions.
    payload = await self._generate_json(GenerationRequest(prompt=prompt, use_cache=False), Quiz)

    questions = []
    # Schema validation leaves exactly four options on every surviving question.
    for index, question in enumerate(payload.data.get("questions", [])):
      if not _answer_in_options(question):
        logger.warning("Dropping quiz question %d: correct answer is not one of the options", index)
        continue
      questions.append(question)

    if len(questions) > self._question_count:
      questions = questions[: self._question_count]

    logger.info("Generated quiz lesson_id=%s questions=%d", lesson_id, len(questions))
    return {"lesson_id": lesson_id, "questions": questions, "pass_score": self._pass_score}
