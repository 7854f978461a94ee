"""Quiz review routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from learnpath.ai.agents import QuizReviewAgent
from learnpath.api.deps import get_quiz_review_agent
from learnpath.api.models import QuizReviewResponse, ReviewQuizRequest
from learnpath.core.security import get_current_user_id

router = APIRouter()


@router.post("/review", response_model=QuizReviewResponse)
async def review_quiz(
  request: ReviewQuizRequest,
  _user_id: str = Depends(get_current_user_id),  # noqa: B008
  agent: QuizReviewAgent = Depends(get_quiz_review_agent),  # noqa: B008
) -> QuizReviewResponse:
  """Flag quiz questions that cannot be answered from the lesson content."""
  review = await agent.run(request.lesson_content, [question.model_dump() for question in request.questions])
  return QuizReviewResponse(**review)
