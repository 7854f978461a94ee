"""Lesson generation and progress routes."""

from __future__ import annotations

import datetime
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import JSONResponse

from learnpath.ai.pipeline.contracts import PipelineSuccess, StepErrorRecord
from learnpath.api.deps import get_lesson_service, get_progress_service
from learnpath.api.models import (
  ID_PATTERN,
  DailyTasksRequest,
  GenerateLessonRequest,
  GenerateLessonResponse,
  PipelineFailureResponse,
  RecommendationsResponse,
  UpdateProgressRequest,
)
from learnpath.core.security import get_current_user_id
from learnpath.schema.progress import DailyTask, LessonProgress, ProgressStats
from learnpath.services.lessons import LessonService
from learnpath.services.progress import ProgressService, plan_daily_tasks
from learnpath.storage.lessons_repo import LessonNotFoundError, SectionNotFoundError

router = APIRouter()
logger = logging.getLogger(__name__)


def _public_error(error: StepErrorRecord) -> StepErrorRecord:
  """Drop the raw model output preview a parse failure carries."""
  if not isinstance(error.details, dict) or "preview" not in error.details:
    return error
  details = {key: value for key, value in error.details.items() if key != "preview"}
  return error.model_copy(update={"details": details or None})


@router.post("/generate", response_model=GenerateLessonResponse, responses={status.HTTP_502_BAD_GATEWAY: {"model": PipelineFailureResponse}})
async def generate_lesson(
  request: GenerateLessonRequest,
  user_id: str = Depends(get_current_user_id),  # noqa: B008
  service: LessonService = Depends(get_lesson_service),  # noqa: B008
) -> GenerateLessonResponse | JSONResponse:
  """Run the lesson pipeline for one roadmap lesson and persist the result."""
  outcome = await service.generate_lesson(
    user_id=user_id, topic=request.topic, phase=request.phase, topic_id=request.topic_id, roadmap_id=request.roadmap_id, lesson_id=request.lesson_id
  )

  if not isinstance(outcome.result, PipelineSuccess):
    # Failure bodies name the step; they carry no prompts or model output.
    failure = PipelineFailureResponse(error=_public_error(outcome.result.error))
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=failure.model_dump(mode="json"))

  return GenerateLessonResponse(data=outcome.result.data, quiz_id=outcome.quiz_id, created_by=user_id)


@router.get("/progress/stats", response_model=ProgressStats)
async def get_progress_stats(
  user_id: str = Depends(get_current_user_id),  # noqa: B008
  service: ProgressService = Depends(get_progress_service),  # noqa: B008
) -> ProgressStats:
  """Summarize the learner's topics, lessons, average progress and streak."""
  return await service.progress_stats(user_id)


@router.get("/recommendations", response_model=RecommendationsResponse)
async def recommend_next_lessons(
  user_id: str = Depends(get_current_user_id),  # noqa: B008
  service: ProgressService = Depends(get_progress_service),  # noqa: B008
) -> RecommendationsResponse:
  """Suggest what to learn next from the learner's recent lessons."""
  return RecommendationsResponse(**await service.recommend_next_lessons(user_id))


@router.post("/daily-tasks", response_model=list[DailyTask])
async def create_daily_tasks(request: DailyTasksRequest, user_id: str = Depends(get_current_user_id)) -> list[DailyTask]:  # noqa: B008
  start = request.start_date or datetime.datetime.now(datetime.UTC).date()
  return plan_daily_tasks(request.lessons, user_id=user_id, topic_id=request.topic_id, tasks_per_day=request.tasks_per_day, start=start)


@router.get("/{topic_id}/{roadmap_id}/{lesson_id}")
async def get_lesson(
  topic_id: str = Path(pattern=ID_PATTERN),
  roadmap_id: str = Path(pattern=ID_PATTERN),
  lesson_id: str = Path(pattern=ID_PATTERN),
  user_id: str = Depends(get_current_user_id),  # noqa: B008
  service: ProgressService = Depends(get_progress_service),  # noqa: B008
) -> dict:
  """Return a stored lesson with its outline and quizzes."""
  try:
    return await service.get_lesson(user_id=user_id, topic_id=topic_id, roadmap_id=roadmap_id, lesson_id=lesson_id)
  except LessonNotFoundError as exc:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.patch("/{topic_id}/{roadmap_id}/{lesson_id}/progress", response_model=LessonProgress)
async def update_lesson_progress(
  request: UpdateProgressRequest,
  topic_id: str = Path(pattern=ID_PATTERN),
  roadmap_id: str = Path(pattern=ID_PATTERN),
  lesson_id: str = Path(pattern=ID_PATTERN),
  user_id: str = Depends(get_current_user_id),  # noqa: B008
  service: ProgressService = Depends(get_progress_service),  # noqa: B008
) -> LessonProgress:
  """Set a section's status and return the recomputed lesson progress."""
  try:
    return await service.update_progress(
      user_id=user_id, topic_id=topic_id, roadmap_id=roadmap_id, lesson_id=lesson_id, section_id=request.section_id, status=request.status
    )
  except (LessonNotFoundError, SectionNotFoundError) as exc:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
