"""Request and response models for the HTTP surface."""

from __future__ import annotations

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from learnpath.ai.pipeline.contracts import InvalidQuestion, LessonBundle, QuizQuestion, Recommendation, StepErrorRecord
from learnpath.schema.progress import DailyTaskLesson, SectionStatus

ID_PATTERN = r"^[A-Za-z0-9_-]{1,128}$"


class _TrimmedRequest(BaseModel):
  model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class GenerateLessonRequest(_TrimmedRequest):
  """Request payload for lesson generation."""

  topic: StrictStr = Field(min_length=1, max_length=200, description="Topic of study, e.g. 'React Hooks'.")
  phase: StrictStr = Field(min_length=1, max_length=200, description="Learning phase, e.g. 'Beginner'.")
  topic_id: StrictStr = Field(pattern=ID_PATTERN)
  roadmap_id: StrictStr = Field(pattern=ID_PATTERN)
  lesson_id: StrictStr = Field(pattern=ID_PATTERN)


class GenerateLessonResponse(BaseModel):
  """Response payload for a successful lesson generation run."""

  success: bool = True
  data: LessonBundle
  quiz_id: StrictStr | None = None
  created_by: StrictStr


class PipelineFailureResponse(BaseModel):
  """Response payload naming the pipeline step that failed."""

  success: bool = False
  error: StepErrorRecord


class CreateRoadmapRequest(_TrimmedRequest):
  """Request payload for roadmap generation."""

  topic: StrictStr = Field(min_length=1, max_length=200)
  topic_id: StrictStr = Field(pattern=ID_PATTERN)
  duration: StrictStr = Field(default="3 months", min_length=1, max_length=100)
  level: StrictStr = Field(default="beginner", min_length=1, max_length=100)
  goal: StrictStr = Field(default="Master the fundamentals", min_length=1, max_length=500)
  target_audience: StrictStr = Field(default="Self-taught learners", min_length=1, max_length=200)


class RoadmapResponse(BaseModel):
  """Generated roadmap in the camelCase shape stored for the web client."""

  model_config = ConfigDict(extra="allow")

  title: StrictStr
  overview: StrictStr = ""
  totalDuration: StrictStr = ""  # noqa: N815
  roadmap: list[dict[str, Any]]


class ReviewQuizRequest(_TrimmedRequest):
  """Request payload for reviewing quiz questions against their lesson."""

  lesson_content: StrictStr = Field(min_length=1)
  questions: list[QuizQuestion] = Field(min_length=1, max_length=50)


class QuizReviewResponse(BaseModel):
  """Outcome of a quiz review."""

  relevance_score: float
  invalid_questions: list[InvalidQuestion]
  valid: bool
  review_required: bool


class UpdateProgressRequest(_TrimmedRequest):
  """Request payload for changing one lesson section's status."""

  section_id: StrictStr = Field(min_length=1, max_length=200)
  status: SectionStatus


class RecommendationsResponse(BaseModel):
  """Suggested next lessons."""

  recommendations: list[Recommendation]


class DailyTasksRequest(_TrimmedRequest):
  """Request payload for spreading lessons over consecutive days."""

  topic_id: StrictStr = Field(pattern=ID_PATTERN)
  lessons: list[DailyTaskLesson] = Field(min_length=1, max_length=500)
  tasks_per_day: int = Field(default=3, ge=1, le=50)
  start_date: datetime.date | None = None
