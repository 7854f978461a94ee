"""Lesson progress, learning statistics and daily task models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SectionStatus = Literal["to_learn", "learning", "learned"]
LessonStatus = Literal["Learning", "Learned"]


class OutlineSection(BaseModel):
  """One trackable section of a stored lesson."""

  sectionId: str  # noqa: N815
  title: str
  status: SectionStatus = "to_learn"


class LessonProgress(BaseModel):
  """Result of changing one section's status."""

  lesson_id: str
  section_id: str
  status: SectionStatus
  progress_percent: int = Field(ge=0, le=100)
  lesson_status: LessonStatus


class ProgressStats(BaseModel):
  """Learning totals across every stored lesson of one user."""

  total_topics: int = 0
  total_lessons: int = 0
  completed_lessons: int = 0
  average_progress: int = 0
  learning_streak: int = 0
  last_updated: str


class DailyTaskLesson(BaseModel):
  """A lesson to schedule."""

  model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

  lessonId: str = Field(min_length=1)  # noqa: N815
  title: str = ""
  description: str = ""


class DailyTask(BaseModel):
  """A lesson assigned to a calendar day."""

  userId: str  # noqa: N815
  topicId: str  # noqa: N815
  lessonId: str  # noqa: N815
  date: str
