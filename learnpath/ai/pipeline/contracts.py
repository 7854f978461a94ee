"""Shared data contracts for the generation agents and the lesson pipeline."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationInfo, field_validator

from learnpath.schema.validation import LenientModel, case_folded, clamped, drop_invalid, flag_strings, lenient, warn

SourceType = Literal["article", "doc", "video", "tutorial"]
Difficulty = Literal["beginner", "intermediate", "advanced"]

QUIZ_OPTION_COUNT = 4


class GenerationRequest(BaseModel):
  """A single prompt sent to the model, plus whether cached text may be reused."""

  prompt: str
  use_cache: bool = True
  model_config = ConfigDict(frozen=True)


class Source(LenientModel):
  """A learning source found during discovery."""

  title: str
  url: str
  domain: str = ""
  type: Annotated[SourceType, case_folded(SourceType)] = "article"
  relevance: Annotated[float, clamped(0.0, 1.0)] = 0.5


class LessonSource(Source):
  """A source echoed into a synthesized lesson with a short note."""

  short_note: str = ""


class VideoLink(LenientModel):
  """A video resource attached to a lesson."""

  title: str
  url: str
  channel: str = ""


class ValidationIssue(LenientModel):
  """A problem reported by the lesson validator."""

  type: str = "General"
  detail: str = ""


class QuizQuestion(LenientModel):
  """A multiple-choice quiz question."""

  question: str
  options: list[str]
  correct_answer: str
  explanation: str = ""

  @field_validator("options")
  @classmethod
  def _four_options(cls, options: list[str], info: ValidationInfo) -> list[str]:
    # Extra options are trimmed only for recovered model output.
    if len(options) > QUIZ_OPTION_COUNT and lenient(info):
      warn(info, f"options: {len(options)} items truncated to {QUIZ_OPTION_COUNT}")
      options = options[:QUIZ_OPTION_COUNT]
    if len(options) != QUIZ_OPTION_COUNT:
      raise ValueError(f"expected exactly {QUIZ_OPTION_COUNT} options, got {len(options)}")
    return options


class SourceList(LenientModel):
  """Step output of source discovery."""

  kind: Literal["sources"] = "sources"
  sources: Annotated[list[Source], drop_invalid] = Field(default_factory=list)


class LessonDraft(LenientModel):
  """Step output of lesson synthesis."""

  kind: Literal["lesson_draft"] = "lesson_draft"
  title: str = "Untitled lesson"
  overview: str = ""
  content: str
  sources: Annotated[list[LessonSource], drop_invalid] = Field(default_factory=list)
  estimated_time_min: Annotated[int, clamped(1, 600)] = 30
  video_links: Annotated[list[VideoLink], drop_invalid] = Field(default_factory=list)


class ValidationVerdict(LenientModel):
  """Step output of lesson validation."""

  kind: Literal["validation_verdict"] = "validation_verdict"
  valid: Annotated[StrictBool, flag_strings]
  confidence_score: Annotated[float, clamped(0.0, 1.0)] = 0.0
  issues: Annotated[list[ValidationIssue], drop_invalid] = Field(default_factory=list)


class Quiz(LenientModel):
  """Step output of quiz generation."""

  kind: Literal["quiz"] = "quiz"
  lesson_id: str = ""
  questions: Annotated[list[QuizQuestion], drop_invalid] = Field(default_factory=list)
  pass_score: Annotated[int, clamped(0, 100)] = 80


class RoadmapLesson(LenientModel):
  """A lesson slot inside a roadmap phase."""

  lessonId: str = ""  # noqa: N815
  title: str
  description: str = ""
  difficulty: Annotated[Difficulty, case_folded(Difficulty)] = "beginner"


class RoadmapPhase(LenientModel):
  """A roadmap phase and its lessons."""

  phaseId: str = ""  # noqa: N815
  title: str
  goal: str = ""
  duration: str = ""
  lessons: Annotated[list[RoadmapLesson], drop_invalid] = Field(default_factory=list)


class Roadmap(LenientModel):
  """A phased learning roadmap in the camelCase shape the web client stores."""

  title: str
  overview: str = ""
  totalDuration: str = ""  # noqa: N815
  roadmap: Annotated[list[RoadmapPhase], drop_invalid]

  @field_validator("roadmap")
  @classmethod
  def _has_phases(cls, phases: list[RoadmapPhase]) -> list[RoadmapPhase]:
    if not phases:
      raise ValueError("expected at least one phase")
    return phases


class InvalidQuestion(LenientModel):
  """A quiz question flagged by review."""

  index: int
  reason: str = ""


class QuizReview(LenientModel):
  """Relevance review of quiz questions against their lesson."""

  relevance_score: Annotated[float, clamped(0.0, 1.0)]
  invalid_questions: Annotated[list[InvalidQuestion], drop_invalid] = Field(default_factory=list)


class Recommendation(LenientModel):
  """A suggested next lesson."""

  title: str
  description: str = ""
  reason: str = ""
  difficulty: Annotated[Difficulty, case_folded(Difficulty)] = "beginner"


class RecommendationList(LenientModel):
  """Next-lesson suggestions for a learner."""

  recommendations: Annotated[list[Recommendation], drop_invalid] = Field(default_factory=list)


StepOutput = Annotated[SourceList | LessonDraft | ValidationVerdict | Quiz, Field(discriminator="kind")]


class LessonBundle(BaseModel):
  """Aggregate of every step output for a completed run."""

  lesson: LessonDraft
  validation: ValidationVerdict
  quiz: Quiz
  sources: list[Source] = Field(default_factory=list)


class StepErrorRecord(BaseModel):
  """Serializable form of a step failure."""

  code: str
  step: str
  message: str
  details: Any = None


class PipelineSuccess(BaseModel):
  """A pipeline run that reached the final state."""

  success: Literal[True] = True
  data: LessonBundle


class PipelineFailure(BaseModel):
  """A pipeline run that stopped at the first failing step."""

  success: Literal[False] = False
  error: StepErrorRecord


PipelineResult = PipelineSuccess | PipelineFailure
