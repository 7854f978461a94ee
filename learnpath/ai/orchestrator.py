"""Orchestration for the multi-step lesson generation pipeline."""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from learnpath.ai.agents import LessonValidatorAgent, QuizAgent, SourceDiscoveryAgent, SynthesisAgent
from learnpath.ai.client import ModelClient
from learnpath.ai.errors import ModelError, ParseError, SchemaValidationError, StepError
from learnpath.ai.pipeline.contracts import (
  LessonBundle,
  LessonDraft,
  PipelineFailure,
  PipelineResult,
  PipelineSuccess,
  Quiz,
  SourceList,
  StepErrorRecord,
  ValidationVerdict,
)
from learnpath.config import Settings

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

SearchSources = Callable[[str, str], Awaitable[dict[str, Any]]]
SynthesizeLesson = Callable[[str, str, list[dict[str, Any]]], Awaitable[dict[str, Any]]]
ValidateLesson = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]
GenerateQuiz = Callable[[str, str], Awaitable[dict[str, Any]]]

STEP_SEARCH_SOURCES = "searchSources"
STEP_SYNTHESIZE_LESSON = "synthesizeLesson"
STEP_VALIDATE_LESSON = "validateLesson"
STEP_GENERATE_QUIZ = "generateQuiz"


class PipelineState(str, enum.Enum):
  """Forward-only states of a single pipeline run."""

  SEARCHING_SOURCES = "searching_sources"
  SYNTHESIZING = "synthesizing"
  VALIDATING = "validating"
  GENERATING_QUIZ = "generating_quiz"
  DONE = "done"
  FAILED = "failed"


@dataclass(frozen=True)
class PipelineCollaborators:
  """Async callables that produce each step's JSON payload."""

  search_sources: SearchSources
  synthesize_lesson: SynthesizeLesson
  validate_lesson: ValidateLesson
  generate_quiz: GenerateQuiz


def _step_error_from_exception(step: str, exc: Exception) -> StepError:
  """Map an exception raised inside a step to a structured step error."""
  if isinstance(exc, StepError):
    return exc
  if isinstance(exc, ModelError):
    return StepError(step=step, code="MODEL_ERROR", message=str(exc), details=exc.as_details())
  if isinstance(exc, ParseError):
    return StepError(step=step, code="PARSE_ERROR", message=str(exc), details={"preview": exc.preview} if exc.preview else None)
  if isinstance(exc, SchemaValidationError):
    return StepError(step=step, code="SCHEMA_INVALID", message=str(exc), details=exc.errors)
  return StepError(step=step, code="UNEXPECTED_ERROR", message=f"{type(exc).__name__}: {exc}")


def _coerce(model: type[_ModelT], raw: Any, *, step: str, code: str) -> _ModelT:
  """Convert a collaborator payload into its typed step result."""
  if not isinstance(raw, dict):
    raise StepError(step=step, code=code, message=f"Expected a JSON object, got {type(raw).__name__}.")
  # The discriminator is assigned here, never taken from the collaborator.
  fields = {key: value for key, value in raw.items() if key != "kind"}
  try:
    return model.model_validate(fields)
  except ValidationError as exc:
    raise StepError(step=step, code=code, message=f"Response does not match {model.__name__}.", details=exc.errors(include_url=False, include_input=False)) from exc


class LessonPipeline:
  """Run source discovery, synthesis, validation and quiz generation in order."""

  def __init__(self, collaborators: PipelineCollaborators) -> None:
    self._collaborators = collaborators

  @classmethod
  def from_client(cls, client: ModelClient, settings: Settings | None = None) -> LessonPipeline:
    """Build the default pipeline from the prompt-driven agents."""
    validator_kwargs: dict[str, Any] = {}
    quiz_kwargs: dict[str, Any] = {}
    if settings is not None:
      validator_kwargs = {"confidence_threshold": settings.validation_confidence_threshold, "min_words": settings.lesson_min_words}
      quiz_kwargs = {"question_count": settings.quiz_question_count, "pass_score": settings.quiz_pass_score}

    collaborators = PipelineCollaborators(
      search_sources=SourceDiscoveryAgent(client).run,
      synthesize_lesson=SynthesisAgent(client).run,
      validate_lesson=LessonValidatorAgent(client, **validator_kwargs).run,
      generate_quiz=QuizAgent(client, **quiz_kwargs).run,
    )
    return cls(collaborators)

  async def run(self, topic: str, phase: str, lesson_id: str) -> PipelineResult:
    """Execute every step; the first failure ends the run. Never raises."""
    started = time.monotonic()
    state = PipelineState.SEARCHING_SOURCES
    step = STEP_SEARCH_SOURCES
    logger.info("Lesson pipeline started lesson_id=%s topic=%r phase=%r", lesson_id, topic, phase)

    try:
      sources = await self._search_sources(topic, phase)

      state, step = PipelineState.SYNTHESIZING, STEP_SYNTHESIZE_LESSON
      logger.info("Pipeline state=%s lesson_id=%s", state.value, lesson_id)
      lesson = await self._synthesize(topic, phase, sources)

      state, step = PipelineState.VALIDATING, STEP_VALIDATE_LESSON
      logger.info("Pipeline state=%s lesson_id=%s", state.value, lesson_id)
      verdict = await self._validate(lesson)

      state, step = PipelineState.GENERATING_QUIZ, STEP_GENERATE_QUIZ
      logger.info("Pipeline state=%s lesson_id=%s", state.value, lesson_id)
      quiz = await self._generate_quiz(lesson_id, lesson)
    except Exception as exc:  # noqa: BLE001
      error = _step_error_from_exception(step, exc)
      if isinstance(exc, StepError):
        logger.warning("Pipeline step %s failed in state=%s code=%s: %s", step, state.value, error.code, error.message)
      else:
        logger.error("Pipeline step %s raised in state=%s", step, state.value, exc_info=True)
      logger.info("Pipeline state=%s lesson_id=%s elapsed=%.2fs", PipelineState.FAILED.value, lesson_id, time.monotonic() - started)
      return PipelineFailure(error=StepErrorRecord(**error.as_dict()))

    logger.info("Pipeline state=%s lesson_id=%s elapsed=%.2fs", PipelineState.DONE.value, lesson_id, time.monotonic() - started)
    return PipelineSuccess(data=LessonBundle(lesson=lesson, validation=verdict, quiz=quiz, sources=sources.sources))

  async def _search_sources(self, topic: str, phase: str) -> SourceList:
    raw = await self._collaborators.search_sources(topic, phase)
    result = _coerce(SourceList, raw, step=STEP_SEARCH_SOURCES, code="SOURCES_INVALID")
    if not result.sources:
      raise StepError(step=STEP_SEARCH_SOURCES, code="NO_SOURCES", message=f"No sources found for topic {topic!r} and phase {phase!r}.")
    return result

  async def _synthesize(self, topic: str, phase: str, sources: SourceList) -> LessonDraft:
    source_payload = [source.model_dump() for source in sources.sources]
    raw = await self._collaborators.synthesize_lesson(topic, phase, source_payload)
    lesson = _coerce(LessonDraft, raw, step=STEP_SYNTHESIZE_LESSON, code="SYNTHESIS_INVALID")
    if not lesson.content.strip():
      raise StepError(step=STEP_SYNTHESIZE_LESSON, code="SYNTHESIS_INVALID", message="Synthesized lesson has no content.")
    return lesson

  async def _validate(self, lesson: LessonDraft) -> ValidationVerdict:
    raw = await self._collaborators.validate_lesson(lesson.model_dump(exclude={"kind"}))
    if not isinstance(raw, dict) or not isinstance(raw.get("valid"), bool):
      raise StepError(step=STEP_VALIDATE_LESSON, code="VALIDATION_INVALID", message="Validator verdict is missing a boolean 'valid' field.")
    verdict = _coerce(ValidationVerdict, raw, step=STEP_VALIDATE_LESSON, code="VALIDATION_INVALID")
    if not verdict.valid:
      issues = [issue.model_dump() for issue in verdict.issues]
      raise StepError(step=STEP_VALIDATE_LESSON, code="VALIDATION_FAILED", message="Lesson failed validation.", details=issues)
    return verdict

  async def _generate_quiz(self, lesson_id: str, lesson: LessonDraft) -> Quiz:
    raw = await self._collaborators.generate_quiz(lesson_id, lesson.content)
    quiz = _coerce(Quiz, raw, step=STEP_GENERATE_QUIZ, code="QUIZ_INVALID")
    if not quiz.questions:
      raise StepError(step=STEP_GENERATE_QUIZ, code="QUIZ_INVALID", message="Quiz has no questions.")
    return quiz
