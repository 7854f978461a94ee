"""Pipeline contracts for lesson generation."""

from learnpath.ai.pipeline.contracts import (
  GenerationRequest,
  LessonBundle,
  LessonDraft,
  PipelineFailure,
  PipelineResult,
  PipelineSuccess,
  Quiz,
  QuizQuestion,
  QuizReview,
  Roadmap,
  Source,
  SourceList,
  StepErrorRecord,
  StepOutput,
  ValidationVerdict,
)

__all__ = [
  "GenerationRequest",
  "LessonBundle",
  "LessonDraft",
  "PipelineFailure",
  "PipelineResult",
  "PipelineSuccess",
  "Quiz",
  "QuizQuestion",
  "QuizReview",
  "Roadmap",
  "Source",
  "SourceList",
  "StepErrorRecord",
  "StepOutput",
  "ValidationVerdict",
]
