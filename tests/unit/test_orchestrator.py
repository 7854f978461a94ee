"""Unit tests for the lesson pipeline state machine and its error mapping."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from pydantic import TypeAdapter

from learnpath.ai.errors import ModelError, ParseError
from learnpath.ai.orchestrator import LessonPipeline, PipelineCollaborators
from learnpath.ai.pipeline.contracts import PipelineFailure, PipelineSuccess, Quiz, SourceList, StepOutput

CONTENT = "## Overview\n" + "useState stores component state between renders. " * 25 + "\n### Example\nA counter."
SOURCES = {"sources": [{"title": "React docs", "url": "https://react.dev/learn", "domain": "react.dev", "type": "doc", "relevance": 0.95}]}
LESSON = {"title": "React Hooks", "overview": "State in function components", "content": CONTENT, "estimated_time_min": 40}
VERDICT = {"valid": True, "confidence_score": 0.9, "issues": []}


def _questions(count: int) -> list[dict]:
  return [{"question": f"Q{i}?", "options": ["a", "b", "c", "d"], "correct_answer": "a", "explanation": ""} for i in range(count)]


def _collaborators(**overrides: AsyncMock) -> PipelineCollaborators:
  defaults = {
    "search_sources": AsyncMock(return_value=SOURCES),
    "synthesize_lesson": AsyncMock(return_value=LESSON),
    "validate_lesson": AsyncMock(return_value=VERDICT),
    "generate_quiz": AsyncMock(return_value={"lesson_id": "lesson-1", "questions": _questions(5), "pass_score": 80}),
  }
  defaults.update(overrides)
  return PipelineCollaborators(**defaults)


@pytest.mark.anyio
async def test_successful_run_aggregates_every_step() -> None:
  collaborators = _collaborators()

  result = await LessonPipeline(collaborators).run("React Hooks", "Beginner", "lesson-1")

  assert isinstance(result, PipelineSuccess)
  assert result.success is True
  assert result.data.lesson.title == "React Hooks"
  assert result.data.validation.valid is True
  assert len(result.data.quiz.questions) == 5
  assert [source.url for source in result.data.sources] == ["https://react.dev/learn"]
  collaborators.generate_quiz.assert_awaited_once_with("lesson-1", CONTENT)


@pytest.mark.anyio
async def test_no_sources_stops_before_synthesis() -> None:
  collaborators = _collaborators(search_sources=AsyncMock(return_value={"sources": []}))

  result = await LessonPipeline(collaborators).run("Obscure", "Beginner", "lesson-1")

  assert isinstance(result, PipelineFailure)
  assert result.error.step == "searchSources"
  assert result.error.code == "NO_SOURCES"
  collaborators.synthesize_lesson.assert_not_awaited()


@pytest.mark.anyio
async def test_malformed_sources_are_reported() -> None:
  collaborators = _collaborators(search_sources=AsyncMock(return_value={"sources": [{"title": "no url"}]}))

  result = await LessonPipeline(collaborators).run("React", "Beginner", "lesson-1")

  assert result.error.code == "SOURCES_INVALID"
  assert result.error.details


@pytest.mark.anyio
async def test_empty_lesson_content_is_synthesis_invalid() -> None:
  collaborators = _collaborators(synthesize_lesson=AsyncMock(return_value={**LESSON, "content": "   "}))

  result = await LessonPipeline(collaborators).run("React", "Beginner", "lesson-1")

  assert result.error.step == "synthesizeLesson"
  assert result.error.code == "SYNTHESIS_INVALID"
  collaborators.validate_lesson.assert_not_awaited()


@pytest.mark.anyio
async def test_failed_validation_carries_issues() -> None:
  verdict = {"valid": False, "confidence_score": 0.4, "issues": [{"type": "Factual", "detail": "Hooks run in classes."}]}
  collaborators = _collaborators(validate_lesson=AsyncMock(return_value=verdict))

  result = await LessonPipeline(collaborators).run("React", "Beginner", "lesson-1")

  assert result.error.step == "validateLesson"
  assert result.error.code == "VALIDATION_FAILED"
  assert result.error.details == [{"type": "Factual", "detail": "Hooks run in classes."}]
  collaborators.generate_quiz.assert_not_awaited()


@pytest.mark.parametrize("verdict", [{"confidence_score": 0.9}, {"valid": "yes"}, ["not", "a", "dict"]])
@pytest.mark.anyio
async def test_verdict_without_boolean_valid_is_invalid(verdict) -> None:
  collaborators = _collaborators(validate_lesson=AsyncMock(return_value=verdict))

  result = await LessonPipeline(collaborators).run("React", "Beginner", "lesson-1")

  assert result.error.code == "VALIDATION_INVALID"


@pytest.mark.anyio
async def test_quiz_without_questions_is_invalid() -> None:
  collaborators = _collaborators(generate_quiz=AsyncMock(return_value={"lesson_id": "lesson-1", "questions": []}))

  result = await LessonPipeline(collaborators).run("React", "Beginner", "lesson-1")

  assert result.error.step == "generateQuiz"
  assert result.error.code == "QUIZ_INVALID"


@pytest.mark.anyio
async def test_model_error_is_mapped_with_category() -> None:
  error = ModelError("Model request timed out.", category=ModelError.TIMEOUT)
  collaborators = _collaborators(synthesize_lesson=AsyncMock(side_effect=error))

  result = await LessonPipeline(collaborators).run("React", "Beginner", "lesson-1")

  assert result.error.step == "synthesizeLesson"
  assert result.error.code == "MODEL_ERROR"
  assert result.error.details == {"category": "timeout"}


@pytest.mark.anyio
async def test_parse_error_keeps_preview() -> None:
  collaborators = _collaborators(search_sources=AsyncMock(side_effect=ParseError("no json", preview="Sure, here")))

  result = await LessonPipeline(collaborators).run("React", "Beginner", "lesson-1")

  assert result.error.code == "PARSE_ERROR"
  assert result.error.details == {"preview": "Sure, here"}


@pytest.mark.anyio
async def test_unexpected_exception_never_escapes() -> None:
  collaborators = _collaborators(generate_quiz=AsyncMock(side_effect=KeyError("questions")))

  result = await LessonPipeline(collaborators).run("React", "Beginner", "lesson-1")

  assert result.success is False
  assert result.error.step == "generateQuiz"
  assert result.error.code == "UNEXPECTED_ERROR"
  assert "KeyError" in result.error.message


@pytest.mark.anyio
async def test_discriminator_from_collaborator_is_ignored() -> None:
  collaborators = _collaborators(synthesize_lesson=AsyncMock(return_value={**LESSON, "kind": "quiz"}))

  result = await LessonPipeline(collaborators).run("React", "Beginner", "lesson-1")

  assert result.success is True
  assert result.data.lesson.kind == "lesson_draft"


@pytest.mark.anyio
async def test_from_client_runs_the_agents_end_to_end(client_factory) -> None:
  responses = [
    json.dumps({"sources": [{"title": "React docs", "url": "https://www.react.dev/learn", "type": "doc", "relevance": 0.9}]}),
    json.dumps({"title": "React Hooks", "overview": "State", "content": CONTENT, "estimated_time_min": 35}),
    json.dumps({"valid": True, "confidence_score": 0.88, "issues": []}),
    json.dumps({"lesson_id": "ignored", "questions": _questions(5), "pass_score": 80}),
  ]
  client, endpoint = client_factory(*responses)

  result = await LessonPipeline.from_client(client).run("React Hooks", "Beginner", "lesson-7")

  assert isinstance(result, PipelineSuccess)
  assert result.data.sources[0].domain == "react.dev"
  assert result.data.lesson.sources[0].short_note == "A resource for learning about React Hooks."
  assert result.data.quiz.lesson_id == "lesson-7"
  assert endpoint.calls == 4


def test_step_outputs_are_discriminated_by_kind() -> None:
  adapter = TypeAdapter(StepOutput)

  assert isinstance(adapter.validate_python({"kind": "sources", "sources": []}), SourceList)
  assert isinstance(adapter.validate_python({"kind": "quiz", "questions": _questions(1)}), Quiz)
