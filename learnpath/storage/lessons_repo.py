"""Firestore persistence for generated lessons, quizzes, roadmaps, progress and failure logs."""

from __future__ import annotations

import datetime
import logging
import math
import re
import time
from collections.abc import Iterable
from typing import Any

from google.cloud.firestore import Client as FirestoreClient

from learnpath.ai.pipeline.contracts import LessonBundle, StepErrorRecord
from learnpath.schema.progress import LessonProgress, OutlineSection, ProgressStats, SectionStatus

logger = logging.getLogger(__name__)

AI_LOGS_COLLECTION = "aiLogs"
TESTS_COLLECTION = "tests"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_SECTION_HEADING = re.compile(r"^##\s+(.+?)\s*#*\s*$", re.MULTILINE)
_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


class LessonNotFoundError(LookupError):
  """The requested lesson document does not exist."""


class SectionNotFoundError(LookupError):
  """The lesson outline has no section with the requested id."""


def _utc_now_iso() -> str:
  return time.strftime(_DATE_FORMAT, time.gmtime())


def lesson_outline(content: str, title: str = "") -> list[dict[str, str]]:
  """Split lesson Markdown into trackable sections, one per ``##`` heading."""
  headings = _SECTION_HEADING.findall(content) or [title or "Lesson"]
  sections: list[dict[str, str]] = []
  seen: set[str] = set()
  for index, heading in enumerate(headings, start=1):
    base = _SLUG_PATTERN.sub("-", heading.lower()).strip("-") or f"section-{index}"
    section_id = base
    suffix = 2
    while section_id in seen:
      section_id = f"{base}-{suffix}"
      suffix += 1
    seen.add(section_id)
    sections.append(OutlineSection(sectionId=section_id, title=heading).model_dump())
  return sections


def progress_percent(outline: list[dict[str, Any]]) -> int:
  """Share of learned sections, rounded half up to a whole percent."""
  if not outline:
    return 0
  learned = sum(1 for section in outline if section.get("status") == "learned")
  return math.floor(learned * 100 / len(outline) + 0.5)


def learning_streak(days: Iterable[datetime.date], today: datetime.date) -> int:
  """Count consecutive active days ending today, or yesterday when today has no activity yet."""
  active = set(days)
  day = today if today in active else today - datetime.timedelta(days=1)
  streak = 0
  while day in active:
    streak += 1
    day -= datetime.timedelta(days=1)
  return streak


def _activity_day(lesson: dict[str, Any]) -> datetime.date | None:
  stamp = lesson.get("updated_at") or lesson.get("created_at")
  if not isinstance(stamp, str):
    return None
  try:
    return datetime.date.fromisoformat(stamp[:10])
  except ValueError:
    return None


class FirestoreLessonsRepository:
  """Repository over the per-user Firestore document tree.

  Methods are synchronous; async callers wrap them with ``run_in_threadpool``.
  Generation writes use merge semantics and are safe to repeat.
  """

  def __init__(self, client: FirestoreClient) -> None:
    self._client = client

  def _topics(self, user_id: str) -> Any:
    return self._client.collection("users").document(user_id).collection("topics")

  def _lesson_ref(self, user_id: str, topic_id: str, roadmap_id: str, lesson_id: str) -> Any:
    return self._topics(user_id).document(topic_id).collection("roadmaps").document(roadmap_id).collection("lessons").document(lesson_id)

  def _lesson_snapshot(self, lesson_ref: Any, lesson_id: str) -> dict[str, Any]:
    snapshot = lesson_ref.get()
    if not snapshot.exists:
      raise LessonNotFoundError(f"Lesson {lesson_id!r} not found.")
    return snapshot.to_dict() or {}

  def save_generated_lesson(self, user_id: str, topic_id: str, roadmap_id: str, lesson_id: str, bundle: LessonBundle) -> str:
    """Persist the lesson, add its quiz under ``tests`` and link the two. Returns the quiz id."""
    lesson_ref = self._lesson_ref(user_id, topic_id, roadmap_id, lesson_id)
    created_at = _utc_now_iso()

    lesson_payload = bundle.lesson.model_dump(exclude={"kind"})
    lesson_payload.update(
      {
        "status": "Learning",
        "is_ai_generated": True,
        "created_by": user_id,
        "created_at": created_at,
        "validation": bundle.validation.model_dump(exclude={"kind"}),
        "outline": lesson_outline(bundle.lesson.content, bundle.lesson.title),
        "progressPercent": 0,
      }
    )
    lesson_ref.set(lesson_payload, merge=True)
    logger.info("Saved lesson content user=%s lesson_id=%s", user_id, lesson_id)

    quiz_payload = bundle.quiz.model_dump(exclude={"kind"})
    quiz_payload.update({"created_by": user_id, "created_at": created_at})
    # add() returns (update_time, document_reference).
    _update_time, quiz_ref = lesson_ref.collection(TESTS_COLLECTION).add(quiz_payload)
    logger.info("Saved quiz user=%s lesson_id=%s quiz_id=%s", user_id, lesson_id, quiz_ref.id)

    lesson_ref.set({"quiz_id": quiz_ref.id, "quiz_ready": True}, merge=True)
    return quiz_ref.id

  def get_lesson(self, user_id: str, topic_id: str, roadmap_id: str, lesson_id: str) -> dict[str, Any]:
    """Return a stored lesson with its outline and every saved quiz."""
    lesson_ref = self._lesson_ref(user_id, topic_id, roadmap_id, lesson_id)
    lesson = self._lesson_snapshot(lesson_ref, lesson_id)
    quizzes = [{**(doc.to_dict() or {}), "quiz_id": doc.id} for doc in lesson_ref.collection(TESTS_COLLECTION).stream()]
    logger.info("Fetched lesson user=%s lesson_id=%s quizzes=%d", user_id, lesson_id, len(quizzes))
    return {**lesson, "lesson_id": lesson_id, "outline": lesson.get("outline") or [], "quizzes": quizzes}

  def update_lesson_progress(self, user_id: str, topic_id: str, roadmap_id: str, lesson_id: str, section_id: str, status: SectionStatus) -> LessonProgress:
    """Set one outline section's status and recompute the lesson's progress."""
    lesson_ref = self._lesson_ref(user_id, topic_id, roadmap_id, lesson_id)
    lesson = self._lesson_snapshot(lesson_ref, lesson_id)

    outline = list(lesson.get("outline") or [])
    if not any(section.get("sectionId") == section_id for section in outline):
      raise SectionNotFoundError(f"Section {section_id!r} not found in lesson {lesson_id!r}.")

    outline = [{**section, "status": status} if section.get("sectionId") == section_id else section for section in outline]
    percent = progress_percent(outline)
    lesson_status = "Learned" if percent == 100 else "Learning"
    lesson_ref.update({"outline": outline, "progressPercent": percent, "status": lesson_status, "updated_at": _utc_now_iso()})
    logger.info("Progress updated user=%s lesson_id=%s section=%s status=%s percent=%d", user_id, lesson_id, section_id, status, percent)
    return LessonProgress(lesson_id=lesson_id, section_id=section_id, status=status, progress_percent=percent, lesson_status=lesson_status)

  def list_lessons(self, user_id: str) -> tuple[int, list[dict[str, Any]]]:
    """Return the user's topic count and every stored lesson, tagged with its topic id."""
    topic_count = 0
    lessons: list[dict[str, Any]] = []
    for topic in self._topics(user_id).stream():
      topic_count += 1
      for roadmap in topic.reference.collection("roadmaps").stream():
        for doc in roadmap.reference.collection("lessons").stream():
          lessons.append({**(doc.to_dict() or {}), "lesson_id": doc.id, "topic_id": topic.id})
    return topic_count, lessons

  def progress_stats(self, user_id: str, *, today: datetime.date | None = None) -> ProgressStats:
    """Aggregate lesson totals, average progress and the current learning streak."""
    topic_count, lessons = self.list_lessons(user_id)
    percents = [int(lesson.get("progressPercent") or 0) for lesson in lessons]
    days = [day for day in map(_activity_day, lessons) if day is not None]
    return ProgressStats(
      total_topics=topic_count,
      total_lessons=len(lessons),
      completed_lessons=sum(1 for lesson in lessons if lesson.get("status") == "Learned"),
      average_progress=math.floor(sum(percents) / len(percents) + 0.5) if percents else 0,
      learning_streak=learning_streak(days, today or datetime.datetime.now(datetime.UTC).date()),
      last_updated=_utc_now_iso(),
    )

  def log_generation_failure(self, user_id: str, topic: str, phase: str, error: StepErrorRecord) -> None:
    """Record a failed run under ``aiLogs``; write errors are logged, not raised."""
    document_id = str(time.time_ns() // 1_000_000)
    payload = {"userId": user_id, "topic": topic, "phase": phase, "error": error.model_dump(), "time": _utc_now_iso()}
    try:
      self._client.collection(AI_LOGS_COLLECTION).document(document_id).set(payload)
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed to write generation failure log user=%s step=%s: %s", user_id, error.step, exc)

  def save_roadmap(self, user_id: str, topic_id: str, roadmap: dict[str, Any]) -> None:
    """Merge a generated roadmap into its topic document."""
    topic_ref = self._topics(user_id).document(topic_id)
    topic_ref.set({**roadmap, "updatedAt": _utc_now_iso()}, merge=True)
    logger.info("Saved roadmap user=%s topic_id=%s phases=%d", user_id, topic_id, len(roadmap.get("roadmap", [])))
