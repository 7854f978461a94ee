"""Prompt templates shared by the generation agents."""

from __future__ import annotations

import json
from typing import Any

_SEARCH_SOURCES_TEMPLATE = """You are an expert at finding high-quality, reputable educational resources on the web.

Your task is to find 10-15 diverse and reliable sources for the given topic and learning phase.

Topic: {{TOPIC}}
Learning Phase: {{PHASE}}

Prioritize the following types of domains:
- Official documentation sites (e.g., *.dev, *.org)
- Reputable educational institutions and academies.
- Well-known technical blogs and publications.
- Official or highly-respected YouTube channels.

Avoid the following:
- Spammy sites or content farms.
- Low-quality or clearly duplicated content.
- Forums or Q&A sites unless they are the primary source of information.

For each source, provide "title", full "url", "domain", "type" (one of: article, doc, video, tutorial) and a "relevance" score from 0.0 to 1.0.
The output must be a valid JSON object containing a "sources" array. If no high-quality results are found, return an empty array.
"""

_SYNTHESIZE_TEMPLATE = """You are an expert instructional designer and technical writer. Your task is to synthesize a high-quality, comprehensive, and structured learning lesson from the provided sources about the given topic and phase.

Topic: {{TOPIC}}
Phase: {{PHASE}}
Sources (for context):
{{SOURCES}}

Your response MUST be a JSON object containing ONLY the following keys: "title", "overview", "content", and "estimated_time_min".

Instructions for the content:
1. Create the lesson "content" in Markdown, between 800 and 1200 words, organized with ## and ### headings:
   - Introduction: core concepts, why they matter, practical applications.
   - Main body: logical sub-sections with at least 3 practical, real-world examples.
   - Conclusion: key takeaways and actionable practice suggestions.
2. Provide "estimated_time_min", the minutes needed to complete the lesson.
3. Create a concise "title" and a short "overview".
4. Write original content in your own words. Be encouraging, accessible and technically accurate.

Your final output must be a single, valid JSON object that strictly conforms to the requested structure.
"""

_VALIDATE_TEMPLATE = """You are a QA validator for AI-generated lessons.
Return ONLY JSON, strictly matching this schema:
{
  "valid": boolean,
  "confidence_score": number,
  "issues": [{ "type": string, "detail": string }]
}
Review this lesson content for factual accuracy, clarity, structure and completeness:

{{LESSON}}

Rules:
- No markdown, no explanation, no prefix.
- If invalid JSON, output will be rejected.
"""

_QUIZ_TEMPLATE = """You are an expert quiz creator for educational material. Your task is to generate a {{COUNT}}-question multiple-choice quiz based only on the provided lesson content.

Instructions:
1. Read the entire lesson content provided below.
2. Create exactly {{COUNT}} questions that directly test the core knowledge within the lesson.
3. For each question, provide:
   - a clear and unambiguous "question";
   - an array of 4 "options";
   - the "correct_answer", which must be one of the options;
   - a detailed "explanation" of why the answer is correct, referencing the lesson content.
4. Terminology, definitions and examples must align with the lesson content. Do not introduce external information.
5. Return a single valid JSON object with "lesson_id" set to "{{LESSON_ID}}", a "questions" array and "pass_score" of {{PASS_SCORE}}.

Lesson Content:
'''
{{CONTENT}}
'''
"""

_ROADMAP_TEMPLATE = """You are an expert learning designer and AI study mentor.
Design a comprehensive learning roadmap for the field "{{TOPIC}}".
- Main goal: {{GOAL}}
- Total duration: {{DURATION}}
- Learner level: {{LEVEL}}
- Target audience: {{AUDIENCE}}

Split the roadmap into 3-6 phases. Each phase has:
- "phaseId": a short id (e.g. basics, practice, project)
- "title": the phase title
- "goal": the learning goal of the phase
- "duration": the expected duration (e.g. 3 weeks)
- "lessons": a list of lessons, each with "lessonId", "title", "description" and "difficulty" (beginner | intermediate | advanced)

Return a JSON object with "title", "overview", "totalDuration" and "roadmap" (the list of phases).
Return JSON only. No markdown, no explanation.
"""

_QUIZ_REVIEW_TEMPLATE = """You are an expert at quality assurance for educational content. Decide whether each quiz question can be answered solely from the provided lesson content.

Instructions:
1. Read the entire lesson content.
2. For each question, verify that the question, its options and its correct answer can be derived from the text.
3. Compute "relevance_score" from 0.0 (completely irrelevant) to 1.0 (perfectly relevant); lower it for every question that needs external knowledge.
4. List every invalid question in "invalid_questions" with its 0-based "index" and a clear "reason".

Lesson Content:
```
{{CONTENT}}
```

Quiz Questions to Validate:
```json
{{QUESTIONS}}
```

Return a single valid JSON object with "relevance_score" and "invalid_questions".
"""

_RECOMMEND_TEMPLATE = """You are an AI tutor. Based on the learner's recent progress below, recommend the {{COUNT}} most suitable next lessons.

Recent lessons:
{{CONTEXT}}

For each recommendation provide "title", a one or two sentence "description", the "reason" it is a good next step and its "difficulty" (beginner | intermediate | advanced).
Return a JSON object with a "recommendations" array. Return JSON only. No markdown, no explanation.
"""


def _replace_placeholders(template: str, values: dict[str, str]) -> str:
  """Substitute {{PLACEHOLDER}} markers with their values."""
  rendered = template
  for key, value in values.items():
    rendered = rendered.replace(f"{{{{{key}}}}}", value)

  return rendered


def render_search_sources_prompt(topic: str, phase: str) -> str:
  return _replace_placeholders(_SEARCH_SOURCES_TEMPLATE, {"TOPIC": topic, "PHASE": phase})


def render_synthesis_prompt(topic: str, phase: str, sources: list[dict[str, Any]]) -> str:
  # Only the identifying fields go to the model; relevance scores are noise here.
  condensed = [{"url": source.get("url"), "title": source.get("title"), "type": source.get("type")} for source in sources]
  return _replace_placeholders(_SYNTHESIZE_TEMPLATE, {"TOPIC": topic, "PHASE": phase, "SOURCES": json.dumps(condensed, indent=2, ensure_ascii=False)})


def render_validation_prompt(lesson: dict[str, Any]) -> str:
  reviewed = {"title": lesson.get("title", ""), "overview": lesson.get("overview", ""), "content": lesson.get("content", "")}
  return _replace_placeholders(_VALIDATE_TEMPLATE, {"LESSON": json.dumps(reviewed, indent=2, ensure_ascii=False)})


def render_quiz_prompt(lesson_id: str, lesson_content: str, *, question_count: int, pass_score: int) -> str:
  values = {"LESSON_ID": lesson_id, "CONTENT": lesson_content, "COUNT": str(question_count), "PASS_SCORE": str(pass_score)}
  return _replace_placeholders(_QUIZ_TEMPLATE, values)


def render_roadmap_prompt(*, topic: str, duration: str, level: str, goal: str, target_audience: str) -> str:
  values = {"TOPIC": topic, "DURATION": duration, "LEVEL": level, "GOAL": goal, "AUDIENCE": target_audience}
  return _replace_placeholders(_ROADMAP_TEMPLATE, values)


def render_quiz_review_prompt(lesson_content: str, questions: list[dict[str, Any]]) -> str:
  return _replace_placeholders(_QUIZ_REVIEW_TEMPLATE, {"CONTENT": lesson_content, "QUESTIONS": json.dumps(questions, ensure_ascii=False)})


def render_recommendation_prompt(learning_context: str, *, count: int) -> str:
  return _replace_placeholders(_RECOMMEND_TEMPLATE, {"CONTEXT": learning_context, "COUNT": str(count)})
