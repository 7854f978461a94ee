"""Agent implementations."""

from learnpath.ai.agents.base import BaseAgent
from learnpath.ai.agents.quiz import QuizAgent
from learnpath.ai.agents.quiz_review import QuizReviewAgent
from learnpath.ai.agents.recommendation import RecommendationAgent
from learnpath.ai.agents.roadmap import RoadmapAgent
from learnpath.ai.agents.sources import SourceDiscoveryAgent
from learnpath.ai.agents.synthesis import SynthesisAgent
from learnpath.ai.agents.validator import LessonValidatorAgent

__all__ = ["BaseAgent", "LessonValidatorAgent", "QuizAgent", "QuizReviewAgent", "RecommendationAgent", "RoadmapAgent", "SourceDiscoveryAgent", "SynthesisAgent"]
