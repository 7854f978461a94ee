from . import lessons, quizzes, roadmaps

__all__ = ["lessons", "quizzes", "roadmaps"]
