"""Model endpoint implementations."""

from learnpath.ai.providers.base import CompletionEndpoint
from learnpath.ai.providers.gemini import DEFAULT_MODEL, GeminiEndpoint

__all__ = ["CompletionEndpoint", "DEFAULT_MODEL", "GeminiEndpoint"]
