"""
Remote conversational assistant (OpenAI Assistants API).
"""

from .client import (
    AssistantClient,
    AssistantError,
    AssistantRunError,
    AssistantTimeoutError,
)

__all__ = ["AssistantClient", "AssistantError", "AssistantRunError", "AssistantTimeoutError"]
