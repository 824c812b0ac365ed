"""
Error taxonomy shared by the plan pipeline, the nutrition chat and the store.
"""
from __future__ import annotations

from typing import Optional


class FitPlanError(Exception):
    """Base class for every error raised by this project."""


class GenerationError(FitPlanError):
    """A plan generation attempt failed."""

    def __init__(self, message: str, attempts: Optional[int] = None):
        super().__init__(message)
        self.attempts = attempts


class GenerationTimeout(GenerationError):
    """The generation call did not answer within the time limit."""


class GenerationEmpty(GenerationError):
    """The generation call answered without any text payload."""


class GenerationMalformed(GenerationError):
    """The answer did not contain a parseable plan object."""


class GenerationExhausted(GenerationError):
    """All attempts failed on something other than timeout/empty/malformed."""


class ChatError(FitPlanError):
    """A nutrition chat round could not complete."""


class TransportError(ChatError):
    """The chat transport (network, auth, provider) failed."""


class ToolLoopExceeded(ChatError):
    """The model kept requesting tool calls past the allowed number of rounds."""


class StorageCorrupt(FitPlanError):
    """A stored namespace could not be read back. Never escapes the store."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Stored value for '{key}' is unreadable: {reason}")
        self.key = key


class WorkoutSessionError(FitPlanError):
    """Invalid workout session transition."""
