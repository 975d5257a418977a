"""
Exception hierarchy for VibeCheck.

Only validation and submission failures reach callers. Read paths,
search and AI enrichment degrade to empty results instead of raising.
"""
from typing import Optional


class VibeCheckError(Exception):
    """Base class for all VibeCheck errors."""


class InvalidRoomIdError(VibeCheckError, ValueError):
    """Room id is not a non-negative integer literal."""

    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Invalid Room ID: {room_id!r}")


class StoreError(VibeCheckError):
    """The table store rejected a request or could not be reached."""

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        self.message = message
        self.code = code
        self.status = status
        super().__init__(message if not code else f"{message} ({code})")


class SubmissionError(VibeCheckError):
    """Writing a new entry failed; the caller should offer a retry."""


class SubmissionInProgressError(VibeCheckError):
    """A submission from this session is already in flight."""


class EmptySongError(VibeCheckError, ValueError):
    """One of the three song slots was left blank."""

    def __init__(self, slot: str):
        self.slot = slot
        super().__init__(f"Please fill in the '{slot}' song")
