"""
errors.py
=========
Error taxonomy shared by the generator, the session state machine, the
progress tracker and every front end.

Every failure carries a stable machine-readable ``code``, a coarse ``kind``
the transport layer maps to a status code, and a human-readable message.
Extra fields (for example the required / current points of a rejected
purchase) travel in ``details`` so callers can react without retrying blindly.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    NOT_FOUND           = "not_found"
    CONFLICT            = "conflict"
    INVALID_INPUT       = "invalid_input"
    PRECONDITION_FAILED = "precondition_failed"
    INTERNAL            = "internal"


class TruthSeekerError(Exception):
    """Base class for every recoverable engine failure."""

    kind: ErrorKind = ErrorKind.INTERNAL
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        **details: Any,
    ) -> None:
        self.message = message or self.default_message
        self.details: Dict[str, Any] = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation: message, code and any detail fields."""
        payload: Dict[str, Any] = {"error": self.message, "code": self.code}
        payload.update(self.details)
        return payload


# ---------------------------------------------------------------------------
# NotFound
# ---------------------------------------------------------------------------

class SessionNotFound(TruthSeekerError):
    kind = ErrorKind.NOT_FOUND
    code = "SESSION_NOT_FOUND"
    default_message = "Session not found"


class StoryNotFound(TruthSeekerError):
    kind = ErrorKind.NOT_FOUND
    code = "STORY_NOT_FOUND"
    default_message = "Story not found"


class ClueNotFound(TruthSeekerError):
    kind = ErrorKind.NOT_FOUND
    code = "CLUE_NOT_FOUND"
    default_message = "Clue not found in store"


class ScoreNotFound(TruthSeekerError):
    kind = ErrorKind.NOT_FOUND
    code = "SCORE_NOT_FOUND"
    default_message = "Story score not found"


# ---------------------------------------------------------------------------
# Conflict
# ---------------------------------------------------------------------------

class ClueAlreadyPurchased(TruthSeekerError):
    kind = ErrorKind.CONFLICT
    code = "CLUE_ALREADY_PURCHASED"
    default_message = "Clue already purchased"


class QuizAlreadyFinalized(TruthSeekerError):
    kind = ErrorKind.CONFLICT
    code = "QUIZ_ALREADY_SUBMITTED"
    default_message = "Quiz already finalized"


# ---------------------------------------------------------------------------
# InvalidInput
# ---------------------------------------------------------------------------

class InvalidDifficulty(TruthSeekerError):
    kind = ErrorKind.INVALID_INPUT
    code = "INVALID_DIFFICULTY"
    default_message = "Invalid difficulty"


class InvalidStoryIndex(TruthSeekerError):
    kind = ErrorKind.INVALID_INPUT
    code = "INVALID_STORY_INDEX"
    default_message = "Invalid story index"


class MissingAnswers(TruthSeekerError):
    kind = ErrorKind.INVALID_INPUT
    code = "MISSING_ANSWERS"
    default_message = "Answers required"


class InvalidActionPoints(TruthSeekerError):
    kind = ErrorKind.INVALID_INPUT
    code = "INVALID_ACTION_POINTS"
    default_message = "Action points must be an integer"


class InvalidQuizScore(TruthSeekerError):
    kind = ErrorKind.INVALID_INPUT
    code = "INVALID_QUIZ_SCORE"
    default_message = "Quiz score must be an object with integer correct and total"


class InvalidSeed(TruthSeekerError):
    kind = ErrorKind.INVALID_INPUT
    code = "INVALID_SEED"
    default_message = "Seed must be an integer"


class MissingClueId(TruthSeekerError):
    kind = ErrorKind.INVALID_INPUT
    code = "MISSING_CLUE_ID"
    default_message = "Clue ID required"


class InsufficientPoints(TruthSeekerError):
    """A purchase the player cannot afford. Reports what it would have cost."""

    kind = ErrorKind.INVALID_INPUT
    code = "INSUFFICIENT_POINTS"
    default_message = "Insufficient action points"

    def __init__(self, required: int, current: int) -> None:
        super().__init__(required=required, current=current)
        self.required = required
        self.current  = current


# ---------------------------------------------------------------------------
# PreconditionFailed
# ---------------------------------------------------------------------------

class SolutionNotRevealed(TruthSeekerError):
    kind = ErrorKind.PRECONDITION_FAILED
    code = "SOLUTION_NOT_REVEALED"
    default_message = "Solution not revealed yet"


class StoryLocked(TruthSeekerError):
    kind = ErrorKind.PRECONDITION_FAILED
    code = "STORY_LOCKED"
    default_message = "Story not unlocked yet. Complete previous stories first."


class NoMoreStories(TruthSeekerError):
    kind = ErrorKind.PRECONDITION_FAILED
    code = "NO_MORE_STORIES"
    default_message = "No more stories available."


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------

class PoolNotLoaded(TruthSeekerError):
    kind = ErrorKind.INTERNAL
    code = "STORIES_NOT_LOADED"
    default_message = "Stories not loaded"


class GenerationError(TruthSeekerError):
    kind = ErrorKind.INTERNAL
    code = "GENERATION_ERROR"
    default_message = "Failed to generate case"
