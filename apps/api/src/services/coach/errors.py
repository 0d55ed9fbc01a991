"""Error and issue types for the coach turn pipeline."""

from enum import Enum
from typing import Optional


class UpdateIssue(str, Enum):
    """Why a profile-update block could not be offered for review."""
    MALFORMED_JSON = "malformed_json"
    INVALID_SHAPE = "invalid_shape"
    UNKNOWN_TARGET = "unknown_target"


class StreamLimitError(Exception):
    """Raised when an assistant reply grows past the configured size cap."""
    def __init__(self, limit: int, size: int):
        self.limit = limit
        self.size = size
        super().__init__(f"Assistant reply exceeded {limit} characters ({size} received).")


class InvalidUpdateError(ValueError):
    """Raised when a typed update is requested for a payload that failed validation."""
    def __init__(self, issue: UpdateIssue, message: str, cause: Optional[Exception] = None):
        self.issue = issue
        self.message = message
        self.cause = cause
        super().__init__(f"[{issue.value}] {message}")


class SessionNotFoundError(LookupError):
    """Raised when a coach session id is unknown."""


class TurnNotFoundError(LookupError):
    """Raised when a turn id is not part of the session."""


class SessionBusyError(RuntimeError):
    """Raised when a new message arrives while the session's previous reply is still streaming."""


class NoPendingUpdateError(RuntimeError):
    """Raised when apply/decline targets a turn without a pending valid update."""
