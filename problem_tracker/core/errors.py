"""
Error taxonomy shared by the server and the client library.

ValidationError and NotFound are reported and never retried.
StoreUnavailable / TransportError abort the in-flight mutation and roll back
the optimistic cache state. AIGenerationError never leaves the hint generator.
"""

from dataclasses import dataclass
from typing import Any, List, Sequence


@dataclass(frozen=True)
class FieldError:
    path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}


class TrackerError(Exception):
    """Base class for every error raised by problem_tracker."""


class ValidationError(TrackerError):
    def __init__(self, errors: Sequence[FieldError], message: str = "Validation failed"):
        super().__init__(message)
        self.message = message
        self.errors: List[FieldError] = list(errors)

    def __str__(self) -> str:
        details = "; ".join(f"{e.path}: {e.message}" for e in self.errors)
        return f"{self.message} ({details})" if details else self.message

    @classmethod
    def from_pydantic(cls, exc: Any) -> "ValidationError":
        """Build from a pydantic ValidationError (or anything exposing .errors())."""
        return cls(field_errors_from_pydantic(exc.errors()))


class NotFound(TrackerError):
    def __init__(self, tracker_id: str, message: str = "Tracker not found"):
        super().__init__(message)
        self.tracker_id = tracker_id
        self.message = message


class StoreUnavailable(TrackerError):
    """The key-value backend (or the server in front of it) failed."""


class TransportError(TrackerError):
    """The HTTP call itself failed: connection error, timeout, bad response."""


class AuthenticationError(TransportError):
    """Missing or rejected bearer credential (HTTP 401)."""


class AIGenerationError(TrackerError):
    """The hint generator failed or answered with an unusable payload."""


def field_errors_from_pydantic(errors: Sequence[dict]) -> List[FieldError]:
    result = []
    for err in errors:
        # FastAPI prefixes request errors with the location ("body", "query")
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body",)]
        result.append(FieldError(path=".".join(loc) or "__root__", message=err.get("msg", "")))
    return result
