"""
leadtrack.errors
================

Exception hierarchy shared by the validator, the REST client and the
lifecycle controller.

Every failure is per‑operation: raising one of these never leaves the
in‑memory company collection half updated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


class LeadtrackError(Exception):
    """Base class for every error raised by leadtrack."""


@dataclass(frozen=True)
class ValidationError:
    """
    A single field‑level problem the user can correct.

    This is a value, not an exception: the validator collects all of them and
    :class:`ValidationFailed` carries the complete list.
    """
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ValidationFailed(LeadtrackError, ValueError):
    """Raised when a create/update payload has one or more ValidationErrors."""

    def __init__(self, errors: Iterable[ValidationError]):
        self.errors: List[ValidationError] = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors) or "invalid payload")


class AuthorizationError(LeadtrackError, PermissionError):
    """The current user may not perform the requested operation."""


class ConflictError(LeadtrackError):
    """A company with the same name already exists for this owner."""


class NotFoundError(LeadtrackError, LookupError):
    """A referenced company, assignee or escalation target does not exist."""


class TransportError(LeadtrackError):
    """The backend could not be reached or answered with an unexpected error."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
