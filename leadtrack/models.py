"""
leadtrack.models
================

Dataclasses and enums describing the records a sales team works with:
users, the companies they chase, and the comments left on them.

These objects carry **no** behaviour and no third‑party imports.  Anything
arriving from the network is checked by :pymod:`leadtrack.schemas` before it
is turned into one of these.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple


class Role(Enum):
    """Role of a user inside the sales organisation."""
    ADMIN = "ADMIN"
    INSTRUCTOR = "INSTRUCTOR"
    STANDARD = "STANDARD"

    def __str__(self) -> str:
        return self.name


class Status(Enum):
    """Life‑cycle states of a company lead."""
    PENDING = "PENDING"
    CLOSED = "CLOSED"
    ESCALATED = "ESCALATED"

    def __str__(self) -> str:        # nicer REPL display
        return self.name


class Severity(Enum):
    """How loudly a reminder should be shown."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class User:
    """
    A member of the sales team, as fetched from the backend.

    Parameters
    ----------
    id : int
        Backend identifier.
    first_name, last_name : str
        Display name parts (``last_name`` may be empty right after login).
    email : str
        Login e‑mail.
    role : Role
        Organisational role.
    contact_number : str
        Optional phone number.
    """
    id: int
    first_name: str
    last_name: str
    email: str
    role: Role = Role.STANDARD
    contact_number: str = ""


@dataclass(frozen=True)
class ContactDetails:
    """Who to talk to at a company and how to reach them."""
    person: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""


@dataclass(frozen=True)
class Comment:
    """A single entry in the comment thread of a company."""
    id: int
    company_id: int
    user_id: int
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Company:
    """
    Core record tracked by leadtrack.

    Parameters
    ----------
    id : int
        Backend identifier.
    name : str
        Company name, unique per owner (case‑insensitive, trimmed).
    contact : ContactDetails
        Contact person and channels.
    assigned_to : int
        Owner; the only user allowed to edit, delete or comment.
    assigned_by : int
        User who created the record.
    contact_date, meeting_date : datetime.date | None
        Planned contact / meeting dates.
    status : Status, default=PENDING
        Current life‑cycle phase.
    escalated_to : int | None
        Forwarding target; set exactly when ``status`` is ESCALATED.
    notes : str
        Free‑text notes.
    comments : tuple[Comment, ...]
        Comment thread, oldest first.
    created_at : datetime.datetime | None
        Server‑side creation timestamp.
    """
    id: int
    name: str
    assigned_to: int
    assigned_by: int
    contact: ContactDetails = field(default_factory=ContactDetails)
    contact_date: Optional[date] = None
    meeting_date: Optional[date] = None
    status: Status = Status.PENDING
    escalated_to: Optional[int] = None
    notes: str = ""
    comments: Tuple[Comment, ...] = ()
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Reminder:
    """A derived, non‑persisted notice shown to the owner of a company."""
    company_id: int
    message: str
    severity: Severity
