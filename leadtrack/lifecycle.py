"""
leadtrack.lifecycle
===================

State‑transition guard and field validator for a
:class:`leadtrack.models.Company`.

A tiny finite‑state‑machine describes which statuses are legal successors of
each status.  :pyfunc:`validate_transition` checks a proposed partial update
against the current record and returns either a *normalized update* (safe to
send to the backend) or the complete list of problems.  Nothing in here
touches the network or the clock.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from .errors import AuthorizationError, ValidationError, ValidationFailed
from .models import Company, ContactDetails, Status, User

# ---------------------------------------------------------------------
# Allowed transitions: source status → set[valid target statuses]
# ---------------------------------------------------------------------
RULES = {
    Status.PENDING:   {Status.PENDING, Status.CLOSED, Status.ESCALATED},
    Status.CLOSED:    {Status.CLOSED, Status.PENDING, Status.ESCALATED},
    Status.ESCALATED: {Status.ESCALATED, Status.PENDING, Status.CLOSED},
}

EDITABLE_FIELDS = frozenset({
    "name", "contact", "assigned_to", "contact_date", "meeting_date",
    "status", "escalated_to", "notes",
})
READ_ONLY_FIELDS = frozenset({"id", "created_at", "assigned_by", "comments"})
CONTACT_FIELDS = ("person", "email", "phone", "address")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[\d\s-]+$")
PHONE_MIN_DIGITS = 7
PHONE_MAX_DIGITS = 15


@dataclass
class ValidationResult:
    """Outcome of a validation: a normalized update *or* a list of errors."""
    update: Optional[Dict[str, Any]] = None
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> Dict[str, Any]:
        """Return the normalized update or raise :class:`ValidationFailed`."""
        if self.errors:
            raise ValidationFailed(self.errors)
        return dict(self.update or {})


# ---------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------
def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value.strip()))


def is_valid_phone(value: str) -> bool:
    """Optional leading ``+``, digits, spaces and hyphens; 7–15 digits."""
    value = value.strip()
    if not PHONE_RE.match(value):
        return False
    digits = sum(ch.isdigit() for ch in value)
    return PHONE_MIN_DIGITS <= digits <= PHONE_MAX_DIGITS


def _coerce_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"not a date: {value!r}")


def _coerce_user_id(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("boolean is not a user id")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(f"not a user id: {value!r}")


def _coerce_status(value: Any) -> Status:
    if isinstance(value, Status):
        return value
    return Status(str(value).strip().upper())


def _merge_contact(base: ContactDetails, value: Any, errors: List[ValidationError]) -> ContactDetails:
    """Overlay a (possibly partial) contact mapping on *base* and check it."""
    if isinstance(value, ContactDetails):
        merged = value
    elif isinstance(value, Mapping):
        unknown = sorted(set(value) - set(CONTACT_FIELDS))
        for key in unknown:
            errors.append(ValidationError(f"contact.{key}", "Unknown contact field"))
        merged = ContactDetails(**{
            k: str(value.get(k, getattr(base, k)) or "").strip() for k in CONTACT_FIELDS
        })
    else:
        errors.append(ValidationError("contact", "Contact details must be an object"))
        return base

    if merged.email and not is_valid_email(merged.email):
        errors.append(ValidationError("contact.email", "Please enter a valid email address"))
    if merged.phone and not is_valid_phone(merged.phone):
        errors.append(ValidationError(
            "contact.phone",
            f"Please enter a valid phone number ({PHONE_MIN_DIGITS}-{PHONE_MAX_DIGITS} digits)",
        ))
    return merged


def _check_common(
    proposed: Mapping[str, Any],
    base_contact: ContactDetails,
    update: Dict[str, Any],
    errors: List[ValidationError],
) -> None:
    """Rules shared by create and update, applied in a fixed order."""
    if "name" in proposed:
        name = str(proposed["name"] or "").strip()
        if not name:
            errors.append(ValidationError("name", "Company name is required"))
        update["name"] = name

    if "contact" in proposed:
        update["contact"] = _merge_contact(base_contact, proposed["contact"], errors)

    for key in ("contact_date", "meeting_date"):
        if key in proposed:
            try:
                update[key] = _coerce_date(proposed[key])
            except ValueError:
                errors.append(ValidationError(key, "Please enter a valid date (YYYY-MM-DD)"))

    if "notes" in proposed:
        update["notes"] = str(proposed["notes"] or "")


def _check_escalation(
    status: Status,
    target: Any,
    owner: int,
    update: Dict[str, Any],
    errors: List[ValidationError],
) -> None:
    if status is not Status.ESCALATED:
        # leaving (or never entering) ESCALATED always drops the pointer
        update["escalated_to"] = None
        return
    try:
        target_id = _coerce_user_id(target)
    except ValueError:
        errors.append(ValidationError("escalated_to", "Escalation target must be a user id"))
        return
    if target_id is None:
        errors.append(ValidationError("escalated_to", "Select a user to escalate this company to"))
    elif target_id == owner:
        errors.append(ValidationError("escalated_to", "A company cannot be escalated to its own owner"))
    else:
        update["escalated_to"] = target_id


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------
def validate_transition(current: Company, proposed: Mapping[str, Any]) -> ValidationResult:
    """
    Validate a partial update of *current*.

    All violations are collected; the caller gets the full list.  On success
    the normalized update always carries ``escalated_to`` so the backend never
    sees an orphaned escalation pointer.

    Examples
    --------
    >>> c = Company(id=1, name="Acme", assigned_to=7, assigned_by=7)
    >>> validate_transition(c, {"status": "ESCALATED", "escalated_to": 9}).update
    {'status': <Status.ESCALATED: 'ESCALATED'>, 'escalated_to': 9}
    """
    errors: List[ValidationError] = []
    update: Dict[str, Any] = {}

    for key in proposed:
        if key in READ_ONLY_FIELDS:
            errors.append(ValidationError(key, "Field is read-only"))
        elif key not in EDITABLE_FIELDS:
            errors.append(ValidationError(key, "Unknown field"))

    if "assigned_to" in proposed:
        try:
            owner = _coerce_user_id(proposed["assigned_to"])
        except ValueError:
            owner = None
        if owner != current.assigned_to:
            errors.append(ValidationError(
                "assigned_to", "Ownership can only change by accepting an escalation"))

    _check_common(proposed, current.contact, update, errors)

    status = current.status
    if "status" in proposed:
        try:
            status = _coerce_status(proposed["status"])
        except ValueError:
            errors.append(ValidationError("status", f"Unknown status {proposed['status']!r}"))
        else:
            if status not in RULES.get(current.status, set()):
                errors.append(ValidationError(
                    "status", f"illegal transition {current.status.name} → {status.name}"))
            update["status"] = status

    target = proposed.get("escalated_to", current.escalated_to)
    _check_escalation(status, target, current.assigned_to, update, errors)

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(update=update)


def validate_new_company(payload: Mapping[str, Any], owner_id: int) -> ValidationResult:
    """
    Validate the payload of a company about to be created by *owner_id*.

    ``assigned_to`` defaults to the creating user, ``assigned_by`` is always
    the creating user and ``status`` defaults to PENDING.
    """
    errors: List[ValidationError] = []
    update: Dict[str, Any] = {}

    for key in payload:
        if key == "assigned_by":
            if payload[key] != owner_id:
                errors.append(ValidationError(key, "Field is set to the creating user"))
        elif key in READ_ONLY_FIELDS:
            errors.append(ValidationError(key, "Field is read-only"))
        elif key not in EDITABLE_FIELDS:
            errors.append(ValidationError(key, "Unknown field"))

    if not str(payload.get("name") or "").strip():
        errors.append(ValidationError("name", "Company name is required"))
        proposed = {k: v for k, v in payload.items() if k != "name"}
    else:
        proposed = payload

    _check_common(proposed, ContactDetails(), update, errors)
    update.setdefault("contact", ContactDetails())
    update.setdefault("contact_date", None)
    update.setdefault("meeting_date", None)
    update.setdefault("notes", "")

    try:
        assignee = _coerce_user_id(payload.get("assigned_to", owner_id))
    except ValueError:
        assignee = None
    if assignee is None:
        errors.append(ValidationError("assigned_to", "Select a user to assign this company to"))
        assignee = owner_id
    update["assigned_to"] = assignee
    update["assigned_by"] = owner_id

    status = Status.PENDING
    if "status" in payload:
        try:
            status = _coerce_status(payload["status"])
        except ValueError:
            errors.append(ValidationError("status", f"Unknown status {payload['status']!r}"))
    update["status"] = status

    _check_escalation(status, payload.get("escalated_to"), assignee, update, errors)

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(update=update)


def accept_escalation(company: Company, user: User) -> Dict[str, Any]:
    """
    Normalized update for the escalation target taking the company over.

    Raises :class:`AuthorizationError` unless *user* is the current
    escalation target of an ESCALATED company.
    """
    if company.status is not Status.ESCALATED or company.escalated_to != user.id:
        raise AuthorizationError(
            f"user {user.id} is not the escalation target of company {company.id}")
    return {"assigned_to": user.id, "status": Status.PENDING, "escalated_to": None}


def violates_escalation_invariant(company: Company) -> bool:
    """True when ``escalated_to`` and ``status`` disagree."""
    return (company.status is Status.ESCALATED) != (company.escalated_to is not None)
