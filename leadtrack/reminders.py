"""
leadtrack.reminders
===================

Derive the notices an owner sees on the dashboard from the company
collection and an explicit ``now``.

The engine never reads the wall clock itself, so the same
``(companies, owner, now)`` always yields the same list.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from .display import format_date
from .models import Company, Reminder, Severity, Status
from .settings import REMINDER_WINDOW_DAYS

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def days_until(contact_date: date, now: datetime) -> int:
    """
    Whole days from *now* until *contact_date*, rounded up.

    The contact date counts from midnight in the timezone of *now*, so a
    meeting later today is ``0`` and one tomorrow is ``1``.
    """
    start = datetime.combine(contact_date, time.min, tzinfo=now.tzinfo)
    return math.ceil((start - now) / ONE_DAY)


def _contact_date(company: Company) -> Optional[date]:
    value = company.contact_date
    if value is None or isinstance(value, date):
        return value.date() if isinstance(value, datetime) else value
    # a malformed date is skipped, not fatal
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning(f"Ignoring malformed contact date {value!r} on company {company.id}")
        return None


def _meeting_reminder(company: Company, contact: date, now: datetime, window: int) -> Optional[Reminder]:
    diff = days_until(contact, now)
    if diff == 0:
        return Reminder(company.id, f"Meeting with {company.name} today", Severity.HIGH)
    if 0 < diff <= window:
        unit = "day" if diff == 1 else "days"
        return Reminder(company.id, f"Meeting with {company.name} in {diff} {unit}", Severity.MEDIUM)
    return None


def _pending_reminder(company: Company, contact: Optional[date]) -> Reminder:
    if contact is not None:
        detail = f"contact date {format_date(contact)}"
    else:
        detail = "no meeting scheduled"
    return Reminder(company.id, f"{company.name} is still pending ({detail})", Severity.LOW)


def derive_reminders(
    companies: Iterable[Company],
    owner: int,
    now: datetime,
    window_days: int = REMINDER_WINDOW_DAYS,
) -> List[Reminder]:
    """
    Build the ordered reminder list for the companies owned by *owner*.

    For each company, in input order:

    * a HIGH "today" or MEDIUM "in N days" reminder when the contact date is
      0 to *window_days* days away;
    * a LOW stale‑pending reminder whenever the status is PENDING.

    Both can fire for the same company.
    """
    reminders: List[Reminder] = []
    for company in companies:
        if company.assigned_to != owner:
            continue
        contact = _contact_date(company)
        if contact is not None:
            meeting = _meeting_reminder(company, contact, now, window_days)
            if meeting is not None:
                reminders.append(meeting)
        if company.status is Status.PENDING:
            reminders.append(_pending_reminder(company, contact))
    return reminders
