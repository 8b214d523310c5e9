"""
leadtrack.display
=================

Small text helpers shared by reminder messages and the HTTP layer.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from .models import User

DATE_FORMAT = "%b %d, %Y"


def user_name(user: Optional[User]) -> str:
    """``"First Last"``, falling back to the e‑mail, then ``"Unknown User"``."""
    if user is None:
        return "Unknown User"
    full = f"{user.first_name} {user.last_name}".strip()
    return full or user.email or "Unknown User"


def user_initials(user: Optional[User]) -> str:
    """One or two upper‑case initials for an avatar, ``"U"`` when unknown."""
    if user is None:
        return "U"
    parts = [p for p in (user.first_name, user.last_name) if p]
    if parts:
        return "".join(p[0] for p in parts).upper()
    return (user.email[:1] or "U").upper()


def find_user(users: Iterable[User], user_id: Optional[int]) -> Optional[User]:
    return next((u for u in users if u.id == user_id), None)


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def relative_time(then: datetime, now: datetime) -> str:
    """
    Compact age of a comment: ``Just now``, ``5m``, ``3h``, ``2d`` or the date
    itself once it is a week old.
    """
    if then.tzinfo is not None and now.tzinfo is None:
        then = then.astimezone().replace(tzinfo=None)
    elif then.tzinfo is None and now.tzinfo is not None:
        then = then.replace(tzinfo=now.tzinfo)
    seconds = (now - then).total_seconds()
    minutes = int(seconds // 60)
    hours = minutes // 60
    if hours < 1:
        return "Just now" if minutes < 1 else f"{minutes}m"
    if hours < 24:
        return f"{hours}h"
    days = hours // 24
    if days < 7:
        return f"{days}d"
    return format_date(then)
