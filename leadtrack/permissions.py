"""
leadtrack.permissions
=====================

Ownership predicates for (user, company) pairs.

These are the single source of truth for which actions a user is offered
and which ones the controller lets through.  The backend still has the
final word; a ``True`` here is an affordance, not a security boundary.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, TypeVar

from .errors import AuthorizationError
from .models import Comment, Company, User

T = TypeVar("T")


def can_edit(user: User, company: Company) -> bool:
    """Only the owner edits; the escalation target does not."""
    return user.id == company.assigned_to


def can_delete(user: User, company: Company) -> bool:
    return can_edit(user, company)


def can_comment(user: User, company: Company) -> bool:
    """Only the owner writes comments; everyone with access may read them."""
    return user.id == company.assigned_to


def can_view(user: User, company: Company) -> bool:
    # Any authenticated user sees every company and its thread.
    return user is not None


def can_modify_comment(user: User, comment: Comment) -> bool:
    """Edit and delete are reserved to the comment's author."""
    return user.id == comment.user_id


def escalation_candidates(users: Iterable[User], company: Company) -> List[User]:
    """Users a company may be escalated to: everybody except its owner."""
    return [u for u in users if u.id != company.assigned_to]


def require(predicate: Callable[[User, T], bool], user: User, target: T, action: str) -> None:
    """Raise :class:`AuthorizationError` if *predicate* denies *action*."""
    if not predicate(user, target):
        raise AuthorizationError(f"user {user.id} may not {action}")
