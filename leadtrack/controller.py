"""
leadtrack.controller
====================

The lifecycle controller ties the validator, the ownership predicates and
the REST client together, and owns the in‑memory company collection.

Rules of thumb
--------------
* Validation and authorization run locally and synchronously *before* any
  request; a rejected operation never reaches the network.
* The collection is only replaced after the backend call succeeded, so a
  failure leaves the previous state intact.
* Reminders are recomputed every time the collection changes.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from . import lifecycle
from .auth import Session
from .client import CrmClient
from .errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    ValidationFailed,
)
from .models import Comment, Company, Reminder, Status, User
from .permissions import (
    can_comment,
    can_delete,
    can_edit,
    can_modify_comment,
    can_view,
    escalation_candidates,
    require,
)
from .portfolio import CompanyBook
from .reminders import derive_reminders
from .settings import settings

logger = logging.getLogger(__name__)

VIEWS = ("all", "mine", "pending", "closed", "escalated", "escalated_to_me")


class LifecycleController:
    """
    Orchestrates create / update / delete of companies and their comments.

    Parameters
    ----------
    session : Session
        Logged‑in user context; every operation acts on its behalf.
    client : CrmClient
        Backend collaborator.
    clock : callable, optional
        Returns "now" for reminder computation (defaults to local time).
    window_days : int, optional
        Reminder look‑ahead, defaults to ``settings.reminder_window_days``.
    """

    def __init__(
        self,
        session: Session,
        client: CrmClient,
        clock: Optional[Callable[[], datetime]] = None,
        window_days: Optional[int] = None,
    ) -> None:
        self.session = session
        self.client = client
        self._clock = clock or datetime.now
        self.window_days = settings.reminder_window_days if window_days is None else window_days
        self.book = CompanyBook()
        self.users: List[User] = []
        self.reminders: List[Reminder] = []

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @property
    def current_user(self) -> User:
        if not self.session.is_authenticated:
            raise AuthorizationError("not logged in")
        return self.session.current_user

    def _commit(self, book: CompanyBook) -> None:
        """Swap in a new collection and recompute derived state."""
        for company in book:
            if lifecycle.violates_escalation_invariant(company):
                logger.warning(f"Company {company.id} has status {company.status} "
                               f"but escalated_to={company.escalated_to}")
        self.book = book
        self.recompute_reminders()

    def _store(self, company: Company) -> None:
        book = self.book.copy()
        book.add(company)
        self._commit(book)

    def _keep_comments(self, fresh: Company) -> Company:
        """Carry an already loaded thread over to a fresh backend record."""
        if fresh.comments or fresh.id not in self.book:
            return fresh
        return replace(fresh, comments=self.book.get(fresh.id).comments)

    def _check_name(self, name: str, owner: int, exclude: Optional[int] = None) -> None:
        duplicate = self.book.find_duplicate(name, owner, exclude=exclude)
        if duplicate is not None:
            raise ConflictError(
                f"A company named {duplicate.name!r} is already assigned to user {owner}")

    @staticmethod
    def _clean_content(content: str) -> str:
        text = (content or "").strip()
        if not text:
            raise ValidationFailed([ValidationError("content", "Comment cannot be empty")])
        return text

    def now(self) -> datetime:
        return self._clock()

    def recompute_reminders(self) -> List[Reminder]:
        if not self.session.is_authenticated:
            self.reminders = []
        else:
            self.reminders = derive_reminders(
                self.book, self.session.current_user.id, self.now(), self.window_days)
        return self.reminders

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def refresh(self, mine_only: bool = False) -> List[Company]:
        """Reload users and companies from the backend."""
        user = self.current_user
        users = await self.client.list_users()
        companies = await self.client.list_companies(assigned_to=user.id if mine_only else None)
        self.users = users
        self._commit(CompanyBook(self._keep_comments(c) for c in companies))
        logger.info(f"Loaded {len(companies)} companies and {len(users)} users")
        return list(self.book)

    def get_company(self, company_id: int) -> Company:
        try:
            return self.book.get(company_id)
        except KeyError:
            raise NotFoundError(f"Company {company_id} not found") from None

    def filter_companies(self, view: str = "all") -> List[Company]:
        """Dashboard filters: all, mine, pending, closed, escalated, escalated_to_me."""
        user = self.current_user
        if view == "all":
            return list(self.book)
        if view == "mine":
            return self.book.find_by_owner(user.id)
        if view == "pending":
            return self.book.find_by_status(Status.PENDING)
        if view == "closed":
            return self.book.find_by_status(Status.CLOSED)
        if view == "escalated":
            return self.book.find_by_status(Status.ESCALATED)
        if view == "escalated_to_me":
            return [c for c in self.book.find_by_status(Status.ESCALATED) if c.escalated_to == user.id]
        raise ValueError(f"unknown view {view!r}; expected one of {', '.join(VIEWS)}")

    def stats(self) -> Dict[str, int]:
        user = self.current_user
        return {
            "total": len(self.book),
            "mine": len(self.book.find_by_owner(user.id)),
            "pending": len(self.book.find_by_status(Status.PENDING)),
            "closed": len(self.book.find_by_status(Status.CLOSED)),
            "escalated": len(self.book.find_by_status(Status.ESCALATED)),
        }

    def escalation_candidates(self, company_id: int) -> List[User]:
        return escalation_candidates(self.users, self.get_company(company_id))

    # ------------------------------------------------------------------
    # Company lifecycle
    # ------------------------------------------------------------------
    async def create_company(self, payload: Mapping[str, Any]) -> Company:
        """
        Validate and create a company owned by ``payload["assigned_to"]``
        (the current user when omitted).

        Raises
        ------
        ValidationFailed
            One or more field problems; nothing was sent.
        ConflictError
            The owner already has a company with this name.
        NotFoundError
            The backend does not know the assignee or escalation target.
        """
        user = self.current_user
        data = lifecycle.validate_new_company(payload, user.id).unwrap()
        self._check_name(data["name"], data["assigned_to"])
        try:
            company = await self.client.create_company(data)
        except ConflictError:
            logger.info(f"Backend rejected duplicate company name {data['name']!r}")
            raise
        except NotFoundError as e:
            raise NotFoundError(f"Unknown assignee or escalation target: {e}") from e
        self._store(company)
        return company

    async def update_company(self, company_id: int, proposed: Mapping[str, Any]) -> Company:
        """
        Apply a partial update as the current user.

        The normalized update is what gets sent, so re‑sending the same
        proposal is equivalent to applying it again.
        """
        user = self.current_user
        current = self.get_company(company_id)
        require(can_edit, user, current, f"edit company {company_id}")
        update = lifecycle.validate_transition(current, proposed).unwrap()
        if "name" in update:
            self._check_name(update["name"], current.assigned_to, exclude=current.id)
        try:
            updated = await self.client.update_company(company_id, update)
        except NotFoundError as e:
            raise NotFoundError(f"Company {company_id} or its escalation target no longer exists: {e}") from e
        updated = self._keep_comments(updated)
        self._store(updated)
        logger.info(f"Updated company {company_id}: {sorted(update)}")
        return updated

    async def set_status(self, company_id: int, status: Status, escalated_to: Optional[int] = None) -> Company:
        proposed: Dict[str, Any] = {"status": status}
        if escalated_to is not None:
            proposed["escalated_to"] = escalated_to
        return await self.update_company(company_id, proposed)

    async def escalate(self, company_id: int, target_id: int) -> Company:
        """Forward a company to *target_id*; ownership stays with the owner."""
        return await self.set_status(company_id, Status.ESCALATED, escalated_to=target_id)

    async def accept_escalation(self, company_id: int) -> Company:
        """The escalation target takes the company over (and becomes its owner)."""
        user = self.current_user
        current = self.get_company(company_id)
        update = lifecycle.accept_escalation(current, user)
        self._check_name(current.name, user.id, exclude=current.id)
        updated = await self.client.update_company(company_id, update)
        updated = self._keep_comments(updated)
        self._store(updated)
        logger.info(f"User {user.id} accepted escalation of company {company_id}")
        return updated

    async def delete_company(self, company_id: int) -> None:
        user = self.current_user
        current = self.get_company(company_id)
        require(can_delete, user, current, f"delete company {company_id}")
        await self.client.delete_company(company_id)
        book = self.book.copy()
        if company_id in book:
            book.remove(company_id)
        self._commit(book)

    # ------------------------------------------------------------------
    # Comments (stored on the company records in the collection)
    # ------------------------------------------------------------------
    def _find_comment(self, company: Company, comment_id: int) -> Comment:
        for comment in company.comments:
            if comment.id == comment_id:
                return comment
        raise NotFoundError(f"Comment {comment_id} not found on company {company.id}")

    def _with_comments(self, company_id: int, comments: Tuple[Comment, ...]) -> Tuple[Comment, ...]:
        # re-read: the collection may have changed while the request was in flight
        if company_id in self.book:
            self._store(replace(self.book.get(company_id), comments=comments))
        return comments

    async def load_comments(self, company_id: int) -> Tuple[Comment, ...]:
        user = self.current_user
        require(can_view, user, self.get_company(company_id), f"view company {company_id}")
        comments = await self.client.list_comments(company_id)
        ordered = tuple(sorted(comments, key=lambda c: c.created_at))
        return self._with_comments(company_id, ordered)

    async def add_comment(self, company_id: int, content: str) -> Comment:
        user = self.current_user
        require(can_comment, user, self.get_company(company_id), f"comment on company {company_id}")
        text = self._clean_content(content)
        comment = await self.client.add_comment(company_id, user.id, text)
        thread = self.get_company(company_id).comments if company_id in self.book else ()
        self._with_comments(company_id, thread + (comment,))
        return comment

    async def edit_comment(self, company_id: int, comment_id: int, content: str) -> Comment:
        user = self.current_user
        comment = self._find_comment(self.get_company(company_id), comment_id)
        require(can_modify_comment, user, comment, f"edit comment {comment_id}")
        text = self._clean_content(content)
        updated = await self.client.update_comment(comment_id, text)
        if company_id in self.book:
            thread = tuple(updated if c.id == comment_id else c for c in self.book.get(company_id).comments)
            self._with_comments(company_id, thread)
        return updated

    async def delete_comment(self, company_id: int, comment_id: int) -> None:
        user = self.current_user
        comment = self._find_comment(self.get_company(company_id), comment_id)
        require(can_modify_comment, user, comment, f"delete comment {comment_id}")
        await self.client.delete_comment(comment_id)
        if company_id in self.book:
            thread = tuple(c for c in self.book.get(company_id).comments if c.id != comment_id)
            self._with_comments(company_id, thread)
