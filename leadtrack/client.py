"""
leadtrack.client
================

Async client for the CRM backend (companies, users, comments).

The client talks camelCase JSON over httpx, re‑validates every response with
:pymod:`leadtrack.schemas` and turns HTTP failures into the exceptions of
:pymod:`leadtrack.errors`:

* 404 → :class:`NotFoundError`
* 409 → :class:`ConflictError`
* 401/403 → :class:`AuthorizationError`
* 400/422 → :class:`ValidationFailed`
* anything else, or no answer at all → :class:`TransportError`
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from .auth import Session
from .errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    TransportError,
    ValidationError,
    ValidationFailed,
)
from .models import Comment, Company, Status, User
from .schemas import CommentSchema, CompanySchema, UserSchema, to_wire
from .settings import settings

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseModel)


def _detail(response: httpx.Response) -> str:
    """Best‑effort human readable message from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase


def raise_for_response(response: httpx.Response) -> None:
    """Raise the leadtrack exception matching an error status code."""
    code = response.status_code
    if code < 400:
        return
    detail = _detail(response)
    if code == 404:
        raise NotFoundError(detail)
    if code == 409:
        raise ConflictError(detail)
    if code in (401, 403):
        raise AuthorizationError(detail)
    if code in (400, 422):
        raise ValidationFailed([ValidationError("payload", detail)])
    raise TransportError(f"backend answered {code}: {detail}", status_code=code)


def parse(schema: Type[S], data: Any) -> S:
    """Validate one JSON object, reporting schema drift as a TransportError."""
    try:
        return schema.model_validate(data)
    except SchemaError as e:
        logger.error(f"Malformed {schema.__name__} from backend: {e}")
        raise TransportError(f"malformed {schema.__name__} in response") from e


def parse_list(schema: Type[S], data: Any) -> List[S]:
    if not isinstance(data, list):
        raise TransportError(f"expected a list of {schema.__name__}")
    return [parse(schema, item) for item in data]


class CrmClient:
    """
    REST collaborator used by the lifecycle controller.

    Every request carries the bearer token of the given :class:`Session`;
    once the session is closed (logout) requests fail with
    :class:`AuthorizationError` without reaching the network.

    Use as an async context manager, or call :pymeth:`aclose` when done.
    """

    def __init__(
        self,
        session: Session,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self._http = httpx.AsyncClient(
            base_url=base_url or str(settings.api_base_url),
            headers={
                "Accept": "application/json",
                "User-Agent": settings.api_user_agent,
            },
            timeout=timeout if timeout is not None else settings.api_timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if not self.session.is_authenticated:
            raise AuthorizationError("not logged in")
        try:
            response = await self._http.request(
                method, url, headers=self.session.auth_headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise TransportError(f"could not reach backend: {e}") from e
        raise_for_response(response)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError("backend returned invalid JSON") from e

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "CrmClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Companies
    # ------------------------------------------------------------------
    async def list_companies(
        self, assigned_to: Optional[int] = None, status: Optional[Status] = None
    ) -> List[Company]:
        params: Dict[str, Any] = {}
        if assigned_to is not None:
            params["assignedTo"] = assigned_to
        if status is not None:
            params["status"] = Status(status).value
        response = await self._request("GET", "/companies", params=params)
        return [c.to_model() for c in parse_list(CompanySchema, self._json(response))]

    async def create_company(self, payload: Mapping[str, Any]) -> Company:
        """*payload* uses model field names, as returned by the validator."""
        response = await self._request("POST", "/companies", json=to_wire(payload))
        company = parse(CompanySchema, self._json(response)).to_model()
        logger.info(f"Created company {company.id} ({company.name!r})")
        return company

    async def update_company(self, company_id: int, update: Mapping[str, Any]) -> Company:
        response = await self._request("PATCH", f"/companies/{company_id}", json=to_wire(update))
        return parse(CompanySchema, self._json(response)).to_model()

    async def delete_company(self, company_id: int) -> None:
        await self._request("DELETE", f"/companies/{company_id}")
        logger.info(f"Deleted company {company_id}")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    async def list_users(self) -> List[User]:
        response = await self._request("GET", "/users")
        return [u.to_model() for u in parse_list(UserSchema, self._json(response))]

    async def get_user(self, user_id: int) -> User:
        response = await self._request("GET", f"/users/{user_id}")
        return parse(UserSchema, self._json(response)).to_model()

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------
    async def list_comments(self, company_id: int) -> List[Comment]:
        response = await self._request("GET", f"/comments/company/{company_id}")
        return [c.to_model() for c in parse_list(CommentSchema, self._json(response))]

    async def add_comment(self, company_id: int, user_id: int, content: str) -> Comment:
        response = await self._request(
            "POST", "/comments",
            params={"companyId": company_id, "userId": user_id, "content": content},
        )
        return parse(CommentSchema, self._json(response)).to_model()

    async def update_comment(self, comment_id: int, content: str) -> Comment:
        response = await self._request("PUT", f"/comments/{comment_id}", json={"content": content})
        return parse(CommentSchema, self._json(response)).to_model()

    async def delete_comment(self, comment_id: int) -> None:
        await self._request("DELETE", f"/comments/{comment_id}")
