"""
leadtrack.auth
==============

Explicit session context.

A :class:`Session` is built by :pymeth:`AuthClient.login` and torn down by
:pymeth:`AuthClient.logout`; the controller and the REST client receive it as
an argument instead of reading a token from some global store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from .errors import AuthorizationError, TransportError
from .models import User
from .schemas import LoginResponseSchema
from .settings import settings

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """The logged‑in user and the bearer token issued for them."""
    current_user: User
    token: Optional[str] = field(default=None, repr=False)

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def auth_headers(self) -> Dict[str, str]:
        if self.token is None:
            raise AuthorizationError("session has been closed")
        return {"Authorization": f"Bearer {self.token}"}

    def close(self) -> None:
        """Forget the token; the session can no longer authorize requests."""
        self.token = None


class AuthClient:
    """Thin client for the backend's ``/auth/login`` endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or str(settings.api_base_url)
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self.transport = transport

    async def login(self, email: str, password: str) -> Session:
        """
        Exchange credentials for a :class:`Session`.

        Raises
        ------
        AuthorizationError
            Wrong e‑mail or password.
        TransportError
            Backend unreachable or answering garbage.
        """
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                response = await client.post("/auth/login", json={"email": email, "password": password})
            except httpx.HTTPError as e:
                logger.error(f"Login request failed: {e}")
                raise TransportError(f"could not reach backend: {e}") from e

        if response.status_code in (400, 401, 403, 404):
            logger.info(f"Rejected login for {email!r}")
            raise AuthorizationError("Invalid email or password. Please try again.")
        if response.status_code >= 400:
            raise TransportError(f"login failed with {response.status_code}", status_code=response.status_code)

        try:
            body = LoginResponseSchema.model_validate(response.json())
        except ValueError as e:
            # pydantic's ValidationError is a ValueError, as is a JSON decode error
            raise TransportError("malformed login response") from e

        user = body.user.to_model()
        logger.info(f"User {user.id} logged in")
        return Session(current_user=user, token=body.user.token)

    def logout(self, session: Session) -> None:
        session.close()
        logger.info(f"User {session.current_user.id} logged out")
