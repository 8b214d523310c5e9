"""
api.deps
========

FastAPI dependency providers.

The HTTP layer serves one browser front‑end, so it keeps a single
:class:`AppState` holding the lifecycle controller of the logged‑in user.
``login`` builds it, ``logout`` tears it down.
"""

from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, HTTPException

from leadtrack.auth import AuthClient, Session
from leadtrack.client import CrmClient
from leadtrack.controller import LifecycleController
from leadtrack.settings import settings


class AppState:
    """Holder for the controller of the current session (if any)."""

    def __init__(self) -> None:
        self.controller: Optional[LifecycleController] = None

    async def close(self, auth: AuthClient) -> None:
        if self.controller is None:
            return
        auth.logout(self.controller.session)
        await self.controller.client.aclose()
        self.controller = None


@lru_cache
def get_state() -> AppState:
    """Singleton application state (persists across requests)."""
    return AppState()


@lru_cache
def get_auth_client() -> AuthClient:
    """Return a configured login client."""
    return AuthClient(base_url=str(settings.api_base_url), timeout=settings.api_timeout)


def get_client_factory() -> Callable[[Session], CrmClient]:
    """Return the callable used to build a backend client for a new session."""
    return lambda session: CrmClient(session)


def get_controller(state: AppState = Depends(get_state)) -> LifecycleController:
    """Controller of the logged‑in user; 401 when nobody is logged in."""
    if state.controller is None or not state.controller.session.is_authenticated:
        raise HTTPException(status_code=401, detail="Not logged in")
    return state.controller
