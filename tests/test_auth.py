"""
tests/test_auth.py
==================

Login / logout through leadtrack.auth.AuthClient.
"""

import httpx
import pytest

from leadtrack.auth import AuthClient, Session
from leadtrack.errors import AuthorizationError, TransportError
from leadtrack.models import Role

from conftest import BASE_URL


@pytest.mark.asyncio
async def test_login_builds_session(transport):
    auth = AuthClient(base_url=BASE_URL, transport=transport)
    session = await auth.login("james@company.com", "secret")
    assert session.is_authenticated
    assert session.current_user.id == 7
    assert session.current_user.role is Role.STANDARD
    assert session.auth_headers() == {"Authorization": "Bearer tok-7"}


@pytest.mark.asyncio
async def test_bad_credentials(transport):
    auth = AuthClient(base_url=BASE_URL, transport=transport)
    with pytest.raises(AuthorizationError):
        await auth.login("james@company.com", "wrong")


@pytest.mark.asyncio
async def test_server_error_is_transport_error():
    auth = AuthClient(base_url=BASE_URL, transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    with pytest.raises(TransportError):
        await auth.login("james@company.com", "secret")


@pytest.mark.asyncio
async def test_malformed_login_response():
    transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"message": "ok"}))
    auth = AuthClient(base_url=BASE_URL, transport=transport)
    with pytest.raises(TransportError):
        await auth.login("james@company.com", "secret")


def test_logout_tears_session_down(james):
    session = Session(current_user=james, token="tok-7")
    AuthClient(base_url=BASE_URL).logout(session)
    assert not session.is_authenticated
    with pytest.raises(AuthorizationError):
        session.auth_headers()


@pytest.mark.asyncio
async def test_login_tolerates_missing_role_and_name():
    def handler(request):
        return httpx.Response(200, json={"message": "ok", "user": {
            "id": 11, "firstname": None, "email": "x@company.com", "role": None, "token": "tok-11"}})

    auth = AuthClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    session = await auth.login("x@company.com", "secret")
    assert session.current_user.role is Role.STANDARD
    assert session.current_user.first_name == ""
