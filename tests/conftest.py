"""
Pytest configuration: make sure `import leadtrack` works regardless of
where pytest is invoked, and provide an in‑memory fake of the CRM backend.

The fake speaks the same camelCase JSON as the real backend and is wired in
through ``httpx.MockTransport``, so the real client code runs end to end.
"""

import json
import sys
from datetime import datetime
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

# /path/to/project/tests -> project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from leadtrack.auth import Session  # noqa: E402
from leadtrack.client import CrmClient  # noqa: E402
from leadtrack.controller import LifecycleController  # noqa: E402
from leadtrack.models import Role, User  # noqa: E402

BASE_URL = "http://backend.test/api"
NOW = datetime(2025, 3, 10, 9, 30)

WIRE_USERS = [
    {"id": 3, "firstname": "Michael", "surname": "Brown", "email": "michael@company.com",
     "role": "ADMIN", "contactNumber": ""},
    {"id": 5, "firstname": "David", "surname": "Wilson", "email": "david@company.com",
     "role": "INSTRUCTOR", "contactNumber": "+27 11 555 0100"},
    {"id": 7, "firstname": "James", "surname": "Taylor", "email": "james@company.com",
     "role": "STUDENT", "contactNumber": None},
    {"id": 9, "firstname": "Robert", "surname": "Garcia", "email": "robert@company.com",
     "role": "STUDENT", "contactNumber": None},
]


def wire_company(id, name, assigned_to, status="PENDING", escalated_to=None, **extra):
    data = {
        "id": id,
        "name": name,
        "contactDetails": {"contactPerson": "Jane Roe", "email": "jane@acme.com",
                           "phone": "+1 555 010 9999", "address": "1 Main St"},
        "assignedTo": assigned_to,
        "assignedBy": assigned_to,
        "contactDate": None,
        "meetingDate": None,
        "status": status,
        "escalatedTo": escalated_to,
        "notes": "",
        "createdAt": "2025-03-01T08:00:00",
    }
    data.update(extra)
    return data


class FakeBackend:
    """Minimal stand‑in for the REST backend."""

    def __init__(self):
        self.users = {u["id"]: dict(u) for u in WIRE_USERS}
        self.companies = {}
        self.comments = {}
        self.requests = []
        self.fail_with = None
        self._next_id = 100

    # ------------------------------------------------------------------ helpers
    def seed(self, company):
        self.companies[company["id"]] = company
        return company

    def seed_comment(self, id, company_id, user_id, content, created_at="2025-03-09T10:00:00"):
        self.comments[id] = {"id": id, "companyId": company_id, "userId": user_id,
                             "content": content, "createdAt": created_at}
        return self.comments[id]

    def _new_id(self):
        self._next_id += 1
        return self._next_id

    def mutations(self):
        return [r for r in self.requests if r[0] in ("POST", "PATCH", "PUT", "DELETE")
                and r[1] != "/auth/login"]

    @staticmethod
    def _json(status, body=None):
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def _duplicate(self, name, owner, exclude=None):
        key = name.strip().lower()
        return any(c["name"].strip().lower() == key and c["assignedTo"] == owner and c["id"] != exclude
                   for c in self.companies.values())

    # ------------------------------------------------------------------ routing
    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path[len("/api"):]
        method = request.method
        self.requests.append((method, path))

        if path == "/auth/login":
            creds = json.loads(request.content)
            for user in self.users.values():
                if user["email"] == creds["email"] and creds["password"] == "secret":
                    return self._json(200, {"message": "Login successful", "user": {
                        "id": user["id"], "firstname": user["firstname"], "email": user["email"],
                        "role": user["role"], "token": f"tok-{user['id']}"}})
            return self._json(401, {"message": "Bad credentials"})

        if not request.headers.get("Authorization", "").startswith("Bearer tok-"):
            return self._json(401, {"message": "Unauthorized"})

        if self.fail_with is not None:
            status, self.fail_with = self.fail_with, None
            return self._json(status, {"message": "injected failure"})

        parts = path.strip("/").split("/")
        if parts == ["users"]:
            return self._json(200, list(self.users.values()))
        if parts[0] == "users" and len(parts) == 2:
            user = self.users.get(int(parts[1]))
            return self._json(200, user) if user else self._json(404, {"message": "No such user"})

        if parts == ["companies"] and method == "GET":
            rows = list(self.companies.values())
            if "assignedTo" in request.url.params:
                rows = [c for c in rows if c["assignedTo"] == int(request.url.params["assignedTo"])]
            if "status" in request.url.params:
                rows = [c for c in rows if c["status"] == request.url.params["status"]]
            return self._json(200, rows)

        if parts == ["companies"] and method == "POST":
            body = json.loads(request.content)
            if body["assignedTo"] not in self.users:
                return self._json(404, {"message": "Assignee not found"})
            if body.get("escalatedTo") is not None and body["escalatedTo"] not in self.users:
                return self._json(404, {"message": "Escalation target not found"})
            if self._duplicate(body["name"], body["assignedTo"]):
                return self._json(409, {"message": "Company already exists"})
            company = dict(body, id=self._new_id(), createdAt="2025-03-10T09:30:00")
            return self._json(201, self.seed(company))

        if parts[0] == "companies" and len(parts) == 2:
            company_id = int(parts[1])
            if company_id not in self.companies:
                return self._json(404, {"message": "Company not found"})
            if method == "PATCH":
                body = json.loads(request.content)
                if body.get("escalatedTo") is not None and body["escalatedTo"] not in self.users:
                    return self._json(404, {"message": "Escalation target not found"})
                self.companies[company_id] = dict(self.companies[company_id], **body)
                return self._json(200, self.companies[company_id])
            if method == "DELETE":
                del self.companies[company_id]
                return self._json(204)

        if parts[:2] == ["comments", "company"]:
            company_id = int(parts[2])
            return self._json(200, [c for c in self.comments.values() if c["companyId"] == company_id])

        if parts == ["comments"] and method == "POST":
            params = {k: v[0] for k, v in parse_qs(request.url.query.decode()).items()}
            comment = self.seed_comment(self._new_id(), int(params["companyId"]), int(params["userId"]),
                                        params["content"], "2025-03-10T09:30:00")
            return self._json(201, comment)

        if parts[0] == "comments" and len(parts) == 2:
            comment_id = int(parts[1])
            if comment_id not in self.comments:
                return self._json(404, {"message": "Comment not found"})
            if method == "PUT":
                body = json.loads(request.content)
                self.comments[comment_id].update(content=body["content"], updatedAt="2025-03-10T09:45:00")
                return self._json(200, self.comments[comment_id])
            if method == "DELETE":
                del self.comments[comment_id]
                return self._json(204)

        return self._json(500, {"message": f"unhandled {method} {path}"})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def transport(backend):
    return httpx.MockTransport(backend.handler)


@pytest.fixture
def james():
    return User(id=7, first_name="James", last_name="Taylor", email="james@company.com", role=Role.STANDARD)


@pytest.fixture
def session(james):
    return Session(current_user=james, token="tok-7")


@pytest.fixture
def client(session, transport):
    return CrmClient(session, base_url=BASE_URL, transport=transport)


@pytest.fixture
def controller(session, client):
    return LifecycleController(session, client, clock=lambda: NOW, window_days=5)
