"""Shared fixtures: an in-memory stand-in for both backend services."""
from __future__ import annotations

import csv
import json
from typing import Any, Dict, List, Optional, Set, Tuple
from urllib.parse import unquote

import pytest

from user_offboarding.clients import AdminServiceClient, IdentityProviderClient

PROVIDER_URL = "https://idp.test/api/v2"
ADMIN_URL = "https://admin.test/v0.1"
TOKEN = "test-token"


class FakeResponse:
    def __init__(self, status_code: int, body: Any = "") -> None:
        self.status_code = status_code
        self.text = body if isinstance(body, str) else json.dumps(body)

    def json(self) -> Any:
        return json.loads(self.text)


class FakeBackend:
    """Behaves like a ``requests.Session`` talking to both services.

    Users live in two independent stores so tests can model drift between the
    admin service and the identity provider. ``override`` pins the response of
    a single endpoint, or makes it raise.
    """

    def __init__(self, provider_url: str = PROVIDER_URL, admin_url: str = ADMIN_URL, token: str = TOKEN) -> None:
        self.provider_url = provider_url
        self.admin_url = admin_url
        self.token = token
        self.admin_users: Set[str] = set()
        self.provider_users: Dict[str, str] = {}
        self.calls: List[Tuple[str, str, Optional[Dict[str, str]]]] = []
        self.closed = False
        self._overrides: List[Tuple[str, str, Optional[Dict[str, str]], Any]] = []

    def add_user(self, email: str, provider_id: Optional[str] = None, *, admin: bool = True) -> None:
        if admin:
            self.admin_users.add(email)
        if provider_id:
            self.provider_users[provider_id] = email

    def override(
        self,
        method: str,
        url: str,
        status: int = 500,
        body: Any = "",
        *,
        params: Optional[Dict[str, str]] = None,
        raises: Optional[Exception] = None,
    ) -> None:
        self._overrides.append((method, url, params, raises or FakeResponse(status, body)))

    def calls_to(self, base_url: str) -> List[Tuple[str, str, Optional[Dict[str, str]]]]:
        return [call for call in self.calls if call[1].startswith(base_url)]

    # --- requests.Session interface ---

    def request(self, method, url, headers=None, params=None, timeout=None):
        self.calls.append((method, url, params))
        for o_method, o_url, o_params, result in self._overrides:
            if o_method == method and o_url == url and (o_params is None or o_params == params):
                if isinstance(result, Exception):
                    raise result
                return result

        if url.startswith(self.provider_url):
            if (headers or {}).get("Authorization") != f"Bearer {self.token}":
                return FakeResponse(401, {"statusCode": 401, "error": "Unauthorized"})
            return self._provider(method, url[len(self.provider_url):], params or {})
        if url.startswith(self.admin_url):
            return self._admin(method, url[len(self.admin_url):])
        raise AssertionError(f"Unexpected request {method} {url}")

    def close(self) -> None:
        self.closed = True

    # --- endpoint behaviour ---

    def _provider(self, method: str, path: str, params: Dict[str, str]) -> FakeResponse:
        if method == "GET" and path == "/users-by-email":
            email = params.get("email")
            matches = [
                {"user_id": user_id, "email": owner}
                for user_id, owner in self.provider_users.items()
                if owner == email
            ]
            return FakeResponse(200, matches)

        if path.startswith("/users/"):
            user_id = unquote(path[len("/users/"):])
            exists = user_id in self.provider_users
            if method == "DELETE":
                if not exists:
                    return FakeResponse(404, {"statusCode": 404, "error": "Not Found"})
                del self.provider_users[user_id]
                return FakeResponse(204)
            if method == "GET":
                if exists:
                    return FakeResponse(200, {"user_id": user_id, "email": self.provider_users[user_id]})
                return FakeResponse(404, {"statusCode": 404, "error": "Not Found"})

        raise AssertionError(f"Unexpected provider request {method} {path}")

    def _admin(self, method: str, path: str) -> FakeResponse:
        if not path.startswith("/users/email/"):
            raise AssertionError(f"Unexpected admin request {method} {path}")
        email = unquote(path[len("/users/email/"):])
        exists = email in self.admin_users
        if method == "DELETE":
            if not exists:
                return FakeResponse(404, {"message": "User not found"})
            self.admin_users.discard(email)
            return FakeResponse(200, {"ok": True})
        if method == "GET":
            if exists:
                return FakeResponse(200, {"email": email})
            return FakeResponse(404, {"message": "User not found"})
        raise AssertionError(f"Unexpected admin request {method} {path}")


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def admin_client(backend: FakeBackend) -> AdminServiceClient:
    return AdminServiceClient(ADMIN_URL, session=backend)


@pytest.fixture
def provider_client(backend: FakeBackend) -> IdentityProviderClient:
    return IdentityProviderClient(PROVIDER_URL, TOKEN, session=backend)


@pytest.fixture
def read_log():
    """Return the data rows of an audit log, without its banner and header."""

    def _read(path) -> List[List[str]]:
        with open(path, newline="", encoding="utf-8") as handle:
            rows = list(csv.reader(line for line in handle if not line.startswith("#")))
        return rows[1:]

    return _read
