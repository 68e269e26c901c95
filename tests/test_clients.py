"""Tests for the backend clients and their status classification."""
from __future__ import annotations

import pytest
import requests

from user_offboarding.clients import AdminServiceClient, IdentityProviderClient, StatusMapping
from user_offboarding.clients.base import encode_segment, summarise_body
from user_offboarding.models import DeleteStatus, ResolveStatus, Service, VerifyStatus


def test_path_segments_are_fully_encoded() -> None:
    assert encode_segment("auth0|123") == "auth0%7C123"
    assert encode_segment("a+b/c@x.com") == "a%2Bb%2Fc%40x.com"


def test_summarise_body_strips_newlines_and_truncates() -> None:
    body = "line one\nline two\r\n" + "x" * 500

    summary = summarise_body(body)

    assert "\n" not in summary and "\r" not in summary
    assert len(summary) == 200
    assert summary.startswith("line one line two")


def test_status_mapping_falls_back_to_default() -> None:
    mapping = StatusMapping(statuses={200: "ok"}, default="other")

    assert mapping.classify(200) == "ok"
    assert mapping.classify(418) == "other"
    assert mapping.classify(None) == "other"


def test_lookup_returns_first_match(backend, provider_client: IdentityProviderClient) -> None:
    backend.add_user("a@x.com", "auth0|123")

    status, user_id, response = provider_client.lookup_by_email("a@x.com")

    assert (status, user_id, response.status_code) == (ResolveStatus.FOUND, "auth0|123", 200)
    method, url, params = backend.calls[-1]
    assert (method, url, params) == ("GET", f"{backend.provider_url}/users-by-email", {"email": "a@x.com"})


@pytest.mark.parametrize("body", ["[]", "", "not json", '[{"email": "a@x.com"}]'])
def test_lookup_without_usable_id_is_not_found(backend, provider_client, body) -> None:
    backend.override("GET", f"{backend.provider_url}/users-by-email", 200, body)

    status, user_id, _ = provider_client.lookup_by_email("a@x.com")

    assert status is ResolveStatus.NOT_FOUND
    assert user_id is None


def test_lookup_non_200_is_an_error(backend, provider_client) -> None:
    backend.override("GET", f"{backend.provider_url}/users-by-email", 429, "Too Many Requests")

    status, user_id, response = provider_client.lookup_by_email("a@x.com")

    assert status is ResolveStatus.LOOKUP_ERROR
    assert user_id is None
    assert response.status_code == 429


@pytest.mark.parametrize(
    "status_code, expected, detail",
    [
        (200, DeleteStatus.DELETED, ""),
        (204, DeleteStatus.DELETED, ""),
        (404, DeleteStatus.NOT_FOUND, ""),
        (401, DeleteStatus.UNAUTHORIZED, "Invalid token"),
        (403, DeleteStatus.FORBIDDEN, "Missing delete:users scope"),
        (500, DeleteStatus.ERROR, "server exploded"),
    ],
)
def test_provider_delete_classification(backend, provider_client, status_code, expected, detail) -> None:
    backend.override("DELETE", f"{backend.provider_url}/users/auth0%7C123", status_code, "server exploded")

    outcome = provider_client.delete_user("auth0|123")

    assert outcome.service is Service.PROVIDER
    assert outcome.status is expected
    assert outcome.http_status == status_code
    assert outcome.detail == detail


def test_admin_delete_treats_other_statuses_as_errors(backend, admin_client: AdminServiceClient) -> None:
    url = f"{backend.admin_url}/users/email/a%40x.com"
    backend.override("DELETE", url, 401, "nope")

    outcome = admin_client.delete_by_email("a@x.com")

    assert outcome.service is Service.ADMIN
    assert outcome.status is DeleteStatus.ERROR
    assert (outcome.http_status, outcome.detail) == (401, "nope")


def test_checks_use_the_same_trichotomy(backend, admin_client, provider_client) -> None:
    backend.add_user("a@x.com", "auth0|1")

    assert admin_client.get_by_email("a@x.com").status is VerifyStatus.STILL_EXISTS
    assert provider_client.get_user("auth0|1").status is VerifyStatus.STILL_EXISTS
    assert admin_client.get_by_email("gone@x.com").status is VerifyStatus.GONE
    assert provider_client.get_user("auth0|2").status is VerifyStatus.GONE

    backend.override("GET", f"{backend.admin_url}/users/email/a%40x.com", 503, "unavailable")
    assert admin_client.get_by_email("a@x.com").status is VerifyStatus.CHECK_ERROR


def test_transport_failures_become_error_outcomes(backend, admin_client, provider_client) -> None:
    backend.override(
        "DELETE",
        f"{backend.admin_url}/users/email/a%40x.com",
        raises=requests.ConnectionError("connection refused"),
    )
    backend.override(
        "GET",
        f"{backend.provider_url}/users/auth0%7C1",
        raises=requests.Timeout("read timed out"),
    )

    deleted = admin_client.delete_by_email("a@x.com")
    checked = provider_client.get_user("auth0|1")

    assert deleted.status is DeleteStatus.ERROR
    assert deleted.http_status is None
    assert "connection refused" in deleted.detail
    assert checked.status is VerifyStatus.CHECK_ERROR


def test_provider_sends_bearer_token_and_admin_does_not(backend) -> None:
    seen = []

    class RecordingSession:
        def request(self, method, url, headers=None, params=None, timeout=None):
            seen.append((url, dict(headers or {}), timeout))
            return backend.request(method, url, headers=headers, params=params, timeout=timeout)

    session = RecordingSession()
    AdminServiceClient(backend.admin_url, session=session).get_by_email("a@x.com")
    IdentityProviderClient(backend.provider_url, "test-token", session=session, timeout=5).get_user("auth0|1")

    assert seen[0][1] == {}
    assert seen[1][1] == {"Authorization": "Bearer test-token"}
    assert seen[1][2] == 5
