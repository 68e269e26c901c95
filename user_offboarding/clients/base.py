"""Shared HTTP plumbing for the backend API clients."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Mapping, Optional, TypeVar
from urllib.parse import quote

import requests

from ..models import DeleteOutcome, DeleteStatus, Service, VerifyOutcome, VerifyStatus

LOGGER = logging.getLogger(__name__)

StatusT = TypeVar("StatusT")

ERROR_DETAIL_LIMIT = 200


def encode_segment(value: str) -> str:
    """Percent-encode a single URL path segment, including ``/`` and ``|``."""

    return quote(value, safe="")


def summarise_body(text: str, limit: int = ERROR_DETAIL_LIMIT) -> str:
    """Flatten a response body onto one line and cap its length."""

    flattened = text.replace("\r", " ").replace("\n", " ")
    return flattened[:limit]


@dataclass(frozen=True)
class ApiResponse:
    """Minimal view of an HTTP exchange.

    ``status_code`` is ``None`` when the request never produced a response.
    """

    status_code: Optional[int]
    text: str = ""
    payload: Any = None


@dataclass(frozen=True)
class StatusMapping(Generic[StatusT]):
    """Maps HTTP status codes to outcome categories."""

    statuses: Mapping[int, StatusT]
    default: StatusT
    details: Mapping[Any, str] = field(default_factory=dict)

    def classify(self, status_code: Optional[int]) -> StatusT:
        if status_code is None:
            return self.default
        return self.statuses.get(status_code, self.default)


@dataclass(frozen=True)
class Classified(Generic[StatusT]):
    status: StatusT
    response: ApiResponse


class ServiceClient:
    """Base class wrapping a :class:`requests.Session` for one backend."""

    service: Service

    @property
    def name(self) -> str:
        return self.service.value

    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._headers = dict(headers or {})
        self._timeout = timeout

    def request(self, method: str, path: str, *, params: Optional[Dict[str, str]] = None) -> ApiResponse:
        """Send a request and never raise for transport or HTTP errors."""

        url = f"{self.base_url}{path}"
        LOGGER.debug("%s %s %s", self.name, method, url)
        try:
            response = self._session.request(
                method,
                url,
                headers=self._headers,
                params=params,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            LOGGER.warning("%s %s %s failed: %s", self.name, method, url, exc)
            return ApiResponse(status_code=None, text=str(exc))

        payload = None
        if response.text:
            try:
                payload = response.json()
            except ValueError:
                payload = None
        LOGGER.debug("%s %s %s -> %s", self.name, method, url, response.status_code)
        return ApiResponse(status_code=response.status_code, text=response.text, payload=payload)

    def call(
        self,
        method: str,
        path: str,
        mapping: StatusMapping[StatusT],
        *,
        params: Optional[Dict[str, str]] = None,
    ) -> Classified[StatusT]:
        """Send a request and classify its status with ``mapping``."""

        response = self.request(method, path, params=params)
        return Classified(status=mapping.classify(response.status_code), response=response)

    def delete_with(self, path: str, mapping: StatusMapping[DeleteStatus]) -> DeleteOutcome:
        """Issue a DELETE and turn the response into a :class:`DeleteOutcome`."""

        result = self.call("DELETE", path, mapping)
        return DeleteOutcome(
            service=self.service,
            status=result.status,
            http_status=result.response.status_code,
            detail=_detail_for(mapping, result),
        )

    def check_with(self, path: str, mapping: StatusMapping[VerifyStatus]) -> VerifyOutcome:
        """Issue a GET and turn the response into a :class:`VerifyOutcome`."""

        result = self.call("GET", path, mapping)
        return VerifyOutcome(
            service=self.service,
            status=result.status,
            http_status=result.response.status_code,
            detail=_detail_for(mapping, result),
        )


def _detail_for(mapping: StatusMapping[Any], result: Classified[Any]) -> str:
    if result.status in mapping.details:
        return mapping.details[result.status]
    if result.status == mapping.default:
        return summarise_body(result.response.text)
    return ""
