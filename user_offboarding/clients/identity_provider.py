"""Client for the identity provider's user management API."""
from __future__ import annotations

from typing import Optional

import requests

from ..models import DeleteOutcome, DeleteStatus, ResolveStatus, Service, VerifyOutcome, VerifyStatus
from .base import ApiResponse, ServiceClient, StatusMapping, encode_segment

DELETE_STATUSES = StatusMapping(
    statuses={
        200: DeleteStatus.DELETED,
        204: DeleteStatus.DELETED,
        404: DeleteStatus.NOT_FOUND,
        401: DeleteStatus.UNAUTHORIZED,
        403: DeleteStatus.FORBIDDEN,
    },
    default=DeleteStatus.ERROR,
    details={
        DeleteStatus.UNAUTHORIZED: "Invalid token",
        DeleteStatus.FORBIDDEN: "Missing delete:users scope",
    },
)

CHECK_STATUSES = StatusMapping(
    statuses={200: VerifyStatus.STILL_EXISTS, 404: VerifyStatus.GONE},
    default=VerifyStatus.CHECK_ERROR,
)


class IdentityProviderClient(ServiceClient):
    """Bearer-token authenticated access to ``/api/v2`` user endpoints."""

    service = Service.PROVIDER

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(
            base_url,
            session=session,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
        )

    def lookup_by_email(self, email: str) -> tuple[ResolveStatus, Optional[str], ApiResponse]:
        """Return the lookup status, the first matching user id and the raw response."""

        response = self.request("GET", "/users-by-email", params={"email": email})
        if response.status_code != 200:
            return ResolveStatus.LOOKUP_ERROR, None, response

        users = response.payload
        if isinstance(users, list) and users and isinstance(users[0], dict):
            user_id = users[0].get("user_id")
            if user_id:
                return ResolveStatus.FOUND, str(user_id), response
        return ResolveStatus.NOT_FOUND, None, response

    def delete_user(self, user_id: str) -> DeleteOutcome:
        return self.delete_with(f"/users/{encode_segment(user_id)}", DELETE_STATUSES)

    def get_user(self, user_id: str) -> VerifyOutcome:
        return self.check_with(f"/users/{encode_segment(user_id)}", CHECK_STATUSES)
