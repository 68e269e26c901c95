"""Client for the internal admin service user directory."""
from __future__ import annotations

from ..models import DeleteOutcome, DeleteStatus, Service, VerifyOutcome, VerifyStatus
from .base import ServiceClient, StatusMapping, encode_segment

DELETE_STATUSES = StatusMapping(
    statuses={200: DeleteStatus.DELETED, 404: DeleteStatus.NOT_FOUND},
    default=DeleteStatus.ERROR,
)

CHECK_STATUSES = StatusMapping(
    statuses={200: VerifyStatus.STILL_EXISTS, 404: VerifyStatus.GONE},
    default=VerifyStatus.CHECK_ERROR,
)


class AdminServiceClient(ServiceClient):
    """Email-keyed access to the admin service. No authentication is sent."""

    service = Service.ADMIN

    def delete_by_email(self, email: str) -> DeleteOutcome:
        return self.delete_with(f"/users/email/{encode_segment(email)}", DELETE_STATUSES)

    def get_by_email(self, email: str) -> VerifyOutcome:
        return self.check_with(f"/users/email/{encode_segment(email)}", CHECK_STATUSES)
