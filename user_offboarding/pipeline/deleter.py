"""Stage 2: delete users from the admin service and the identity provider."""
from __future__ import annotations

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Callable, Iterable, Optional

from .. import audit
from ..clients.admin_service import AdminServiceClient
from ..clients.identity_provider import IdentityProviderClient
from ..models import (
    SKIP_NO_PROVIDER_ID,
    DeleteOutcome,
    DeleteStatus,
    DeleteSummary,
    Service,
    UserRecord,
)
from ..rate_limit import RateLimiter

LOGGER = logging.getLogger(__name__)

_CONSOLE_MESSAGES = {
    DeleteStatus.DELETED: "Deleted",
    DeleteStatus.NOT_FOUND: "Not found (already absent)",
    DeleteStatus.UNAUTHORIZED: "ERROR 401 - Unauthorized (bad token)",
    DeleteStatus.FORBIDDEN: "ERROR 403 - Forbidden (missing scope)",
    DeleteStatus.SKIPPED: "Skipped (no ID)",
}


def _report(outcome: DeleteOutcome) -> None:
    label = outcome.service.short_name
    if outcome.status is DeleteStatus.ERROR:
        LOGGER.warning("  %s: ERROR %s - %s", label, outcome.http_status or "-", outcome.detail)
    elif outcome.status.is_failure:
        LOGGER.warning("  %s: %s", label, _CONSOLE_MESSAGES[outcome.status])
    else:
        LOGGER.info("  %s: %s", label, _CONSOLE_MESSAGES[outcome.status])


class Deleter:
    """Removes each record from both services, independently of each other.

    A failure against one service never prevents the attempt against the
    other, and no failure stops the batch.
    """

    def __init__(
        self,
        admin: AdminServiceClient,
        provider: IdentityProviderClient,
        *,
        log_dir: str | Path,
        rate_limiter: Optional[RateLimiter] = None,
        clock: Callable[[], str] = audit.timestamp,
    ) -> None:
        self._admin = admin
        self._provider = provider
        self._log_dir = Path(log_dir)
        self._rate_limiter = rate_limiter or RateLimiter(None)
        self._clock = clock

    def delete_admin(self, record: UserRecord) -> DeleteOutcome:
        return self._admin.delete_by_email(record.email)

    def delete_provider(self, record: UserRecord) -> DeleteOutcome:
        if not record.has_provider_id:
            return DeleteOutcome(service=Service.PROVIDER, status=DeleteStatus.SKIPPED, detail=SKIP_NO_PROVIDER_ID)
        return self._provider.delete_user(record.provider_id)

    def run(self, records: Iterable[UserRecord]) -> DeleteSummary:
        records = list(records)
        total = len(records)
        summary = DeleteSummary()

        with ExitStack() as stack:
            admin_ok = stack.enter_context(audit.AuditLog(self._log_dir, audit.DELETE_ADMIN_SUCCESS))
            admin_err = stack.enter_context(audit.AuditLog(self._log_dir, audit.DELETE_ADMIN_ERRORS))
            provider_ok = stack.enter_context(audit.AuditLog(self._log_dir, audit.DELETE_PROVIDER_SUCCESS))
            provider_err = stack.enter_context(audit.AuditLog(self._log_dir, audit.DELETE_PROVIDER_ERRORS))

            for index, record in enumerate(records, start=1):
                self._rate_limiter.acquire()
                LOGGER.info("[%s/%s] %s", index, total, record.email)

                admin_outcome = self.delete_admin(record)
                _report(admin_outcome)
                if admin_outcome.status.is_success:
                    admin_ok.append([self._clock(), admin_outcome.status.value, record.email, record.display_name])
                else:
                    admin_err.append(
                        [
                            self._clock(),
                            admin_outcome.status.value,
                            record.email,
                            record.display_name,
                            admin_outcome.http_status,
                            admin_outcome.detail,
                        ]
                    )

                provider_outcome = self.delete_provider(record)
                _report(provider_outcome)
                if provider_outcome.status.is_success:
                    provider_ok.append(
                        [self._clock(), provider_outcome.status.value, record.email, record.provider_id]
                    )
                elif provider_outcome.status.is_failure:
                    provider_err.append(
                        [
                            self._clock(),
                            provider_outcome.status.value,
                            record.email,
                            record.provider_id,
                            provider_outcome.http_status,
                            provider_outcome.detail,
                        ]
                    )

                summary.add(admin_outcome, provider_outcome)

        return summary
