"""Stage 3: confirm that deleted users are gone from both services."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from .. import audit
from ..clients.admin_service import AdminServiceClient
from ..clients.identity_provider import IdentityProviderClient
from ..models import Service, UserRecord, VerifyOutcome, VerifyStatus, VerifySummary
from ..rate_limit import RateLimiter

LOGGER = logging.getLogger(__name__)


class Verifier:
    """Re-queries both services for every record of the artifact.

    Only a user that still exists counts against the verdict; failed checks
    are reported separately as inconclusive.
    """

    def __init__(
        self,
        admin: AdminServiceClient,
        provider: IdentityProviderClient,
        *,
        log_dir: str | Path,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self._admin = admin
        self._provider = provider
        self._log_dir = Path(log_dir)
        self._rate_limiter = rate_limiter or RateLimiter(None)

    def check_admin(self, record: UserRecord) -> VerifyOutcome:
        outcome = self._admin.get_by_email(record.email)
        if outcome.status is VerifyStatus.STILL_EXISTS:
            return VerifyOutcome(
                service=outcome.service,
                status=outcome.status,
                http_status=outcome.http_status,
                detail="User still exists",
            )
        return outcome

    def check_provider(self, record: UserRecord) -> VerifyOutcome:
        if not record.has_provider_id:
            return VerifyOutcome(service=Service.PROVIDER, status=VerifyStatus.SKIPPED)
        outcome = self._provider.get_user(record.provider_id)
        if outcome.status is VerifyStatus.STILL_EXISTS:
            return VerifyOutcome(
                service=outcome.service,
                status=outcome.status,
                http_status=outcome.http_status,
                detail=f"User still exists (ID: {record.provider_id})",
            )
        return outcome

    def run(self, records: Iterable[UserRecord]) -> VerifySummary:
        records = list(records)
        total = len(records)
        summary = VerifySummary()

        with audit.AuditLog(self._log_dir, audit.VERIFY_STILL_EXISTS) as still_exists_log:
            for index, record in enumerate(records, start=1):
                self._rate_limiter.acquire()
                LOGGER.info("[%s/%s] %s", index, total, record.email)

                admin_outcome = self.check_admin(record)
                provider_outcome = self.check_provider(record)
                for outcome in (admin_outcome, provider_outcome):
                    _report(outcome)
                    if outcome.status is VerifyStatus.STILL_EXISTS:
                        still_exists_log.append([record.email, outcome.service.value, outcome.detail])

                summary.add(admin_outcome, provider_outcome)

        return summary


def _report(outcome: VerifyOutcome) -> None:
    label = outcome.service.short_name
    if outcome.status is VerifyStatus.GONE:
        LOGGER.info("  %s: Gone", label)
    elif outcome.status is VerifyStatus.STILL_EXISTS:
        LOGGER.warning("  %s: STILL EXISTS", label)
    elif outcome.status is VerifyStatus.CHECK_ERROR:
        LOGGER.warning("  %s: Error (HTTP %s)", label, outcome.http_status or "-")
    else:
        LOGGER.info("  %s: Skipped (no ID)", label)
