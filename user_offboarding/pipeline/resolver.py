"""Stage 1: resolve identity provider IDs for the users to offboard."""
from __future__ import annotations

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Iterable, Optional

from .. import audit
from ..clients.base import summarise_body
from ..clients.identity_provider import IdentityProviderClient
from ..io import ArtifactWriter
from ..models import ResolveOutcome, ResolveStatus, ResolveSummary, UserRecord
from ..rate_limit import RateLimiter

LOGGER = logging.getLogger(__name__)


class Resolver:
    """Looks every email up in the provider and writes the pipeline artifact.

    Exactly one artifact row is written per input record, in input order,
    whether or not the lookup succeeded. Records whose lookup failed get an
    empty provider id so the delete stage still removes them from the admin
    service.
    """

    def __init__(
        self,
        provider: IdentityProviderClient,
        *,
        log_dir: str | Path,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self._provider = provider
        self._log_dir = Path(log_dir)
        self._rate_limiter = rate_limiter or RateLimiter(None)

    def resolve(self, record: UserRecord) -> ResolveOutcome:
        """Look a single record up without touching any file."""

        status, user_id, response = self._provider.lookup_by_email(record.email)
        resolved = UserRecord(
            email=record.email,
            display_name=record.display_name,
            provider_id=user_id or "",
        )
        if status is ResolveStatus.LOOKUP_ERROR:
            return ResolveOutcome(
                record=resolved,
                status=status,
                http_status=response.status_code,
                detail=summarise_body(response.text),
            )
        return ResolveOutcome(record=resolved, status=status, http_status=response.status_code)

    def run(self, records: Iterable[UserRecord], artifact_path: str | Path) -> ResolveSummary:
        records = list(records)
        total = len(records)
        summary = ResolveSummary()

        with ExitStack() as stack:
            artifact = stack.enter_context(ArtifactWriter(artifact_path))
            found_log = stack.enter_context(audit.AuditLog(self._log_dir, audit.PREPARE_FOUND))
            not_found_log = stack.enter_context(audit.AuditLog(self._log_dir, audit.PREPARE_NOT_FOUND))
            error_log = stack.enter_context(audit.AuditLog(self._log_dir, audit.PREPARE_ERRORS))

            for index, record in enumerate(records, start=1):
                self._rate_limiter.acquire()
                LOGGER.info("[%s/%s] %s", index, total, record.email)
                outcome = self.resolve(record)
                resolved = outcome.record
                artifact.write(resolved)

                if outcome.status is ResolveStatus.FOUND:
                    LOGGER.info("  Found: %s", resolved.provider_id)
                    found_log.append([resolved.email, resolved.display_name, resolved.provider_id])
                elif outcome.status is ResolveStatus.NOT_FOUND:
                    LOGGER.info("  Not found in Auth0")
                    not_found_log.append([resolved.email, resolved.display_name])
                else:
                    LOGGER.warning("  ERROR: HTTP %s", outcome.http_status or "-")
                    error_log.append(
                        [resolved.email, resolved.display_name, outcome.http_status or "", outcome.detail]
                    )
                summary.add(outcome)

        return summary
