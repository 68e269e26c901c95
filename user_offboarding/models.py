"""Data models shared by the prepare, delete and verify stages."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


# --- Core Input Models ---

_NAME_SEPARATORS = re.compile(r"[._\s]+")


def derive_display_name(email: str, name: Optional[str] = None) -> str:
    """Return ``name`` unless it is empty or just repeats the email.

    Otherwise the local part of the email is split on dots and underscores and
    each token is capitalised, e.g. ``dustin.savage@example.com`` becomes
    ``Dustin Savage``.
    """

    cleaned = (name or "").strip()
    if cleaned and cleaned != email:
        return cleaned
    local_part = email.split("@", 1)[0]
    tokens = [token for token in _NAME_SEPARATORS.split(local_part) if token]
    return " ".join(token[:1].upper() + token[1:].lower() for token in tokens)


@dataclass(slots=True)
class UserRecord:
    """One email-keyed unit of work flowing through all three stages.

    ``provider_id`` is ``None`` before the provider lookup has run and ``""``
    once a lookup has run without resolving an ID.
    """

    email: str
    display_name: str = ""
    provider_id: Optional[str] = None

    def __post_init__(self) -> None:
        self.email = (self.email or "").strip()
        if not self.email:
            raise ValueError("UserRecord requires a non-empty email")
        self.display_name = derive_display_name(self.email, self.display_name)
        if self.provider_id is not None:
            self.provider_id = self.provider_id.strip()

    @property
    def has_provider_id(self) -> bool:
        return bool(self.provider_id)


# --- Outcome Taxonomy ---

class Service(str, Enum):
    ADMIN = "Admin Service"
    PROVIDER = "Auth0"

    @property
    def short_name(self) -> str:
        """Upper-case tag used in console status lines."""
        return "ADMIN" if self is Service.ADMIN else "AUTH0"


class ResolveStatus(str, Enum):
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"
    LOOKUP_ERROR = "LOOKUP_ERROR"


class DeleteStatus(str, Enum):
    DELETED = "DELETED"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    ERROR = "ERROR"
    SKIPPED = "SKIPPED"

    @property
    def is_success(self) -> bool:
        return self in (DeleteStatus.DELETED, DeleteStatus.NOT_FOUND)

    @property
    def is_failure(self) -> bool:
        return self in (DeleteStatus.UNAUTHORIZED, DeleteStatus.FORBIDDEN, DeleteStatus.ERROR)


class VerifyStatus(str, Enum):
    GONE = "GONE"
    STILL_EXISTS = "STILL_EXISTS"
    CHECK_ERROR = "CHECK_ERROR"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class ResolveOutcome:
    """Result of looking a single email up in the identity provider."""

    record: UserRecord
    status: ResolveStatus
    http_status: Optional[int] = None
    detail: str = ""


@dataclass(frozen=True)
class DeleteOutcome:
    """Result of one delete attempt against one service."""

    service: Service
    status: DeleteStatus
    http_status: Optional[int] = None
    detail: str = ""


@dataclass(frozen=True)
class VerifyOutcome:
    """Result of one existence check against one service."""

    service: Service
    status: VerifyStatus
    http_status: Optional[int] = None
    detail: str = ""


SKIP_NO_PROVIDER_ID = "no provider id"


# --- Stage Tallies ---

@dataclass
class ResolveSummary:
    processed: int = 0
    found: int = 0
    not_found: int = 0
    errors: int = 0
    outcomes: List[ResolveOutcome] = field(default_factory=list)

    def add(self, outcome: ResolveOutcome) -> None:
        self.processed += 1
        self.outcomes.append(outcome)
        if outcome.status is ResolveStatus.FOUND:
            self.found += 1
        elif outcome.status is ResolveStatus.NOT_FOUND:
            self.not_found += 1
        else:
            self.errors += 1


@dataclass
class DeleteTally:
    """Per-service counters for the delete stage."""

    deleted: int = 0
    not_found: int = 0
    failed: int = 0
    skipped: int = 0
    unauthorized: int = 0
    forbidden: int = 0

    def add(self, outcome: DeleteOutcome) -> None:
        status = outcome.status
        if status is DeleteStatus.DELETED:
            self.deleted += 1
        elif status is DeleteStatus.NOT_FOUND:
            self.not_found += 1
        elif status is DeleteStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
            if status is DeleteStatus.UNAUTHORIZED:
                self.unauthorized += 1
            elif status is DeleteStatus.FORBIDDEN:
                self.forbidden += 1


@dataclass
class DeleteSummary:
    processed: int = 0
    admin: DeleteTally = field(default_factory=DeleteTally)
    provider: DeleteTally = field(default_factory=DeleteTally)
    results: List[Dict[Service, DeleteOutcome]] = field(default_factory=list)

    def add(self, admin: DeleteOutcome, provider: DeleteOutcome) -> None:
        self.processed += 1
        self.admin.add(admin)
        self.provider.add(provider)
        self.results.append({Service.ADMIN: admin, Service.PROVIDER: provider})

    @property
    def auth_failures(self) -> int:
        return self.provider.unauthorized + self.provider.forbidden


@dataclass
class VerifyTally:
    gone: int = 0
    still_exists: int = 0
    check_errors: int = 0
    skipped: int = 0

    def add(self, outcome: VerifyOutcome) -> None:
        status = outcome.status
        if status is VerifyStatus.GONE:
            self.gone += 1
        elif status is VerifyStatus.STILL_EXISTS:
            self.still_exists += 1
        elif status is VerifyStatus.CHECK_ERROR:
            self.check_errors += 1
        else:
            self.skipped += 1


@dataclass
class VerifySummary:
    processed: int = 0
    admin: VerifyTally = field(default_factory=VerifyTally)
    provider: VerifyTally = field(default_factory=VerifyTally)
    results: List[Dict[Service, VerifyOutcome]] = field(default_factory=list)

    def add(self, admin: VerifyOutcome, provider: VerifyOutcome) -> None:
        self.processed += 1
        self.admin.add(admin)
        self.provider.add(provider)
        self.results.append({Service.ADMIN: admin, Service.PROVIDER: provider})

    @property
    def still_exists(self) -> int:
        return self.admin.still_exists + self.provider.still_exists

    @property
    def inconclusive(self) -> int:
        return self.admin.check_errors + self.provider.check_errors

    @property
    def succeeded(self) -> bool:
        """Overall verdict: no user is left in either service."""

        return self.still_exists == 0
