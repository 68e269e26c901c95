"""Categorized audit logs written by each pipeline stage.

Every log is truncated when a stage run starts, so it only ever describes the
most recent run. Rows are appended and flushed as soon as a record has been
handled.
"""
from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import IO, Optional, Sequence, Tuple

_RULE = "# " + "─" * 65


@dataclass(frozen=True)
class LogSpec:
    """File name, banner and column layout of one audit log."""

    filename: str
    title: str
    columns: Tuple[str, ...]
    notes: Tuple[str, ...] = ()


# --- prepare ---
PREPARE_FOUND = LogSpec(
    "prepare_found.log",
    "Prepare - Users Found in Auth0",
    ("Email", "Port Name", "Auth0 ID"),
    ("These users exist in Auth0 and are ready for deletion",),
)
PREPARE_NOT_FOUND = LogSpec(
    "prepare_not_found.log",
    "Prepare - Users Not Found in Auth0",
    ("Email", "Port Name"),
    (
        "These users do not exist in Auth0 (may have been deleted or never created)",
        "Note: These users will still be deleted from Admin Service",
    ),
)
PREPARE_ERRORS = LogSpec(
    "prepare_errors.log",
    "Prepare - API Errors",
    ("Email", "Port Name", "HTTP Status", "Error Details"),
    ("Errors that occurred during Auth0 lookup (e.g., 401, 403, 429)",),
)

# --- delete ---
DELETE_ADMIN_SUCCESS = LogSpec(
    "delete_admin_success.log",
    "Delete - Admin Service Success",
    ("Timestamp", "Status", "Email", "Port Name"),
)
DELETE_ADMIN_ERRORS = LogSpec(
    "delete_admin_errors.log",
    "Delete - Admin Service Errors",
    ("Timestamp", "Status", "Email", "Port Name", "HTTP Status", "Error"),
)
DELETE_PROVIDER_SUCCESS = LogSpec(
    "delete_auth0_success.log",
    "Delete - Auth0 Success",
    ("Timestamp", "Status", "Email", "Auth0 ID"),
)
DELETE_PROVIDER_ERRORS = LogSpec(
    "delete_auth0_errors.log",
    "Delete - Auth0 Errors",
    ("Timestamp", "Status", "Email", "Auth0 ID", "HTTP Status", "Error"),
)

# --- verify ---
VERIFY_STILL_EXISTS = LogSpec(
    "verify_still_exists.log",
    "Verify - Users That Still Exist",
    ("Email", "Service", "Details"),
    ("These users were NOT successfully deleted and need attention",),
)


def timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 local time with offset, to the second."""

    moment = now or datetime.now().astimezone()
    return moment.isoformat(timespec="seconds")


class AuditLog:
    """Append-only CSV log with a commented banner."""

    def __init__(self, directory: str | Path, spec: LogSpec) -> None:
        self.spec = spec
        self.path = Path(directory) / spec.filename
        self._handle: Optional[IO[str]] = None
        self._writer = None

    def __enter__(self) -> "AuditLog":
        self.open()
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()

    def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self.path.open("w", newline="", encoding="utf-8")
        lines = [f"# {self.spec.title}"]
        lines.extend(f"# {note}" for note in self.spec.notes)
        lines.append(f"# Format: {','.join(self.spec.columns)}")
        lines.append(_RULE)
        self._handle.write("\n".join(lines) + "\n")
        self._writer = csv.writer(self._handle, lineterminator="\n")
        self._writer.writerow(self.spec.columns)
        self._handle.flush()

    def append(self, row: Sequence[object]) -> None:
        if self._writer is None or self._handle is None:
            raise RuntimeError(f"Audit log {self.path} is not open")
        self._writer.writerow(["" if value is None else value for value in row])
        self._handle.flush()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            self._writer = None
