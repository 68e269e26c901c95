"""Reading and writing the pipeline artifact shared by all stages."""
from __future__ import annotations

import csv
from pathlib import Path
from typing import IO, List, Optional

from .models import UserRecord

ARTIFACT_HEADER = ["Email", "Port Name", "Auth0 ID"]


class InputError(ValueError):
    """Raised when an input file is missing or holds no usable records."""


def load_artifact(path: str | Path) -> List[UserRecord]:
    """Load the records written by the prepare stage.

    The header row is skipped; rows with an empty email are ignored. Missing
    trailing columns are treated as empty.
    """

    file_path = Path(path)
    if not file_path.is_file():
        raise InputError(f"CSV file not found: {file_path}")

    records: List[UserRecord] = []
    with file_path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.reader(handle)
        next(reader, None)
        for row in reader:
            cells = [cell.strip() for cell in row] + ["", "", ""]
            email, name, provider_id = cells[:3]
            if not email:
                continue
            records.append(UserRecord(email=email, display_name=name, provider_id=provider_id))

    if not records:
        raise InputError(f"No users found in CSV: {file_path}")
    return records


class ArtifactWriter:
    """Writes artifact rows one at a time, flushing after each.

    Flushing per row keeps partial progress on disk if the run is killed.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._handle: Optional[IO[str]] = None
        self._writer = None

    def __enter__(self) -> "ArtifactWriter":
        self.open()
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()

    def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self.path.open("w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._handle, lineterminator="\n")
        self._writer.writerow(ARTIFACT_HEADER)
        self._handle.flush()

    def write(self, record: UserRecord) -> None:
        if self._writer is None or self._handle is None:
            raise RuntimeError("ArtifactWriter is not open")
        self._writer.writerow([record.email, record.display_name, record.provider_id or ""])
        self._handle.flush()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            self._writer = None
