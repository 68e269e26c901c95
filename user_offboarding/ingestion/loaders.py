"""Utilities for loading the list of users to offboard from spreadsheets."""
from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..io import InputError
from ..models import UserRecord

PathLike = Union[str, Path]

_FIELD_SYNONYMS: Mapping[str, Sequence[str]] = {
    "email": ("email", "email_address", "e-mail", "mail"),
    "display_name": ("port name", "port_name", "name", "display_name", "full_name"),
}

# Column index used when no header matches a field.
_POSITIONAL_FALLBACK = {"email": 0, "display_name": 1}


class UnsupportedFileTypeError(InputError):
    """Raised when an unsupported file format is passed to the loader."""


def load_users(
    path: PathLike,
    *,
    column_mapping: Optional[Mapping[str, str]] = None,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> List[UserRecord]:
    """Load the users to offboard, in file order.

    Parameters
    ----------
    path:
        CSV/TSV or Excel file with an email column and an optional name column.
    column_mapping:
        Optional mapping of ``email`` / ``display_name`` to explicit column names.
    sheet_name:
        Sheet selector passed to :func:`pandas.read_excel`. Ignored for CSV files.
    loader_kwargs:
        Extra keyword arguments forwarded to the pandas reader.
    """

    path_obj = Path(path)
    if not path_obj.is_file():
        raise InputError(f"Input CSV file not found: {path_obj}")

    dataframe = _read_dataframe(path_obj, sheet_name=sheet_name, loader_kwargs=loader_kwargs)
    mapping = dict(column_mapping or {})
    email_column = _resolve_column("email", dataframe.columns, mapping)
    name_column = _resolve_column("display_name", dataframe.columns, mapping)
    if email_column is None:
        raise InputError(f"Could not find an email column in {path_obj}")
    if name_column == email_column:
        name_column = None

    users: List[UserRecord] = []
    for _, row in dataframe.iterrows():
        email = _clean_text(row[email_column])
        if not email:
            continue
        name = _clean_text(row[name_column]) if name_column is not None else None
        users.append(UserRecord(email=email, display_name=name or ""))

    if not users:
        raise InputError(f"No users found in CSV: {path_obj}")
    return users


def _read_dataframe(
    path: Path,
    *,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> pd.DataFrame:
    loader_kwargs = dict(loader_kwargs or {})
    loader_kwargs.setdefault("dtype", str)
    loader_kwargs.setdefault("keep_default_na", False)
    suffix = path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            loader_kwargs.setdefault("sep", "\t")
        loader_kwargs.setdefault("skipinitialspace", True)
        # The header is read as a data row: a row wider than the header must
        # fail to parse rather than push the email column into the index.
        loader_kwargs["header"] = None
        loader_kwargs["index_col"] = False
        try:
            raw = pd.read_csv(path, **loader_kwargs)
        except pd.errors.EmptyDataError:
            raise InputError(f"No users found in CSV: {path}") from None
        except pd.errors.ParserError as exc:
            raise InputError(f"Malformed input file {path}: {exc}") from None
        if raw.empty:
            raise InputError(f"No users found in CSV: {path}")
        frame = raw.iloc[1:].reset_index(drop=True)
        frame.columns = [str(value).strip() for value in raw.iloc[0]]
        return frame

    if suffix in {".xls", ".xlsx", ".xlsm", ".xlsb"}:
        engine = loader_kwargs.pop("engine", None) or "openpyxl"
        return pd.read_excel(path, sheet_name=sheet_name, engine=engine, **loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path.suffix}")


def _resolve_column(field: str, columns: Sequence[Any], mapping: Mapping[str, str]) -> Optional[Any]:
    columns = list(columns)
    if field in mapping:
        if mapping[field] not in columns:
            raise InputError(f"Column '{mapping[field]}' is not present in the input file")
        return mapping[field]

    synonyms = _FIELD_SYNONYMS[field]
    for column in columns:
        if str(column).strip().lower() in synonyms:
            return column

    index = _POSITIONAL_FALLBACK[field]
    if index < len(columns):
        return columns[index]
    return None


def _clean_text(value: Any) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


__all__ = ["load_users", "UnsupportedFileTypeError"]
