"""Top-level package for the batch user offboarding pipeline."""

from . import models  # noqa: F401
from .config import ConfigurationError, RunConfig  # noqa: F401
from .io import InputError  # noqa: F401
from .models import (
    DeleteOutcome,
    DeleteStatus,
    ResolveOutcome,
    ResolveStatus,
    Service,
    UserRecord,
    VerifyOutcome,
    VerifyStatus,
    derive_display_name,
)
from .pipeline import Deleter, Resolver, Verifier  # noqa: F401

__all__ = [
    "ConfigurationError",
    "DeleteOutcome",
    "DeleteStatus",
    "Deleter",
    "InputError",
    "ResolveOutcome",
    "ResolveStatus",
    "Resolver",
    "RunConfig",
    "Service",
    "UserRecord",
    "Verifier",
    "VerifyOutcome",
    "VerifyStatus",
    "derive_display_name",
]
