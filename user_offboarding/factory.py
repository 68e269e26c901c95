"""Factory helpers for constructing pipeline stages from a :class:`RunConfig`."""
from __future__ import annotations

from typing import Optional, Tuple

import requests

from .clients import AdminServiceClient, IdentityProviderClient
from .config import RunConfig
from .pipeline import Deleter, Resolver, Verifier
from .rate_limit import RateLimiter


def build_clients(
    config: RunConfig, session: Optional[requests.Session] = None
) -> Tuple[AdminServiceClient, IdentityProviderClient]:
    """Create both backend clients, sharing ``session`` when one is given."""

    session = session or requests.Session()
    admin = AdminServiceClient(config.admin_url, session=session, timeout=config.timeout)
    provider = IdentityProviderClient(
        config.provider_base_url,
        config.token,
        session=session,
        timeout=config.timeout,
    )
    return admin, provider


def build_rate_limiter(config: RunConfig) -> RateLimiter:
    return RateLimiter(config.request_delay)


def build_resolver(config: RunConfig, session: Optional[requests.Session] = None) -> Resolver:
    _, provider = build_clients(config, session)
    return Resolver(provider, log_dir=config.log_dir, rate_limiter=build_rate_limiter(config))


def build_deleter(config: RunConfig, session: Optional[requests.Session] = None) -> Deleter:
    admin, provider = build_clients(config, session)
    return Deleter(admin, provider, log_dir=config.log_dir, rate_limiter=build_rate_limiter(config))


def build_verifier(config: RunConfig, session: Optional[requests.Session] = None) -> Verifier:
    admin, provider = build_clients(config, session)
    return Verifier(admin, provider, log_dir=config.log_dir, rate_limiter=build_rate_limiter(config))
