"""Configuration helpers for the offboarding pipeline."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

LOGGER = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when configuration is missing, malformed or inconsistent."""


@dataclass(frozen=True)
class RegionEndpoints:
    """Base locations of both backends for one deployment region."""

    provider_domain: str
    admin_url: str


REGIONS: Dict[str, RegionEndpoints] = {
    "eu": RegionEndpoints(
        provider_domain="port-prod.eu.auth0.com",
        admin_url="https://admin-service.production-internal.getport.io/v0.1",
    ),
    "us": RegionEndpoints(
        provider_domain="port-prod.us.auth0.com",
        admin_url="https://admin-service.us-production-internal.getport.io/v0.1",
    ),
}

# Menu shown when no region is configured.
REGION_CHOICES = {"1": ("eu", "EU (Europe)"), "2": ("us", "US (United States)")}

DEFAULT_INPUT_PATH = Path("input/users.csv")
DEFAULT_ARTIFACT_PATH = Path("output/users_ready.csv")
DEFAULT_LOG_DIR = Path("logs")
DEFAULT_REQUEST_DELAY = 0.1

TOKEN_ENV_VAR = "AUTH0_TOKEN"


@dataclass(frozen=True)
class RunConfig:
    """Everything a stage needs, resolved once at start-up."""

    region: str
    provider_domain: str
    admin_url: str
    token: str
    input_path: Path = DEFAULT_INPUT_PATH
    artifact_path: Path = DEFAULT_ARTIFACT_PATH
    log_dir: Path = DEFAULT_LOG_DIR
    request_delay: float = DEFAULT_REQUEST_DELAY
    timeout: Optional[float] = None

    @property
    def provider_base_url(self) -> str:
        return f"https://{self.provider_domain}/api/v2"


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Configuration file '{file_path}' could not be read: {exc}") from exc

    if file_path.suffix.lower() == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Configuration file '{file_path}' is not valid JSON: {exc}") from exc
    else:
        import yaml

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Configuration file '{file_path}' is not valid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping")
    return data


def region_table(overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, RegionEndpoints]:
    """Return the built-in regions merged with any configured overrides."""

    regions = dict(REGIONS)
    for name, spec in (overrides or {}).items():
        if not isinstance(spec, Mapping):
            raise ConfigurationError(f"Region '{name}' must be a mapping")
        base = regions.get(str(name).lower())
        provider_domain = spec.get("provider_domain") or (base.provider_domain if base else None)
        admin_url = spec.get("admin_url") or (base.admin_url if base else None)
        if not provider_domain or not admin_url:
            raise ConfigurationError(f"Region '{name}' requires 'provider_domain' and 'admin_url'")
        regions[str(name).lower()] = RegionEndpoints(
            provider_domain=str(provider_domain),
            admin_url=str(admin_url).rstrip("/"),
        )
    return regions


def resolve_region(name: str, regions: Optional[Mapping[str, RegionEndpoints]] = None) -> RegionEndpoints:
    table = regions if regions is not None else REGIONS
    try:
        return table[name.strip().lower()]
    except KeyError:
        choices = "' or '".join(sorted(table))
        raise ConfigurationError(f"Invalid region '{name}'. Must be '{choices}'.") from None


def region_from_choice(choice: str) -> str:
    """Translate an interactive menu answer into a region name."""

    try:
        return REGION_CHOICES[choice.strip()][0]
    except KeyError:
        raise ConfigurationError("Invalid choice. Please enter 1 or 2.") from None


def _as_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be a number, got {value!r}") from None


def build_run_config(
    *,
    region: str,
    token: Optional[str],
    input_path: str | Path | None = None,
    artifact_path: str | Path | None = None,
    log_dir: str | Path | None = None,
    request_delay: Optional[float] = None,
    timeout: Optional[float] = None,
    file_config: Optional[Mapping[str, Any]] = None,
) -> RunConfig:
    """Assemble a :class:`RunConfig`; explicit arguments win over ``file_config``."""

    file_config = file_config or {}
    if not token or not token.strip():
        raise ConfigurationError(
            f"{TOKEN_ENV_VAR} is required. Set it with: export {TOKEN_ENV_VAR}='your-management-api-token'"
        )

    endpoints = resolve_region(region, region_table(file_config.get("regions")))

    def _pick(value, key, default):
        if value is not None:
            return value
        configured = file_config.get(key)
        return configured if configured is not None else default

    delay = _as_float(_pick(request_delay, "request_delay", DEFAULT_REQUEST_DELAY), "request_delay")
    if delay < 0:
        raise ConfigurationError("request_delay must not be negative")
    configured_timeout = _pick(timeout, "timeout", None)

    config = RunConfig(
        region=region.strip().lower(),
        provider_domain=endpoints.provider_domain,
        admin_url=endpoints.admin_url,
        token=token.strip(),
        input_path=Path(_pick(input_path, "input", DEFAULT_INPUT_PATH)),
        artifact_path=Path(_pick(artifact_path, "artifact", DEFAULT_ARTIFACT_PATH)),
        log_dir=Path(_pick(log_dir, "log_dir", DEFAULT_LOG_DIR)),
        request_delay=delay,
        timeout=_as_float(configured_timeout, "timeout") if configured_timeout is not None else None,
    )
    LOGGER.debug("Resolved run configuration for region %s", config.region)
    return config
