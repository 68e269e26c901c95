"""Tests for configuration resolution."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from user_offboarding.config import (
    DEFAULT_ARTIFACT_PATH,
    ConfigurationError,
    build_run_config,
    load_configuration,
    region_from_choice,
    resolve_region,
)


def test_regions_resolve_case_insensitively() -> None:
    assert resolve_region("EU").provider_domain == "port-prod.eu.auth0.com"
    assert resolve_region("us").admin_url == "https://admin-service.us-production-internal.getport.io/v0.1"


def test_unknown_region_is_rejected() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        resolve_region("apac")

    assert "'eu' or 'us'" in str(excinfo.value)


@pytest.mark.parametrize("choice, region", [("1", "eu"), (" 2 ", "us")])
def test_menu_choices_map_to_regions(choice: str, region: str) -> None:
    assert region_from_choice(choice) == region


def test_invalid_menu_choice_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        region_from_choice("3")


def test_build_run_config_requires_token() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        build_run_config(region="eu", token="  ")

    assert "AUTH0_TOKEN" in str(excinfo.value)


def test_build_run_config_defaults() -> None:
    config = build_run_config(region="EU", token="abc")

    assert config.region == "eu"
    assert config.provider_base_url == "https://port-prod.eu.auth0.com/api/v2"
    assert config.artifact_path == DEFAULT_ARTIFACT_PATH
    assert config.log_dir == Path("logs")
    assert config.request_delay == pytest.approx(0.1)
    assert config.timeout is None


def test_explicit_values_win_over_config_file() -> None:
    file_config = {
        "artifact": "from-file.csv",
        "log_dir": "file-logs",
        "request_delay": 2,
        "timeout": 15,
    }

    config = build_run_config(
        region="us",
        token="abc",
        artifact_path="explicit.csv",
        request_delay=0,
        file_config=file_config,
    )

    assert config.artifact_path == Path("explicit.csv")
    assert config.log_dir == Path("file-logs")
    assert config.request_delay == 0
    assert config.timeout == 15.0


def test_config_file_can_define_regions(tmp_path) -> None:
    config_path = tmp_path / "offboarding.yaml"
    config_path.write_text(
        "regions:\n"
        "  staging:\n"
        "    provider_domain: port-staging.eu.auth0.com\n"
        "    admin_url: https://admin.staging.example/v0.1/\n",
        encoding="utf-8",
    )

    config = build_run_config(region="staging", token="abc", file_config=load_configuration(config_path))

    assert config.provider_domain == "port-staging.eu.auth0.com"
    assert config.admin_url == "https://admin.staging.example/v0.1"


def test_load_configuration_reads_json(tmp_path) -> None:
    config_path = tmp_path / "offboarding.json"
    config_path.write_text(json.dumps({"region": "eu"}), encoding="utf-8")

    assert load_configuration(config_path) == {"region": "eu"}


def test_load_configuration_rejects_missing_and_unsupported_files(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        load_configuration(tmp_path / "missing.yaml")

    ini_path = tmp_path / "offboarding.ini"
    ini_path.write_text("[main]\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_configuration(ini_path)


def test_negative_delay_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        build_run_config(region="eu", token="abc", request_delay=-1)


@pytest.mark.parametrize(
    "filename, contents, message",
    [
        ("offboarding.json", "{not json", "not valid JSON"),
        ("offboarding.yaml", "regions: [eu\n", "not valid YAML"),
    ],
)
def test_load_configuration_rejects_malformed_files(tmp_path, filename, contents, message) -> None:
    config_path = tmp_path / filename
    config_path.write_text(contents, encoding="utf-8")

    with pytest.raises(ConfigurationError, match=message):
        load_configuration(config_path)


@pytest.mark.parametrize("key", ["request_delay", "timeout"])
def test_non_numeric_settings_are_rejected(key) -> None:
    with pytest.raises(ConfigurationError, match=f"{key} must be a number"):
        build_run_config(region="eu", token="abc", file_config={key: "soon"})
