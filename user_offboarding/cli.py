"""Command line interface for the three offboarding stages."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import requests

from .config import (
    REGION_CHOICES,
    TOKEN_ENV_VAR,
    ConfigurationError,
    RunConfig,
    build_run_config,
    load_configuration,
    region_from_choice,
)
from .factory import build_deleter, build_resolver, build_verifier
from .ingestion import load_users
from .io import InputError, load_artifact
from .models import DeleteSummary, DeleteTally, ResolveSummary, UserRecord, VerifySummary

LOGGER = logging.getLogger(__name__)

PREVIEW_LIMIT = 5

_STAGE_TITLES = {
    "prepare": "Step 1: Prepare Users",
    "delete": "Step 2: Delete Users",
    "verify": "Step 3: Verify Deletion",
}


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Offboard users from the admin service and Auth0 in three auditable steps",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--region", help="Deployment region (eu or us). Prompts when omitted")
    common.add_argument("--token", help=f"Auth0 Management API token (default: ${TOKEN_ENV_VAR})")
    common.add_argument("--config", help="Optional configuration file (YAML or JSON)")
    common.add_argument("--log-dir", help="Directory for the audit logs (default: logs)")
    common.add_argument(
        "--request-delay",
        type=float,
        default=None,
        help="Minimum seconds between records (default: 0.1)",
    )
    common.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: none)",
    )
    common.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")
    common.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )

    subparsers = parser.add_subparsers(dest="stage", required=True)

    prepare = subparsers.add_parser(
        "prepare",
        parents=[common],
        help="Look up Auth0 IDs and write the CSV used by the later steps",
    )
    prepare.add_argument("--input", help="Users file with Email,Port Name columns (default: $INPUT_CSV or input/users.csv)")
    prepare.add_argument("--output", help="Where to write the prepared CSV (default: $OUTPUT_CSV or output/users_ready.csv)")

    for stage, help_text in (
        ("delete", "Delete the prepared users from the admin service and Auth0"),
        ("verify", "Check that the prepared users no longer exist"),
    ):
        stage_parser = subparsers.add_parser(stage, parents=[common], help=help_text)
        stage_parser.add_argument("--csv", help="Prepared CSV (default: $CSV_PATH or output/users_ready.csv)")

    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


# --- Operator interaction ---

def prompt_region(input_func: Callable[[str], str]) -> str:
    print("Select region:")
    for key, (_, label) in REGION_CHOICES.items():
        print(f"  {key}) {label}")
    print("")
    try:
        choice = input_func(f"Enter {' or '.join(REGION_CHOICES)}: ")
    except EOFError:
        raise ConfigurationError("No region selected. Pass --region or set REGION.") from None
    return region_from_choice(choice)


def confirm(input_func: Callable[[str], str]) -> bool:
    try:
        answer = input_func("Proceed? [y/n]: ")
    except EOFError:
        return False
    return answer.strip().lower().startswith("y")


def _print_preview(records: Sequence[UserRecord]) -> None:
    print("Preview:")
    for record in records[:PREVIEW_LIMIT]:
        print(f"  - {record.email}")
    if len(records) > PREVIEW_LIMIT:
        print(f"  ... and {len(records) - PREVIEW_LIMIT} more")
    print("")


# --- Configuration ---

def resolve_config(
    args: argparse.Namespace,
    environ: Mapping[str, str],
    input_func: Callable[[str], str],
) -> RunConfig:
    """Collect flags, environment and config file into one :class:`RunConfig`."""

    file_config: Dict[str, Any] = load_configuration(args.config) if args.config else {}

    region = args.region or environ.get("REGION") or file_config.get("region")
    if region:
        source = "from flag" if args.region else "from environment" if environ.get("REGION") else "from config"
        print(f"Region: {region} ({source})")
    else:
        region = prompt_region(input_func)

    if args.stage == "prepare":
        input_path = args.input or environ.get("INPUT_CSV")
        artifact_path = args.output or environ.get("OUTPUT_CSV")
    else:
        input_path = None
        artifact_path = args.csv or environ.get("CSV_PATH")

    return build_run_config(
        region=str(region),
        token=args.token or environ.get(TOKEN_ENV_VAR),
        input_path=input_path,
        artifact_path=artifact_path,
        log_dir=args.log_dir,
        request_delay=args.request_delay,
        timeout=args.timeout,
        file_config=file_config,
    )


# --- Summaries ---

def print_prepare_summary(summary: ResolveSummary, config: RunConfig) -> None:
    print("")
    print("=== Prepare Summary ===")
    print("")
    print(f"Processed: {summary.processed} users")
    print(f"Found:     {summary.found} (ready for Auth0 deletion)")
    print(f"Not found: {summary.not_found} (will skip Auth0, still delete from Admin)")
    print(f"Errors:    {summary.errors}")
    print("")
    print(f"Output: {config.artifact_path}")
    print(f"Logs:   {config.log_dir}")
    if summary.not_found:
        print("")
        print(f"NOTE: {summary.not_found} users not in Auth0 - they will still be deleted from Admin Service.")
    print("")


def _print_delete_tally(title: str, tally: DeleteTally, *, with_skipped: bool) -> None:
    print(f"{title}:")
    print(f"  Deleted:   {tally.deleted}")
    print(f"  Not found: {tally.not_found} (already absent)")
    print(f"  Failed:    {tally.failed}")
    if with_skipped:
        print(f"  Skipped:   {tally.skipped} (no Auth0 ID)")
    print("")


def print_delete_summary(summary: DeleteSummary, config: RunConfig) -> None:
    print("")
    print("=== Delete Summary ===")
    print("")
    print(f"Processed: {summary.processed} users")
    print("")
    _print_delete_tally("Admin Service", summary.admin, with_skipped=False)
    _print_delete_tally("Auth0", summary.provider, with_skipped=True)
    if summary.auth_failures:
        print("WARNING: Auth0 rejected the token:")
        if summary.provider.unauthorized:
            print(f"  401 Unauthorized: {summary.provider.unauthorized} (token invalid or expired)")
        if summary.provider.forbidden:
            print(f"  403 Forbidden:    {summary.provider.forbidden} (token lacks the delete:users scope)")
        print("")
    print(f"Logs: {config.log_dir}")
    print("")


def print_verify_summary(summary: VerifySummary, config: RunConfig) -> None:
    print("")
    print("=== Verify Summary ===")
    print("")
    print(f"Processed: {summary.processed} users")
    print("")
    for title, tally, with_skipped in (
        ("Admin Service", summary.admin, False),
        ("Auth0", summary.provider, True),
    ):
        print(f"{title}:")
        print(f"  Gone:          {tally.gone}")
        print(f"  Still exists:  {tally.still_exists}")
        print(f"  Error:         {tally.check_errors}")
        if with_skipped:
            print(f"  Skipped:       {tally.skipped}")
        print("")

    if summary.succeeded:
        print("SUCCESS: All users have been deleted!")
    else:
        print(f"WARNING: {summary.still_exists} user(s) still exist!")
        print(f"Review: {config.log_dir}")
    if summary.inconclusive:
        print(f"NOTE: {summary.inconclusive} check(s) were inconclusive and should be re-run.")
    print("")


# --- Entry point ---

def run_stage(
    args: argparse.Namespace,
    *,
    environ: Mapping[str, str],
    input_func: Callable[[str], str],
    session: Optional[requests.Session] = None,
) -> int:
    print("")
    print(f"=== {_STAGE_TITLES[args.stage]} ===")
    print("")

    config = resolve_config(args, environ, input_func)
    print(f"Auth0 Domain: {config.provider_domain}")
    print(f"Admin API:    {config.admin_url}")
    print("")

    records: List[UserRecord]
    if args.stage == "prepare":
        records = load_users(config.input_path)
        print(f"Input:  {config.input_path}")
        print(f"Output: {config.artifact_path}")
    else:
        records = load_artifact(config.artifact_path)
        print(f"Input: {config.artifact_path}")
    print(f"Users: {len(records)}")
    print("")

    if args.stage == "delete":
        _print_preview(records)
        print("This will delete users from:")
        print("  - Admin Service")
        print(f"  - Auth0 ({config.provider_domain})")
        print("")

    if not args.yes and not confirm(input_func):
        print("Aborted.")
        return 0

    owns_session = session is None
    session = session or requests.Session()
    try:
        if args.stage == "prepare":
            resolve_summary = build_resolver(config, session).run(records, config.artifact_path)
            print_prepare_summary(resolve_summary, config)
            print("Next step: run the 'delete' step")
            return 0

        if args.stage == "delete":
            delete_summary = build_deleter(config, session).run(records)
            print_delete_summary(delete_summary, config)
            print("Next step: run the 'verify' step to confirm deletion")
            return 0

        verify_summary = build_verifier(config, session).run(records)
        print_verify_summary(verify_summary, config)
        return 0 if verify_summary.succeeded else 1
    finally:
        if owns_session:
            session.close()


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    input_func: Callable[[str], str] = input,
    session: Optional[requests.Session] = None,
) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        return run_stage(
            args,
            environ=os.environ if environ is None else environ,
            input_func=input_func,
            session=session,
        )
    except (ConfigurationError, InputError) as exc:
        LOGGER.error("%s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
