"""placeport CLI entry points.
This module exposes the import command and its inspection utilities.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Any, Sequence

from core.config import PlaceportConfig, parse_batch_size
from core.constants import SUPPORTED_READ_MODES, SUPPORTED_VISIT_IDENTITIES
from core.errors import PlaceportError
from core.logging_config import get_logger
from core.types import ImportOptions
from store.places_sdk import PlaceportClient
from store.schema_profiles import supported_schema_profiles

_LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="placeport",
        description="Import Chrome Takeout history into Firefox places.sqlite",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_import_command(subparsers)
    _add_hash_url_command(subparsers)
    _add_schema_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the placeport CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code; 1 when a fatal error stopped the command.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args)
        if args.command == "import":
            return _run_import_command(client, args)
        if args.command == "hash-url":
            return _run_hash_url_command(client, args)
        if args.command == "schema":
            return _run_schema_command(client, args)
    except PlaceportError as error:
        _LOGGER.error(
            "import_failed",
            command=args.command,
            error=str(error),
            error_type=type(error).__name__,
        )
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(args: argparse.Namespace) -> PlaceportClient:
    """Build SDK client with command-line overrides applied to env config.

    Args:
        args: Parsed CLI args.

    Returns:
        Configured SDK client.
    """
    config = PlaceportConfig.from_env()
    overrides: dict[str, Any] = {}
    if getattr(args, "batch_size", None) is not None:
        overrides["batch_size"] = parse_batch_size(args.batch_size)
    if getattr(args, "read_mode", None):
        overrides["read_mode"] = args.read_mode
    if getattr(args, "schema_profile", None):
        overrides["schema_profile"] = args.schema_profile
    if getattr(args, "visit_identity", None):
        overrides["visit_identity"] = args.visit_identity
    if overrides:
        config = replace(config, **overrides)
    return PlaceportClient(config)


def _run_import_command(client: PlaceportClient, args: argparse.Namespace) -> int:
    """Handle import command.

    Per-entry failures are logged and counted; they do not change the
    exit code.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = ImportOptions(source_uri=args.source, database_path=args.database)
    summary = client.import_history(options)
    print(f"entries={summary.entries}")
    print(f"imported={summary.imported}")
    print(f"duplicates={summary.duplicates}")
    print(f"failed={summary.failed}")
    print(f"batches={summary.batches}")
    return 0


def _run_hash_url_command(client: PlaceportClient, args: argparse.Namespace) -> int:
    """Handle hash-url command."""
    print(client.hash_url(args.url))
    return 0


def _run_schema_command(client: PlaceportClient, args: argparse.Namespace) -> int:
    """Handle schema command."""
    profile = client.schema_profile(args.database)
    print(f"profile={profile.name}")
    print(f"description={profile.description}")
    return 0


def _add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser(
        "import",
        help="Import a Takeout history export into a places database",
    )
    parser.add_argument("source", help="BrowserHistory.json path or s3://bucket/key")
    parser.add_argument("database", help="Destination places.sqlite path")
    parser.add_argument(
        "--batch-size",
        help="Entries per committed transaction, 0 or 'unbounded' for one commit",
    )
    parser.add_argument(
        "--read-mode",
        choices=SUPPORTED_READ_MODES,
        help="Decode the export whole (buffered) or element by element (stream)",
    )
    parser.add_argument(
        "--stream",
        dest="read_mode",
        action="store_const",
        const="stream",
        help="Shorthand for --read-mode stream",
    )
    parser.add_argument(
        "--schema-profile",
        choices=supported_schema_profiles(),
        help="Destination schema profile, detected when omitted",
    )
    parser.add_argument(
        "--visit-identity",
        choices=SUPPORTED_VISIT_IDENTITIES,
        help="Duplicate visit key",
    )


def _add_hash_url_command(subparsers: Any) -> None:
    """Register hash-url subcommand."""
    parser = subparsers.add_parser("hash-url", help="Print the Firefox url_hash of a URL")
    parser.add_argument("url", help="URL to hash")


def _add_schema_command(subparsers: Any) -> None:
    """Register schema subcommand."""
    parser = subparsers.add_parser(
        "schema",
        help="Print the schema profile detected for a places database",
    )
    parser.add_argument("database", help="places.sqlite path")
