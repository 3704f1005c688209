"""CLI for validating and importing clinic backup snapshots.

Usage:
    tenant-import validate backups/clinic.json
    tenant-import import backups/clinic.json --clinic-id 2b1f... --dry-run
    tenant-import import backups/clinic.json --clinic-id 2b1f... --profile staging --yes
    tenant-import import backups/clinic.json --clinic-id 2b1f... --output result.json
    tenant-import profiles

Commands:
    validate  - Validate a snapshot locally (no database)
    import    - Dry-run or import a snapshot into a destination clinic
    profiles  - List available profiles
"""

import argparse
import asyncio
import json
import logging
import sys
import tomllib
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from tenant_import.adapters.base import DatabaseClient
from tenant_import.config.loader import load_db_config
from tenant_import.config.models import ImportSettings
from tenant_import.engine.models import ImportMode, ImportResult, ValidationReport
from tenant_import.engine.orchestrator import import_payload
from tenant_import.engine.validator import PayloadError, load_payload, validate_payload
from tenant_import.factory import ProfileNotFoundError, get_adapter

console = Console()

# Warnings listed in full up to this count; the rest are summarized.
_MAX_PRINTED_WARNINGS = 20

# Raised while reading db.toml
_CONFIG_ERRORS = (FileNotFoundError, ValidationError, tomllib.TOMLDecodeError)


# ============================================================================
# Helpers
# ============================================================================


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_settings(config_path: Path | None) -> ImportSettings:
    """Import settings from db.toml, env/defaults when no config is in use.

    An explicit ``config_path`` must exist; only the implicit ./db.toml
    may be absent.
    """
    if config_path is None:
        config_path = Path.cwd() / "db.toml"
        if not config_path.exists():
            return ImportSettings()
    return load_db_config(config_path).settings


def _print_validation(report: ValidationReport) -> None:
    if report.errors:
        console.print(f"\n[bold red]x[/bold red] Found {len(report.errors)} errors:")
        for error in report.errors:
            console.print(f"   - {escape(error)}")

    if report.warnings:
        console.print(f"\n[yellow]![/yellow] Found {len(report.warnings)} warnings:")
        for warning in report.warnings[:_MAX_PRINTED_WARNINGS]:
            console.print(f"   - {escape(warning)}")
        hidden = len(report.warnings) - _MAX_PRINTED_WARNINGS
        if hidden > 0:
            console.print(f"   [dim]... and {hidden} more[/dim]")


def _print_summary(result: ImportResult) -> None:
    table = Table(title="Import Summary", show_header=True, header_style="bold")
    table.add_column("Table")
    table.add_column("Total", justify="right")
    table.add_column("Imported", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="dim")
    table.add_column("Errors", justify="right", style="red")

    for name, stats in result.summary.items():
        table.add_row(
            name,
            str(stats.total),
            str(stats.imported),
            str(stats.skipped),
            str(stats.errors),
        )

    console.print(table)
    console.print(
        f"Mapped by id: [bold]{result.mapping_stats.by_old_id}[/bold]  "
        f"by legacy_id: [bold]{result.mapping_stats.by_legacy_id}[/bold]  "
        f"nulled: [bold]{result.mapping_stats.nulled}[/bold]"
    )


# ============================================================================
# Commands
# ============================================================================


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a snapshot file without any database access.

    Returns:
        0 if the snapshot is valid, 1 otherwise.
    """
    try:
        payload = load_payload(args.payload_path)
        settings = _load_settings(args.config)
    except (PayloadError, *_CONFIG_ERRORS) as e:
        console.print(f"[bold red]x[/bold red] {escape(str(e))}")
        return 1

    console.print(f"Validating: [cyan]{args.payload_path}[/cyan]")
    report = validate_payload(payload, settings=settings)
    _print_validation(report)

    if report.valid:
        suffix = " (with warnings)" if report.warnings else ""
        console.print(f"\n[bold green]v[/bold green] Backup is valid{suffix}")
        return 0

    console.print("\n[bold red]x[/bold red] Backup is invalid")
    return 1


async def _async_import(args: argparse.Namespace) -> int:
    """Async implementation for the import command."""
    try:
        payload = load_payload(args.payload_path)
        settings = _load_settings(args.config)
    except (PayloadError, *_CONFIG_ERRORS) as e:
        console.print(f"[bold red]x[/bold red] {escape(str(e))}")
        return 1

    mode = ImportMode.DRY_RUN if args.dry_run else ImportMode.IMPORT

    if mode is ImportMode.IMPORT and not args.yes:
        console.print(f"This will import [cyan]{args.payload_path}[/cyan] "
                      f"into clinic [bold]{args.clinic_id}[/bold]")
        response = input("Continue? [y/N] ")
        if response.lower() not in ["y", "yes"]:
            console.print("Cancelled.")
            return 0

    adapter: DatabaseClient | None = None
    if mode is ImportMode.IMPORT:
        try:
            adapter = await get_adapter(
                profile_name=args.profile,
                env_prefix=args.env_prefix,
                config_path=args.config,
            )
        except (ProfileNotFoundError, *_CONFIG_ERRORS) as e:
            console.print(f"[bold red]x[/bold red] {escape(str(e))}")
            return 1

    try:
        result = await import_payload(
            adapter,
            args.clinic_id,
            payload,
            mode=mode,
            settings=settings,
        )
    finally:
        if adapter is not None:
            await adapter.close()

    _print_validation(result.validation)
    if result.summary:
        _print_summary(result)

    if args.output:
        Path(args.output).write_text(json.dumps(result.to_json_dict(), indent=2))
        console.print(f"Result written to [cyan]{args.output}[/cyan]")

    if result.success:
        console.print(f"\n[bold green]v[/bold green] {mode.value} succeeded")
        return 0

    console.print(f"\n[bold red]x[/bold red] {mode.value} failed")
    return 1


def cmd_import(args: argparse.Namespace) -> int:
    """Dry-run or import a snapshot.

    Wraps the async implementation with ``asyncio.run()``.

    Returns:
        0 on success, 1 on failure.
    """
    return asyncio.run(_async_import(args))


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Returns:
        0 on success, 1 if db.toml is missing or invalid.
    """
    try:
        config = load_db_config(args.config)
    except _CONFIG_ERRORS as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("Profile")
    table.add_column("Provider")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        table.add_row(name, profile.provider, profile.description or "")

    console.print(table)
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tenant-import",
        description="Validate and import clinic backup snapshots",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to db.toml (default: ./db.toml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_validate = subparsers.add_parser(
        "validate",
        help="Validate a snapshot locally (no database)",
    )
    p_validate.add_argument("payload_path", help="Path to backup JSON file")
    p_validate.set_defaults(func=cmd_validate)

    p_import = subparsers.add_parser(
        "import",
        help="Dry-run or import a snapshot into a destination clinic",
    )
    p_import.add_argument("payload_path", help="Path to backup JSON file")
    p_import.add_argument(
        "--clinic-id",
        required=True,
        help="Destination clinic id",
    )
    p_import.add_argument(
        "--profile", "-p",
        default=None,
        help="Profile from db.toml (default: DB_PROFILE env var)",
    )
    p_import.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate only, write nothing",
    )
    p_import.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    p_import.add_argument(
        "--output", "-o",
        default=None,
        help="Write the import result as JSON to this file",
    )
    p_import.set_defaults(func=cmd_import)

    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
