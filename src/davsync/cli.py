"""
CLI entry point for davsync.

Provides the command-line interface using Click.
"""

import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import click

from davsync import __version__
from davsync.config import get_remote_config, load_config, load_config_with_sources
from davsync.exceptions import ConfigInvalid
from davsync.logs import setup_logging
from davsync.models import OutcomeStatus, SyncReport
from davsync.protocols.webdav import WebDAVTransport
from davsync.sync import SyncDriver
from davsync.utils import format_elapsed


def version_callback(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Callback to display version and exit."""
    if value and not ctx.resilient_parsing:
        click.echo(f"davsync version {__version__}")
        ctx.exit()


def display_summary(report: SyncReport) -> None:
    """Print per-status totals for a finished run."""
    counts = report.counts()
    click.echo(
        f"📦 {counts[OutcomeStatus.CREATED]} created, "
        f"{counts[OutcomeStatus.ALREADY_EXISTS]} already present, "
        f"{counts[OutcomeStatus.SKIPPED]} skipped, "
        f"{counts[OutcomeStatus.FAILED]} failed"
    )
    if report.has_failures:
        click.echo(
            click.style("⚠️  Some items failed, see the log for details.", fg="yellow"),
            err=True,
        )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--version",
    "-v",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.option(
    "-b",
    "--binding",
    "binding_alias",
    default=None,
    help="Binding alias from configuration. If omitted, the top-level settings are used.",
)
@click.option(
    "--show-config",
    is_flag=True,
    help="Display the merged configuration with source file annotations and exit.",
)
@click.option("--debug", is_flag=True, help="Show debug output on the console.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the run log to this file instead of a timestamped file in the log directory.",
)
@click.option(
    "--no-log-file",
    is_flag=True,
    help="Only log to the console.",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Exit with status 1 if any item failed (default: always exit 0 after a run).",
)
@click.argument("paths", nargs=-1, required=False, type=click.Path(path_type=Path))
def main(
    binding_alias: Optional[str],
    show_config: bool,
    debug: bool,
    log_file: Optional[Path],
    no_log_file: bool,
    strict: bool,
    paths: Tuple[Path, ...],
) -> None:
    """
    Upload files and directories to a WebDAV server.

    Each PATH is uploaded under its own base name below the configured
    webdav_url. Directories are uploaded recursively and remote directories
    are created as needed. Files that already exist remotely are skipped, and
    nothing remote is ever overwritten or deleted.

    \b
    Examples:
      davsync report.pdf                 # Upload one file
      davsync photos/ notes.txt          # Upload a directory and a file
      davsync -b=backup photos/          # Use the 'backup' binding
      davsync --strict photos/           # Exit 1 if anything failed

    \b
    Configuration:
      Settings are merged from these files (later ones override):
        1. ~/.davsync/davsync.json or ~/.config/davsync/davsync.json
        2. Every .davsync.json from the filesystem root down to the current directory
      If none is found, a template .davsync.json is created in the current directory.
      DAVSYNC_PASSWORD, when set, overrides the configured password.
    """
    if not paths and not show_config:
        ctx = click.get_current_context()
        click.echo(ctx.get_help())
        ctx.exit()

    try:
        if show_config:
            from davsync.config import show_config as display_config_fn

            merged_config, source_map = load_config_with_sources()
            display_config_fn(merged_config, source_map)
            sys.exit(0)

        remote = get_remote_config(load_config(), binding_alias)
    except ConfigInvalid as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    log_path = setup_logging(
        debug=debug,
        log_file=log_file,
        log_dir=remote.log_dir,
        to_file=not no_log_file,
    )
    if log_path is not None:
        click.echo(f"📝 Logging to {log_path}")

    click.echo(f"🌐 Uploading to {remote.webdav_url}")
    start_time = time.time()

    with WebDAVTransport(
        remote.webdav_url,
        remote.username,
        remote.password,
        verify_ssl=remote.verify_ssl,
        timeout=remote.timeout,
    ) as transport:
        driver = SyncDriver(transport, settle_delay=remote.dir_settle_delay)
        report = driver.sync(paths)

    click.echo()
    display_summary(report)
    elapsed = format_elapsed(time.time() - start_time)
    click.echo(f"⏱️  Upload completed in {elapsed}")

    if strict and report.has_failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
