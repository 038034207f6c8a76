"""Command-line interface for feedbacksync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Store backend and profile settings
- show: Print one feedback record
- watch: Follow a record and print every change
- reply: Add a reply to the conversation
- set-status: Save reviewer status, urgency and internal notes
- edit: Edit the submitter's own fields
- delete: Delete a record
"""

from __future__ import annotations

import logging
import sys

import click

from feedbacksync.client.cli.actions import delete, edit, reply, set_status
from feedbacksync.client.cli.config import (
    get_backend_config,
    get_config_dir,
    get_config_file,
    get_profile,
    load_config,
    save_config,
)
from feedbacksync.client.cli.configure import configure
from feedbacksync.client.cli.records import show, watch


def setup_logging(verbose: bool) -> None:
    """Send feedbacksync logs to stderr."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    feedbacksync_logger = logging.getLogger("feedbacksync")
    for existing in feedbacksync_logger.handlers[:]:
        feedbacksync_logger.removeHandler(existing)
    feedbacksync_logger.addHandler(handler)
    feedbacksync_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    feedbacksync_logger.propagate = False


@click.group()
@click.version_option(package_name="feedbacksync")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs.")
def cli(verbose: bool) -> None:
    """feedbacksync - Follow and answer one feedback record."""
    setup_logging(verbose)


# Setup
cli.add_command(configure)

# Read commands
cli.add_command(show)
cli.add_command(watch)

# Write commands
cli.add_command(reply)
cli.add_command(set_status)
cli.add_command(edit)
cli.add_command(delete)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_backend_config",
    "get_config_dir",
    "get_config_file",
    "get_profile",
    "load_config",
    "save_config",
]
