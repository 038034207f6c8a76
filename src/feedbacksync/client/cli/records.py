"""Read commands for the feedbacksync CLI.

Commands:
- show: Print one feedback record
- watch: Print the record every time it changes
"""

from __future__ import annotations

import asyncio
import sys

import click

from feedbacksync.client.cli import runtime
from feedbacksync.client.cli.runtime import echo_record, execute
from feedbacksync.client.model import Record
from feedbacksync.client.sync import RecordSyncCore
from feedbacksync.core.result import Err, Ok, Result


async def _current(core: RecordSyncCore) -> Result[Record | None]:
    return Ok(core.record)


@click.command()
@click.argument("record_id")
def show(record_id: str) -> None:
    """Print one feedback record and its conversation."""
    record = execute(record_id, _current)
    if record is None:
        click.echo("Feedback not found.")
        return
    echo_record(record)


async def _watch(record_id: str) -> Err | None:
    async with runtime.open_core(record_id) as core:
        shown: list[Record | None] = [None]

        def on_change() -> None:
            record = core.record
            if record is not None and record is not shown[0]:
                shown[0] = record
                click.echo("")
                echo_record(record)

        core.add_listener(on_change)
        result = await core.init()
        if isinstance(result, Err):
            return result

        click.echo("Watching for changes. Press Ctrl+C to stop.")
        while not core.is_disposed:
            await asyncio.sleep(3600)
    return None


@click.command()
@click.argument("record_id")
def watch(record_id: str) -> None:
    """Follow a record and print it every time it changes."""
    try:
        error = asyncio.run(_watch(record_id))
    except KeyboardInterrupt:
        click.echo("\nStopped.")
        return

    if error is not None:
        click.echo(f"Error: {error.message}", err=True)
        sys.exit(1)
