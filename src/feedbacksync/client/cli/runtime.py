"""Shared plumbing for CLI commands.

Each command opens one synchronization core against the configured
backend, runs a single action on it and reports the ``Result``.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import click

from feedbacksync.client.api import GraphQLClient, GraphQLRecordRemote
from feedbacksync.client.cli.config import get_backend_config, get_profile
from feedbacksync.client.model import Record, format_timestamp
from feedbacksync.client.notifications import NotificationEmitter, RemoteNotificationSender
from feedbacksync.client.session import StaticProfileProvider
from feedbacksync.client.sync import RecordSyncCore
from feedbacksync.core.result import Err, Result
from feedbacksync.core.types import ReplyRole

Action = Callable[[RecordSyncCore], Awaitable[Result[Any]]]


@asynccontextmanager
async def open_core(record_id: str) -> AsyncIterator[RecordSyncCore]:
    """Open a core on the configured backend; dispose it on exit.

    Pending notifications are delivered before the client is closed.
    """
    backend = get_backend_config()
    async with GraphQLClient(backend) as client:
        remote = GraphQLRecordRemote(client)
        emitter = NotificationEmitter(RemoteNotificationSender(remote))
        core = RecordSyncCore(
            record_id,
            remote,
            StaticProfileProvider(get_profile()),
            emitter,
        )
        try:
            yield core
        finally:
            core.dispose()
            await emitter.drain()


async def run_action(record_id: str, action: Action) -> Result[Any]:
    """Load the record, then run ``action`` if the load succeeded."""
    async with open_core(record_id) as core:
        loaded = await core.load()
        if isinstance(loaded, Err):
            return loaded
        if core.record is None:
            return loaded
        return await action(core)


def execute(record_id: str, action: Action) -> Record | None:
    """Run an action to completion and exit non-zero on failure."""
    result = asyncio.run(run_action(record_id, action))
    if isinstance(result, Err):
        click.echo(f"Error: {result.message}", err=True)
        sys.exit(1)
    return result.value if isinstance(result.value, Record) else None


def echo_record(record: Record) -> None:
    """Print a record and its conversation."""
    heading = record.title or record.category.label
    click.echo(f"{heading} [{record.id}]")
    click.echo(f"  Category: {record.category.label}")
    click.echo(f"  Status:   {record.status.label}")
    click.echo(f"  Rating:   {record.rating}/5")
    if record.urgency is not None:
        click.echo(f"  Urgency:  {record.urgency}")
    if record.description:
        click.echo(f"  Description: {record.description}")
    if record.suggestion:
        click.echo(f"  Suggestion:  {record.suggestion}")
    if record.internal_notes:
        click.echo(f"  Internal notes: {record.internal_notes}")
    if record.last_updated_by_name:
        click.echo(f"  Last updated by: {record.last_updated_by_name}")

    replies = sorted(record.replies, key=lambda r: r.at)
    if replies:
        click.echo("")
        click.echo("Conversation:")
        for reply in replies:
            who = "Reviewer" if reply.author_role is ReplyRole.REVIEWER else "Submitter"
            click.echo(
                f"  [{format_timestamp(reply.at)}] {who} {reply.author_name}: {reply.message}"
            )
