"""Write commands for the feedbacksync CLI.

Commands:
- reply: Add a reply to the conversation
- set-status: Save reviewer status, urgency and internal notes
- edit: Edit the submitter's own fields
- delete: Delete a record
"""

from __future__ import annotations

from typing import Any

import click

from feedbacksync.client.cli.configure import ROLE_CHOICES
from feedbacksync.client.cli.runtime import echo_record, execute
from feedbacksync.client.model import Record
from feedbacksync.client.sync import RecordSyncCore
from feedbacksync.core.result import Result
from feedbacksync.core.types import ReplyRole, SubmissionStatus

role_option = click.option(
    "--as",
    "role",
    type=click.Choice(list(ROLE_CHOICES), case_sensitive=False),
    required=True,
    help="Act as submitter or reviewer.",
)


def _role(name: str) -> ReplyRole:
    return ReplyRole(ROLE_CHOICES[name.lower()])


def _echo_updated(record: Record | None) -> None:
    if record is None:
        click.echo("Feedback not found.")
        return
    echo_record(record)


@click.command()
@click.argument("record_id")
@click.argument("message")
@role_option
def reply(record_id: str, message: str, role: str) -> None:
    """Add a reply to the conversation."""
    reply_role = _role(role)

    async def action(core: RecordSyncCore) -> Result[Record | None]:
        return await core.send_reply(message, reply_role)

    _echo_updated(execute(record_id, action))


@click.command("set-status")
@click.argument("record_id")
@click.argument(
    "status",
    type=click.Choice([s.value for s in SubmissionStatus], case_sensitive=False),
)
@click.option("--urgency", type=click.IntRange(1, 5), default=None, help="Urgency 1-5.")
@click.option("--notes", default=None, help="Internal notes (empty string clears them).")
def set_status(
    record_id: str,
    status: str,
    urgency: int | None,
    notes: str | None,
) -> None:
    """Save reviewer status, urgency and internal notes."""

    async def action(core: RecordSyncCore) -> Result[Record | None]:
        return await core.reviewer_save_meta(
            SubmissionStatus(status.upper()),
            urgency=urgency,
            internal_notes=notes,
        )

    _echo_updated(execute(record_id, action))


@click.command()
@click.argument("record_id")
@click.option("--title", default=None, help="New title.")
@click.option("--description", default=None, help="New description.")
@click.option("--suggestion", default=None, help="New suggestion.")
@click.option("--rating", type=int, default=None, help="New rating 0-5.")
@click.option("--attachment", default=None, help="New attachment key.")
def edit(
    record_id: str,
    title: str | None,
    description: str | None,
    suggestion: str | None,
    rating: int | None,
    attachment: str | None,
) -> None:
    """Edit your own feedback while it is still editable.

    Only the given options are changed; pass an empty string to clear a
    text field.
    """
    changes: dict[str, Any] = {
        "title": title,
        "description": description,
        "suggestion": suggestion,
        "rating": rating,
        "attachment_ref": attachment,
    }
    edits = {name: value for name, value in changes.items() if value is not None}
    if not edits:
        raise click.UsageError("Nothing to change.")

    async def action(core: RecordSyncCore) -> Result[Record | None]:
        return await core.submitter_save_edits(**edits)

    _echo_updated(execute(record_id, action))


@click.command()
@click.argument("record_id")
@role_option
@click.confirmation_option(prompt="Delete this feedback?")
def delete(record_id: str, role: str) -> None:
    """Delete a feedback record."""
    delete_role = _role(role)

    async def action(core: RecordSyncCore) -> Result[None]:
        return await core.delete(delete_role)

    execute(record_id, action)
    click.echo("Feedback deleted.")
