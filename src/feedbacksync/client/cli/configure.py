"""Configure command for the feedbacksync CLI.

Commands:
- configure: Store backend and profile settings
"""

from __future__ import annotations

import click

from feedbacksync.client.cli.config import get_config_file, load_config, save_config
from feedbacksync.client.session import ActorProfile

ROLE_CHOICES = {"submitter": "GENERAL", "reviewer": "ADMIN"}


@click.command()
@click.option("--graphql-url", prompt="GraphQL endpoint URL", help="Backend GraphQL URL.")
@click.option("--token", prompt="API token", hide_input=True, help="Bearer token.")
@click.option("--realtime-url", default="", help="Realtime WebSocket URL (derived if empty).")
@click.option("--user-id", prompt="User id", help="Your user id.")
@click.option("--first-name", prompt="First name", help="Your first name.")
@click.option("--last-name", prompt="Last name", help="Your last name.")
@click.option(
    "--role",
    type=click.Choice(list(ROLE_CHOICES), case_sensitive=False),
    prompt="Role",
    help="Act as submitter or reviewer.",
)
@click.option("--insecure", is_flag=True, help="Skip TLS certificate verification.")
def configure(
    graphql_url: str,
    token: str,
    realtime_url: str,
    user_id: str,
    first_name: str,
    last_name: str,
    role: str,
    insecure: bool,
) -> None:
    """Store backend and profile settings."""
    profile = ActorProfile.from_names(
        user_id, first_name, last_name, ROLE_CHOICES[role.lower()]
    )

    config = load_config()
    config.update({
        "graphql_url": graphql_url.strip(),
        "token": token.strip(),
        "realtime_url": realtime_url.strip(),
        "verify_ssl": not insecure,
        "user_id": profile.id,
        "display_name": profile.display_name,
        "role": profile.role.value,
    })
    save_config(config)

    click.echo(f"Configuration saved to {get_config_file()}")
