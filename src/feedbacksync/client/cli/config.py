"""Configuration utilities for the feedbacksync CLI.

Settings live in ``~/.feedbacksync/config.json``:

    {
      "graphql_url": "https://api.example.com/graphql",
      "token": "...",
      "realtime_url": "wss://realtime.example.com/graphql",
      "user_id": "u-1",
      "display_name": "Ada Lovelace",
      "role": "ADMIN"
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from feedbacksync.client.session import ActorProfile
from feedbacksync.core.config import BackendConfig
from feedbacksync.core.types import ReplyRole


def get_config_dir() -> Path:
    """Get the configuration directory for feedbacksync.

    Returns:
        Path to ~/.feedbacksync.
    """
    return Path.home() / ".feedbacksync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def get_backend_config() -> BackendConfig:
    """Build the backend configuration from the config file.

    Raises:
        click.ClickException: If the backend is not configured.
    """
    config = load_config()
    if not config.get("graphql_url") or not config.get("token"):
        raise click.ClickException(
            "Backend not configured. Run 'feedbacksync configure' first."
        )
    return BackendConfig(
        graphql_url=config["graphql_url"],
        token=config["token"],
        verify_ssl=bool(config.get("verify_ssl", True)),
        realtime_url=config.get("realtime_url") or None,
    )


def get_profile() -> ActorProfile | None:
    """Get the acting user's profile, or None if not configured."""
    config = load_config()
    if not config.get("user_id") or not config.get("role"):
        return None
    return ActorProfile(
        id=config["user_id"],
        display_name=config.get("display_name", ""),
        role=ReplyRole(config["role"]),
    )
