"""Flask CLI commands for refresh-token maintenance."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from snipvault.core.container import get_container

LOGGER = logging.getLogger(__name__)


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh-token maintenance commands."""


@tokens_cli.command("purge-expired")
@with_appcontext
def purge_expired() -> None:
    """Delete refresh-token records whose expiry has passed.

    Lookups already ignore expired records; this only reclaims storage.
    """
    removed = get_container().refresh_store.purge_expired()
    LOGGER.info("tokens.purged", extra={"status": "success", "reason": f"removed={removed}"})
    click.echo(f"Purged {removed} expired refresh token(s).")


@tokens_cli.command("count")
@click.argument("user_id", type=int)
@with_appcontext
def count(user_id: int) -> None:
    """Print how many live refresh tokens USER_ID holds."""
    click.echo(str(get_container().refresh_store.count_active(user_id)))
