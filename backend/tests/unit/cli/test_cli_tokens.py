"""Tests for the ``flask tokens`` maintenance commands."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from freezegun import freeze_time
from tests.factories.user import UserFactory


def test_count_reports_live_tokens(app, container, session):
    user = UserFactory()
    container.refresh_store.issue(user.id)
    container.refresh_store.issue(user.id)

    result = app.test_cli_runner().invoke(args=["tokens", "count", str(user.id)])

    assert result.exit_code == 0
    assert result.output.strip() == "2"


def test_purge_expired(app, container, session):
    user = UserFactory()
    with freeze_time(datetime.now(UTC) - timedelta(days=365)):
        container.refresh_store.issue(user.id)
    container.refresh_store.issue(user.id)

    result = app.test_cli_runner().invoke(args=["tokens", "purge-expired"])

    assert result.exit_code == 0
    assert "Purged 1 expired refresh token(s)." in result.output
    assert container.refresh_store.count_active(user.id) == 1


def test_count_requires_integer(app):
    result = app.test_cli_runner().invoke(args=["tokens", "count", "abc"])
    assert result.exit_code != 0
