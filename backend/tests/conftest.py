"""Pytest fixtures: a fresh application and SQLite file database per test.

A file (not ``:memory:``) database is used because audit writes open their
own application context, hence their own session and connection; every
connection must see the same data.
"""

from __future__ import annotations

import os

import pytest
from snipvault.core.config import TestingConfig
from snipvault.core.extensions import db as _db
from snipvault.factory import create_app
from snipvault.services._shared.ports import StubIdentityVerifier


@pytest.fixture
def identity_verifier():
    """Table-driven identity oracle; tests register assertions on it."""
    return StubIdentityVerifier()


@pytest.fixture
def app_overrides(identity_verifier):
    """Adapter overrides passed to ``create_app`` (extend per module)."""
    return {"identity_verifier": identity_verifier}


@pytest.fixture
def app(tmp_path, app_overrides):
    """Create a Flask application bound to a throwaway SQLite file.

    Yields
    ------
    flask.Flask
        Application with tables created and an application context pushed
        for the duration of the test.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)

    class _Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'test.db'}"

    app = create_app(_Config, instance_relative_config=False, **app_overrides)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()
        _db.engine.dispose()


@pytest.fixture
def db(app):
    """Database extension bound to the testing application."""
    return _db


@pytest.fixture
def session(db):
    """Flask-scoped session of the pushed application context."""
    return db.session


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def container(app):
    from snipvault.core.container import get_container

    return get_container(app)


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


@pytest.fixture
def sign_in(client, identity_verifier):
    """Exchange a freshly registered assertion and return the JSON body.

    Usage: ``body = sign_in(uid="u-1", email="a@example.com")``.
    """

    def _sign_in(*, uid: str = "firebase-uid-1", email: str = "alice@example.com", **claims):
        assertion = f"assertion-{uid}"
        identity_verifier.allow(assertion, uid=uid, email=email, **claims)
        resp = client.post("/auth/exchange", headers={"Authorization": f"Bearer {assertion}"})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()

    return _sign_in
