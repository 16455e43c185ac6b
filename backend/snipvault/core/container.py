"""Per-application wiring of ports, adapters and stateless services."""

from __future__ import annotations

import atexit
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from flask import Flask, current_app

from snipvault.services._shared.ports import (
    AuditSink,
    IdentityVerifier,
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
    StubIdentityVerifier,
)
from snipvault.services.audit.recorder import AuditRecorder
from snipvault.services.crypto.service import EncryptionService
from snipvault.services.identity.broker import IdentityBroker
from snipvault.services.sessions.orchestrator import SessionOrchestrator
from snipvault.services.tokens.bearer import BearerHasher
from snipvault.services.tokens.service import TokenService

log = logging.getLogger(__name__)

EXTENSION_KEY = "snipvault"


@dataclass(slots=True)
class ServiceContainer:
    """Long-lived collaborators shared by every request of one app."""

    identity_verifier: IdentityVerifier
    refresh_store: RefreshTokenStore
    audit_sink: AuditSink
    recorder: AuditRecorder
    tokens: TokenService
    crypto: EncryptionService
    sessions: SessionOrchestrator


def _build_identity_verifier(app: Flask) -> IdentityVerifier:
    provider = str(app.config.get("IDENTITY_PROVIDER", "firebase")).lower()
    if provider == "static":
        return StubIdentityVerifier()
    if provider != "firebase":
        raise RuntimeError(f"Unknown IDENTITY_PROVIDER: {provider!r}")

    from snipvault.infra.firebase.firebase_verifier import initialize_firebase_verifier

    return initialize_firebase_verifier(
        service_account=app.config.get("FIREBASE_SERVICE_ACCOUNT_KEY"),
        project_id=app.config.get("FIREBASE_PROJECT_ID"),
        check_revoked=bool(app.config.get("FIREBASE_CHECK_REVOKED", True)),
    )


def _build_refresh_store(app: Flask) -> RefreshTokenStore:
    hasher = BearerHasher(str(app.config["REFRESH_TOKEN_SECRET"]))
    ttl = timedelta(seconds=int(app.config["REFRESH_TOKEN_TTL_SECONDS"]))
    backend = str(app.config.get("REFRESH_TOKEN_BACKEND", "sql")).lower()

    if backend == "redis":
        from snipvault.core.extensions import get_redis
        from snipvault.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore

        return RedisRefreshTokenStore(r=get_redis(app), hasher=hasher, ttl=ttl)
    if backend == "memory":
        return InMemoryRefreshTokenStore(secret=hasher.secret, ttl=ttl)
    if backend != "sql":
        raise RuntimeError(f"Unknown REFRESH_TOKEN_BACKEND: {backend!r}")

    from snipvault.infra.sql.sql_refresh_token_store import SQLRefreshTokenStore

    return SQLRefreshTokenStore(hasher, ttl=ttl)


def init_app(
    app: Flask,
    *,
    identity_verifier: IdentityVerifier | None = None,
    refresh_store: RefreshTokenStore | None = None,
    audit_sink: AuditSink | None = None,
) -> ServiceContainer:
    """
    Build the container for ``app`` and store it in ``app.extensions``.

    Keyword overrides replace the configured adapters (used by tests).

    :returns: The container.
    """
    from snipvault.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
    from snipvault.infra.sql.sql_audit_sink import SQLAuditSink

    verifier = identity_verifier or _build_identity_verifier(app)
    store = refresh_store or _build_refresh_store(app)
    sink = audit_sink or SQLAuditSink(app)
    recorder = AuditRecorder(
        sink,
        async_mode=bool(app.config.get("AUDIT_ASYNC", True)),
        max_workers=int(app.config.get("AUDIT_MAX_WORKERS", 4)),
    )
    if recorder.async_mode:
        atexit.register(recorder.shutdown)

    tokens = TokenService(
        JWTTokenProvider(), ttl_seconds=int(app.config["ACCESS_TOKEN_TTL_SECONDS"])
    )
    container = ServiceContainer(
        identity_verifier=verifier,
        refresh_store=store,
        audit_sink=sink,
        recorder=recorder,
        tokens=tokens,
        crypto=EncryptionService(iterations=int(app.config["ENCRYPTION_KDF_ITERATIONS"])),
        sessions=SessionOrchestrator(
            broker=IdentityBroker(verifier),
            tokens=tokens,
            refresh_store=store,
            recorder=recorder,
        ),
    )
    app.extensions[EXTENSION_KEY] = container
    log.info(
        "container.ready",
        extra={"endpoint": type(store).__name__, "reason": type(verifier).__name__},
    )
    return container


def get_container(app: Flask | None = None) -> ServiceContainer:
    """Return the container of ``app`` (default: the current app)."""
    target = app if app is not None else cast(Any, current_app)
    container = target.extensions.get(EXTENSION_KEY)
    if container is None:
        raise RuntimeError("Service container is not initialized. Call init_app() first.")
    return cast(ServiceContainer, container)
