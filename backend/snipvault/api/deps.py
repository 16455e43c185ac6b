"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from snipvault.core.container import ServiceContainer, get_container
from snipvault.core.errors import APIError, Unauthorized
from snipvault.services._shared.base import BaseService, ServiceContext
from snipvault.services._shared.errors import AccessTokenError, ServiceError
from snipvault.services.audit.dto import AuditEntryIn, RequestSnapshot

F = TypeVar("F", bound=Callable[..., Any])

BEARER_SCHEME = "bearer"


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller, set on ``flask.g.principal``."""

    user_id: int
    email: str | None


def container() -> ServiceContainer:
    return get_container()


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


# ------------------------------ Authentication ------------------------------


def bearer_from_header() -> str | None:
    """Return the credential of an ``Authorization: Bearer <x>`` header, if any."""

    header = request.headers.get("Authorization", "")
    scheme, _, value = header.strip().partition(" ")
    if scheme.lower() != BEARER_SCHEME or not value.strip():
        return None
    return value.strip()


def require_access_token(func: F) -> F:
    """Verify the access token before the handler runs.

    On success ``g.principal`` holds a :class:`Principal`. Failures
    short-circuit with 401 (``NO_TOKEN``, ``TOKEN_EXPIRED``, ``INVALID_TOKEN``)
    before any store or crypto access.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_from_header()
        if token is None:
            raise Unauthorized("Access token required", code="NO_TOKEN")
        try:
            claims = container().tokens.verify_access_token(token)
        except AccessTokenError as exc:
            raise BaseService().translate_exceptions(exc) from exc
        g.principal = Principal(user_id=claims.user_id, email=claims.email)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_principal() -> Principal:
    principal = getattr(g, "principal", None)
    if principal is None:  # pragma: no cover - guarded by require_access_token
        raise Unauthorized("Access token required", code="NO_TOKEN")
    return principal


def service_context() -> ServiceContext:
    """Build the service context for the authenticated request."""

    principal = getattr(g, "principal", None)
    return ServiceContext(
        actor_id=principal.user_id if principal else None,
        actor_email=principal.email if principal else None,
        request_id=getattr(g, "request_id", None),
    )


# --------------------------------- Audit ------------------------------------


def request_snapshot() -> RequestSnapshot:
    """Describe the current request for the audit trail."""

    body = request.get_json(silent=True)
    return RequestSnapshot(
        method=request.method,
        path=request.path,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
        body=body if isinstance(body, dict) else None,
    )


def _status_of(exc: Exception) -> int:
    if isinstance(exc, APIError):
        return exc.status_code
    if isinstance(exc, HTTPException):
        return int(exc.code or 500)
    if isinstance(exc, ServiceError):
        return int(getattr(BaseService().translate_exceptions(exc), "status_code", 500))
    if isinstance(exc, ValidationError):
        return 422
    return 500


def audited(action: str, resource: str) -> Callable[[F], F]:
    """Record one audit entry per call, whether the handler succeeds or raises.

    The entry is handed to the recorder after the handler finishes; the
    recorder never raises, so auditing cannot change the response.
    ``resource_id`` comes from the ``snippet_id`` view argument or, for
    creations, the ``id`` of the JSON ``data`` payload.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            snapshot = request_snapshot()
            start = time.perf_counter()
            status_code = 500
            response_body: dict[str, Any] | None = None
            error: Exception | None = None
            try:
                response = func(*args, **kwargs)
                status_code = response.status_code
                body = response.get_json(silent=True)
                response_body = body if isinstance(body, dict) else None
                return response
            except Exception as exc:
                error = exc
                status_code = _status_of(exc)
                raise
            finally:
                principal = getattr(g, "principal", None)
                resource_id = kwargs.get("snippet_id")
                data = (response_body or {}).get("data")
                if resource_id is None and isinstance(data, dict):
                    resource_id = data.get("id")
                details: dict[str, Any] = {}
                if error is not None:
                    details["error"] = type(error).__name__
                container().recorder.record(
                    AuditEntryIn.from_snapshot(
                        snapshot,
                        action=action,
                        resource=resource,
                        status_code=status_code,
                        response_body=response_body,
                        actor_id=principal.user_id if principal else None,
                        actor_email=principal.email if principal else None,
                        resource_id=str(resource_id) if resource_id is not None else None,
                        details=details,
                        duration_ms=round((time.perf_counter() - start) * 1000, 3),
                    )
                )

        return wrapper  # type: ignore[return-value]

    return decorator
