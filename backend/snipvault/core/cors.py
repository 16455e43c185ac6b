"""CORS policy for the browser extension origins."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def init_app(app: Flask) -> None:
    """Configure CORS for the API and session endpoints.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted. ``CORS_ORIGINS`` is a comma-separated list, typically the
        ``chrome-extension://<id>`` origin plus local development hosts. When
        it is blank or ``"*"`` any origin is allowed without credentials.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "") or ""
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]
    allowed = "*" if wildcard else origins

    auth_prefix = app.config.get("AUTH_PREFIX", "/auth").rstrip("/")
    api_prefix = app.config.get("API_BASE_PREFIX", "/api").rstrip("/")

    CORS(
        app,
        resources={
            rf"{api_prefix}/*": {"origins": allowed},
            rf"{auth_prefix}/*": {"origins": allowed},
        },
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        supports_credentials=not wildcard,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
