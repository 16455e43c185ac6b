"""API v1 blueprint package bundling versioned routes."""

from __future__ import annotations

from flask import Blueprint

API_VERSION = "v1"

# Import blueprints *only here* to keep imports localized and avoid cycles.
from .audit import bp as audit_bp  # noqa: E402
from .health import bp as health_bp  # noqa: E402
from .snippets import bp as snippets_bp  # noqa: E402
from .users import bp as users_bp  # noqa: E402

# Each tuple: (blueprint, url_prefix_relative_to_version)
REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),  # -> /api/v1
    (snippets_bp, "/snippets"),
    (users_bp, "/users"),
    (audit_bp, "/audit"),
]
