"""Snippet vault backend: session exchange, encrypted snippets, audit trail."""

from __future__ import annotations

from snipvault.factory import create_app

__all__ = ["create_app"]
