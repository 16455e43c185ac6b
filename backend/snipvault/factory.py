"""Application factory wiring Flask extensions, services and blueprints."""

from __future__ import annotations

from typing import Any

from flask import Flask

from snipvault.core.config import BaseConfig, ensure_secure_secrets, get_config
from snipvault.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
    **overrides: Any,
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config class/object (defaults to the ``APP_ENV`` selection).
    :param overrides: Adapter overrides forwarded to the service container
        (``identity_verifier``, ``refresh_store``, ``audit_sink``).
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    ensure_secure_secrets(app.config)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from snipvault.core import proxy

    proxy.init_app(app)

    from snipvault.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from snipvault.core import cors

    cors.init_app(app)

    from snipvault.core import container

    container.init_app(app, **overrides)

    from snipvault.api import init_app as init_api

    init_api(app)

    from snipvault.core import errors

    errors.init_app(app)

    from snipvault import cli as app_cli

    app_cli.init_app(app)

    return app
