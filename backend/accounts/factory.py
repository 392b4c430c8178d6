"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from accounts.core.config import BaseConfig, get_config
from accounts.core.logger import configure_logging, init_app as init_logging
from accounts.services.container import EXTENSION_KEY, Services, build_services


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    services: Services | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config object or import path; defaults to the ``APP_ENV`` class.
    :param services: Prebuilt service graph; built from the config when omitted.
    :returns: Configured application.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Trust one reverse-proxy hop so request.remote_addr is the client address
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    from accounts.core import extensions

    extensions.init_app(app)

    init_logging(app)

    app.extensions[EXTENSION_KEY] = services or build_services(app.config)

    from accounts.api import init_app as init_api

    init_api(app)

    from accounts.core import errors

    errors.init_app(app)

    from accounts import cli as accounts_cli

    accounts_cli.init_app(app)

    return app
