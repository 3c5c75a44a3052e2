"""HabitKeeper application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask

from .config import BaseConfig, DevConfig, TestConfig

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    """Yield blueprint import paths registered on every app."""

    yield "habitkeeper.blueprints.auth"
    yield "habitkeeper.blueprints.habits"
    yield "habitkeeper.blueprints.todos"
    yield "habitkeeper.blueprints.overview"


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_cls = _resolve_config(config_name)
    config_obj = config_cls()
    app.config.from_object(config_obj)
    app.config["HABITKEEPER_CONFIG"] = config_obj
    app.json.sort_keys = False

    # Imported lazily so that model-only imports stay light.
    from . import cli
    from .errors import register_error_handlers
    from .extensions import init_db
    from .logging_config import setup_logging

    setup_logging(config_obj)
    init_db(app)
    register_error_handlers(app)
    _register_blueprints(app)
    cli.init_app(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app"]
