from __future__ import annotations

import logging
import os
import sys

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.coordinator import RoundCoordinator
from .game.store import SessionStore
from .game.words import WordSupplier, build_word_supplier
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp
from .routes.words import bp as words_bp
from .realtime.handlers import register_socketio_handlers


logger = logging.getLogger(__name__)


def _async_mode(config_class) -> str:
    env_async_mode = (getattr(config_class, "SOCKETIO_ASYNC_MODE", "") or os.environ.get("SOCKETIO_ASYNC_MODE", "")).strip()
    if env_async_mode:
        return env_async_mode
    # Default choice:
    # - Windows: threading (eventlet has known compatibility issues on newer Python)
    # - Python >= 3.13: threading (safer default)
    # - Otherwise: eventlet
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def create_app(config_class=Config, word_supplier: WordSupplier | None = None) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(config_class)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    async_mode = _async_mode(config_class)
    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=async_mode,
    )

    # One store per process; rooms come and go inside it.
    store = SessionStore()
    coordinator = RoundCoordinator(
        store,
        socketio,
        word_supplier or build_word_supplier(config_class),
        config=config_class,
    )
    app.extensions["sketchquest"] = coordinator

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")
    app.register_blueprint(words_bp, url_prefix="/api")

    register_socketio_handlers(socketio, coordinator)

    logger.info("app created async_mode=%s", async_mode)
    return app, socketio
