"""
EduGroup — Flask Web Application

Topic-based project group allocation, section submissions with instructor
remarks, and group chat, served as a JSON API.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException

import database
from auth import auth_bp
from blueprints import register_blueprints
from errors import EduGroupError
from extensions import limiter, login_manager
from record_store import MemoryRecordStore

logger = logging.getLogger(__name__)


def create_app(test_config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)

    # Load config
    from config import config_by_name
    if test_config is not None:
        app.config.from_object(config_by_name["testing"])
        app.config.update(test_config)
    else:
        env = os.environ.get("FLASK_ENV", "development")
        cfg = config_by_name.get(env, config_by_name["development"])
        app.config.from_object(cfg)
        if hasattr(cfg, "validate"):
            cfg.validate()

    # Structured logging
    from logging_config import init_logging
    init_logging(app)

    # Record store: the memory backend lives for the app's lifetime
    if app.config.get("STORE_BACKEND", "sqlite") == "memory":
        app.extensions["record_store"] = MemoryRecordStore()
    database.init_app(app)

    # Rate limiter (disabled in testing)
    limiter.init_app(app)
    if app.config.get("TESTING"):
        limiter.enabled = False

    login_manager.init_app(app)
    app.register_blueprint(auth_bp)
    register_blueprints(app)

    @app.errorhandler(EduGroupError)
    def handle_domain_error(e: EduGroupError):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"error": e.description, "code": e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error: %s", e)
        return jsonify({"error": "Internal server error.", "code": "InternalError"}), 500

    # Security headers
    @app.after_request
    def set_security_headers(response: Response) -> Response:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Polled data must be re-fetched, not served from cache
        response.headers.setdefault("Cache-Control", "no-store")
        if not app.debug and not app.testing:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    logger.info("EduGroup app created (store=%s)", app.config.get("STORE_BACKEND", "sqlite"))
    return app


if __name__ == "__main__":
    create_app().run(debug=True, port=5001)
