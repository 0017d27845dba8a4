import logging
import traceback
import uuid
from datetime import datetime, timezone
from typing import Optional

import click
from flask import Flask, g, jsonify
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from spooky_styles.cache import Cache
from spooky_styles.core.config import Config, config as default_config
from spooky_styles.core.dependencies import DependencyContainer, build_container
from spooky_styles.core.exceptions import BaseAPIException, error_envelope
from spooky_styles.db import init_db, ping_database
from spooky_styles.routes import (
    cart_bp,
    inspirations_bp,
    orders_bp,
    payments_bp,
    paystack_bp,
    products_bp,
    user_bp,
)

logger = logging.getLogger(__name__)


def create_app(config: Optional[Config] = None, container: Optional[DependencyContainer] = None) -> Flask:
    """
    Application factory.

    Tests pass their own container (fake repositories, fake Redis) so the
    app can run without Postgres or Redis.
    """
    config = config or default_config

    logging.basicConfig(
        level=getattr(logging, config.app.log_level.upper(), logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.api.max_content_length_mb * 1024 * 1024
    app.config["DEBUG"] = config.app.debug
    app.json.sort_keys = False

    CORS(app, origins=config.api.cors_origins or "*")

    app.extensions["container"] = container or build_container(config)

    # ------------------------------------------------------------------ #
    # Blueprints                                                           #
    # ------------------------------------------------------------------ #
    app.register_blueprint(products_bp, url_prefix="/api/products")
    app.register_blueprint(cart_bp, url_prefix="/api/cart")
    app.register_blueprint(orders_bp, url_prefix="/api/orders")
    app.register_blueprint(payments_bp, url_prefix="/api/payments")
    app.register_blueprint(paystack_bp, url_prefix="/api/paystack")
    app.register_blueprint(inspirations_bp, url_prefix="/api/inspirations")
    app.register_blueprint(user_bp, url_prefix="/api/user")

    @app.before_request
    def assign_request_id():
        g.request_id = str(uuid.uuid4())[:8]

    # ------------------------------------------------------------------ #
    # Error handlers: one JSON envelope for every failure                  #
    # ------------------------------------------------------------------ #
    @app.errorhandler(BaseAPIException)
    def handle_api_exception(error: BaseAPIException):
        if error.is_server_error:
            logger.error(f"[{getattr(g, 'request_id', '-')}] {error.error_code}: {error.internal_message}")
        else:
            logger.info(f"[{getattr(g, 'request_id', '-')}] {error.error_code}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        code = (error.name or "HTTP_ERROR").upper().replace(" ", "_")
        return jsonify(error_envelope(code, error.description or error.name)), error.code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error: SQLAlchemyError):
        logger.error(f"Database error: {error}\n{traceback.format_exc()}")
        return jsonify(error_envelope("DATABASE_ERROR", "A database error occurred")), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.error(f"Unhandled error: {error}\n{traceback.format_exc()}")
        return jsonify(error_envelope("INTERNAL_ERROR", "An internal server error occurred")), 500

    # ------------------------------------------------------------------ #
    # Health and index                                                     #
    # ------------------------------------------------------------------ #
    @app.get("/health")
    def health():
        """Readiness check. Returns 503 if the database is unreachable."""
        cache = app.extensions["container"].get(Cache)
        cache_status = "disabled"
        if cache.enabled:
            cache_status = "reachable" if cache.ping() else "unreachable"

        try:
            ping_database()
        except SQLAlchemyError as exc:
            logger.error(f"Health check failed: {exc}")
            return jsonify({
                "status": "error",
                "database": "unreachable",
                "cache": cache_status,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }), 503

        return jsonify({
            "status": "ok",
            "database": "reachable",
            "cache": cache_status,
            "environment": config.environment,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }), 200

    @app.get("/api")
    def index():
        return jsonify({"name": config.api.title, "status": "running"}), 200

    # ------------------------------------------------------------------ #
    # CLI: flask --app spooky_styles.app init-db / seed                    #
    # ------------------------------------------------------------------ #
    @app.cli.command("init-db")
    def init_db_command():
        """Create all tables."""
        init_db()
        click.echo("Database schema created")

    @app.cli.command("seed")
    def seed_command():
        """Load sample products and inspirations."""
        from spooky_styles.seed import seed
        seed()
        click.echo("Sample data loaded")

    return app


if __name__ == "__main__":
    default_config.validate()
    application = create_app()
    application.run(debug=default_config.app.debug, host=default_config.app.host, port=default_config.app.port)
