"""Flask application factory."""

import os

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from badboys.config import config

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()


def create_app(
    config_name: str | None = None, catalog=None, inventory_cache=None
) -> Flask:
    """Create and configure the Flask application.

    ``catalog`` and ``inventory_cache`` may be passed in explicitly; otherwise
    they are built from configuration (``ITEM_CATALOG_PATH`` and ``REDIS_URL``).
    """
    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # CORS
    CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)

    from badboys.extensions import init_extensions, init_sentry
    from badboys.logging_config import setup_logging

    init_extensions(app, catalog=catalog, inventory_cache=inventory_cache)
    init_sentry(app)
    setup_logging(app)

    from badboys.celery_app import init_celery

    init_celery(app)

    # Register blueprints
    from badboys.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api/v1")

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    # Shell context
    @app.shell_context_processor
    def make_shell_context():
        from badboys.models import (ItemHistory, ItemTransfer,
                                    MarketplaceListing, TradeOffer, User)

        return {
            "db": db,
            "User": User,
            "ItemHistory": ItemHistory,
            "ItemTransfer": ItemTransfer,
            "MarketplaceListing": MarketplaceListing,
            "TradeOffer": TradeOffer,
        }

    return app
