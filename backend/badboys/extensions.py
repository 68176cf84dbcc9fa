"""Flask extensions initialization."""

import os

from flask import current_app

CATALOG_EXTENSION = "badboys.catalog"
INVENTORY_CACHE_EXTENSION = "badboys.inventory_cache"


def init_extensions(app, catalog=None, inventory_cache=None):
    """Attach the item catalog and the inventory cache to the app.

    Both are plain objects handed to services; nothing is created lazily at
    module level.
    """
    from badboys.services.catalog import ItemCatalog
    from badboys.services.inventory_cache import create_inventory_cache

    if catalog is None:
        path = app.config.get("ITEM_CATALOG_PATH")
        catalog = ItemCatalog.from_file(path) if path else ItemCatalog([])
        if not path:
            app.logger.warning("ITEM_CATALOG_PATH not set, item catalog is empty")

    if inventory_cache is None:
        inventory_cache = create_inventory_cache(
            app.config.get("REDIS_URL"), ttl=app.config["INVENTORY_CACHE_TTL"]
        )

    app.extensions[CATALOG_EXTENSION] = catalog
    app.extensions[INVENTORY_CACHE_EXTENSION] = inventory_cache


def get_catalog():
    """Item catalog of the current app."""
    return current_app.extensions[CATALOG_EXTENSION]


def get_inventory_cache():
    """Inventory cache gateway of the current app."""
    return current_app.extensions[INVENTORY_CACHE_EXTENSION]


def init_sentry(app):
    """Initialize Sentry error tracking."""
    sentry_dsn = os.environ.get("SENTRY_DSN")
    if sentry_dsn:
        import sentry_sdk
        from sentry_sdk.integrations.celery import CeleryIntegration
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.redis import RedisIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[
                FlaskIntegration(),
                SqlalchemyIntegration(),
                CeleryIntegration(),
                RedisIntegration(),
            ],
            traces_sample_rate=0.1,
            environment=os.environ.get("FLASK_ENV", "production"),
            send_default_pii=False,  # Steam IDs stay out of Sentry
        )
        app.logger.info("Sentry initialized successfully")
    else:
        app.logger.debug("SENTRY_DSN not set, error tracking disabled")
