"""Periodic marketplace maintenance."""

import structlog

from badboys.celery_app import celery

logger = structlog.get_logger()


@celery.task(bind=True)
def expire_marketplace_listings(self):
    """Return items of expired listings to their sellers."""
    from badboys.services.marketplace_service import MarketplaceService

    logger.info("expire_marketplace_listings_started")
    result = MarketplaceService().expire_listings()
    logger.info(
        "expire_marketplace_listings_completed",
        expired=result["expired"],
        failed=result["failed"],
    )
    return result
