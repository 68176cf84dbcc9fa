"""Celery tasks package."""

from badboys.tasks.ledger_tasks import (
    adopt_legacy_item_async,
    consume_item_async,
    create_item_identity_async,
    record_item_transfer_async,
)
from badboys.tasks.marketplace_tasks import expire_marketplace_listings
from badboys.tasks.notification_tasks import (
    notify_case_opened_async,
    notify_inventory_changed_async,
    record_case_opening_async,
)

__all__ = [
    "create_item_identity_async",
    "record_item_transfer_async",
    "adopt_legacy_item_async",
    "consume_item_async",
    "notify_case_opened_async",
    "notify_inventory_changed_async",
    "record_case_opening_async",
    "expire_marketplace_listings",
]
