"""Post-commit side effects.

Services collect follow-up work (ledger writes, webhooks, cache
invalidation) while the transaction is open and flush it only once the
commit succeeded. A failing side effect is logged and never surfaces to the
caller.
"""

import logging

logger = logging.getLogger(__name__)


class Outbox:
    """Ordered list of deferred task enqueues and local calls."""

    def __init__(self):
        self._entries = []

    def __len__(self) -> int:
        return len(self._entries)

    def enqueue(self, task, *args, **kwargs) -> None:
        """Queue ``task.delay(*args, **kwargs)`` for after the commit."""
        self._entries.append((task.name, task.delay, args, kwargs))

    def call(self, fn, *args, **kwargs) -> None:
        """Queue a local call, e.g. cache invalidation."""
        name = getattr(fn, "__qualname__", repr(fn))
        self._entries.append((name, fn, args, kwargs))

    def flush(self) -> None:
        entries, self._entries = self._entries, []
        for name, fn, args, kwargs in entries:
            try:
                fn(*args, **kwargs)
            except Exception as e:
                logger.warning(f"Post-commit step {name} failed: {e}")


def schedule_inventory_changed(outbox: Outbox, cache, *user_ids) -> None:
    """Drop cached inventories and tell the game server to reload them."""
    from badboys.tasks.notification_tasks import notify_inventory_changed_async

    for user_id in dict.fromkeys(user_ids):
        outbox.call(cache.invalidate, user_id)
        outbox.enqueue(notify_inventory_changed_async, user_id)


def schedule_identity(
    outbox: Outbox,
    key: str,
    record,
    owner: str,
    source,
    metadata: dict | None = None,
    transfer_type=None,
) -> None:
    """Create the identity record of a newly minted item."""
    from badboys.tasks.ledger_tasks import create_item_identity_async

    outbox.enqueue(
        create_item_identity_async,
        key,
        record.id,
        record.attributes(),
        owner,
        getattr(source, "value", source),
        metadata=metadata,
        transfer_type=getattr(transfer_type, "value", transfer_type),
    )


def schedule_transfer(
    outbox: Outbox,
    original,
    new_key: str,
    from_user: str,
    to_user: str,
    transfer_type,
    source,
    trade_id: int | None = None,
    listing_id: int | None = None,
) -> None:
    """Record an item moving between inventories.

    ``original`` is the record as it was in the sender's inventory. Legacy
    items have no identity yet, so one is created under ``new_key`` first.
    """
    from badboys.tasks.ledger_tasks import (
        adopt_legacy_item_async,
        record_item_transfer_async,
    )

    transfer_type = getattr(transfer_type, "value", transfer_type)
    if original.is_legacy:
        outbox.enqueue(
            adopt_legacy_item_async,
            new_key,
            original.id,
            original.attributes(),
            from_user,
            to_user,
            getattr(source, "value", source),
            transfer_type,
            trade_id=trade_id,
            listing_id=listing_id,
            legacy_uid=original.uid,
        )
    else:
        outbox.enqueue(
            record_item_transfer_async,
            new_key,
            from_user,
            to_user,
            transfer_type,
            trade_id=trade_id,
            listing_id=listing_id,
        )


def schedule_consume(outbox: Outbox, record, owner: str, transfer_type, metadata=None):
    """Soft-delete the identity of a consumed item. Legacy items have none."""
    from badboys.tasks.ledger_tasks import consume_item_async

    if record.is_legacy:
        return
    outbox.enqueue(
        consume_item_async,
        record.uuid,
        owner,
        getattr(transfer_type, "value", transfer_type),
        metadata=metadata,
    )
