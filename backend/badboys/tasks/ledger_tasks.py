"""Identity ledger writes queued after inventory commits.

These run once and never retry: the inventory change they describe is
already committed, and a failed history write is only logged.
"""

import structlog

from badboys.celery_app import celery

logger = structlog.get_logger()


@celery.task(bind=True)
def create_item_identity_async(
    self,
    item_uuid: str,
    item_id: int,
    attrs: dict,
    created_by: str,
    source: str,
    metadata: dict | None = None,
    transfer_type: str | None = None,
):
    """Create the identity record for an item placed under ``item_uuid``.

    ``transfer_type`` adds a second log entry after ``initial_create``,
    e.g. ``tradeup_reward``.
    """
    from badboys import db
    from badboys.services.identity_ledger import IdentityLedger

    ledger = IdentityLedger()
    try:
        ledger.create_identity(
            item_id,
            attrs,
            created_by,
            source,
            item_uuid=item_uuid,
            metadata=metadata,
        )
        if transfer_type:
            ledger.record_transfer(
                item_uuid, None, created_by, transfer_type, metadata=metadata
            )
        db.session.commit()
        logger.info(
            "item_identity_created", item_uuid=item_uuid, item_id=item_id, source=source
        )
        return {"success": True, "item_uuid": item_uuid}

    except Exception as e:
        db.session.rollback()
        logger.error("item_identity_failed", item_uuid=item_uuid, error=str(e))
        return {"success": False, "error": str(e)}


@celery.task(bind=True)
def record_item_transfer_async(
    self,
    item_uuid: str,
    from_user: str,
    to_user: str,
    transfer_type: str,
    trade_id: int | None = None,
    listing_id: int | None = None,
    metadata: dict | None = None,
):
    """Log a transfer and move the ownership pointer."""
    from badboys import db
    from badboys.services.identity_ledger import IdentityLedger

    try:
        IdentityLedger().transfer(
            item_uuid,
            from_user,
            to_user,
            transfer_type,
            trade_id=trade_id,
            listing_id=listing_id,
            metadata=metadata,
        )
        db.session.commit()
        logger.info(
            "item_transfer_recorded",
            item_uuid=item_uuid,
            from_user=from_user,
            to_user=to_user,
            transfer_type=transfer_type,
        )
        return {"success": True}

    except Exception as e:
        db.session.rollback()
        logger.error(
            "item_transfer_failed",
            item_uuid=item_uuid,
            transfer_type=transfer_type,
            error=str(e),
        )
        return {"success": False, "error": str(e)}


@celery.task(bind=True)
def adopt_legacy_item_async(
    self,
    item_uuid: str,
    item_id: int,
    attrs: dict,
    previous_owner: str,
    new_owner: str,
    source: str,
    transfer_type: str,
    trade_id: int | None = None,
    listing_id: int | None = None,
    legacy_uid: int | None = None,
):
    """Give a legacy item its first identity record and log its transfer."""
    from badboys import db
    from badboys.services.identity_ledger import IdentityLedger

    ledger = IdentityLedger()
    try:
        ledger.create_identity(
            item_id,
            attrs,
            previous_owner,
            source,
            item_uuid=item_uuid,
            metadata={"legacy_uid": legacy_uid},
        )
        ledger.transfer(
            item_uuid,
            previous_owner,
            new_owner,
            transfer_type,
            trade_id=trade_id,
            listing_id=listing_id,
        )
        db.session.commit()
        logger.info(
            "legacy_item_adopted",
            item_uuid=item_uuid,
            legacy_uid=legacy_uid,
            new_owner=new_owner,
        )
        return {"success": True, "item_uuid": item_uuid}

    except Exception as e:
        db.session.rollback()
        logger.error("legacy_item_adoption_failed", item_uuid=item_uuid, error=str(e))
        return {"success": False, "error": str(e)}


@celery.task(bind=True)
def consume_item_async(
    self,
    item_uuid: str,
    owner: str,
    transfer_type: str,
    metadata: dict | None = None,
):
    """Log the consuming transfer of an item and soft-delete it."""
    from badboys import db
    from badboys.services.identity_ledger import IdentityLedger

    try:
        IdentityLedger().consume(item_uuid, owner, transfer_type, metadata=metadata)
        db.session.commit()
        logger.info("item_consumed", item_uuid=item_uuid, owner=owner)
        return {"success": True}

    except Exception as e:
        db.session.rollback()
        logger.error("item_consume_failed", item_uuid=item_uuid, error=str(e))
        return {"success": False, "error": str(e)}
