"""Item identity ledger.

Every physical item gets one permanent ``item_history`` row, keyed by its
UUID, with an append-only ``item_transfers`` log next to it. Writes here run
after the inventory change has committed (from Celery tasks), so they must
not be relied on for correctness of the inventory itself.
"""

import json
import logging
import uuid
from datetime import datetime

from badboys import db
from badboys.errors import NotFound
from badboys.models.item_history import (
    ItemHistory,
    ItemSource,
    ItemTransfer,
    TransferType,
)

logger = logging.getLogger(__name__)


class IdentityLedger:
    """Identity records, ownership pointer and transfer log.

    Methods add to the session and flush; committing is up to the caller.
    """

    def create_identity(
        self,
        item_id: int,
        attrs: dict | None,
        created_by: str,
        source: ItemSource | str,
        item_uuid: str | None = None,
        metadata: dict | None = None,
    ) -> str:
        """Create the identity record and its ``initial_create`` transfer.

        ``item_uuid`` is normally left empty and generated here; callers that
        already placed the item in an inventory pass the key they used.
        """
        attrs = attrs or {}
        item_uuid = item_uuid or str(uuid.uuid4())
        now = datetime.utcnow()

        db.session.add(
            ItemHistory(
                item_uuid=item_uuid,
                item_id=item_id,
                wear=attrs.get("wear"),
                seed=attrs.get("seed"),
                name_tag=attrs.get("name_tag"),
                stickers=attrs.get("stickers"),
                created_by=created_by,
                source=ItemSource(source).value,
                current_owner=created_by,
                created_at=now,
            )
        )
        # The row must exist before the transfer that references it
        db.session.flush()
        self.record_transfer(
            item_uuid,
            None,
            created_by,
            TransferType.INITIAL_CREATE,
            metadata={"source": ItemSource(source).value, **(metadata or {})},
        )

        logger.info(f"Item {item_uuid} ({item_id}) created for {created_by}")
        return item_uuid

    def record_transfer(
        self,
        item_uuid: str,
        from_user: str | None,
        to_user: str,
        transfer_type: TransferType | str,
        trade_id: int | None = None,
        listing_id: int | None = None,
        metadata: dict | None = None,
    ) -> ItemTransfer:
        """Append to the transfer log. Does not move ownership."""
        transfer = ItemTransfer(
            item_uuid=item_uuid,
            from_user=from_user,
            to_user=to_user,
            transfer_type=TransferType(transfer_type).value,
            trade_id=trade_id,
            listing_id=listing_id,
            metadata_json=json.dumps(metadata) if metadata else None,
            timestamp=datetime.utcnow(),
        )
        db.session.add(transfer)
        db.session.flush()
        return transfer

    def update_ownership(self, item_uuid: str, new_owner: str) -> None:
        item = self._get(item_uuid)
        item.current_owner = new_owner
        db.session.flush()

    def mark_deleted(self, item_uuid: str) -> None:
        """Soft-delete: the record stays, ownership is cleared."""
        item = self._get(item_uuid)
        item.current_owner = None
        item.deleted_at = datetime.utcnow()
        db.session.flush()

    def transfer(
        self,
        item_uuid: str,
        from_user: str,
        to_user: str,
        transfer_type: TransferType | str,
        trade_id: int | None = None,
        listing_id: int | None = None,
        metadata: dict | None = None,
    ) -> None:
        """Log a transfer and move ownership in one go."""
        self.record_transfer(
            item_uuid,
            from_user,
            to_user,
            transfer_type,
            trade_id=trade_id,
            listing_id=listing_id,
            metadata=metadata,
        )
        self.update_ownership(item_uuid, to_user)

    def consume(
        self,
        item_uuid: str,
        owner: str,
        transfer_type: TransferType | str = TransferType.TRADEUP_CONSUME,
        metadata: dict | None = None,
    ) -> None:
        """Log the final transfer of an item and soft-delete it."""
        self.record_transfer(item_uuid, owner, owner, transfer_type, metadata=metadata)
        self.mark_deleted(item_uuid)

    def get_item_history(self, item_uuid: str) -> dict | None:
        item = db.session.get(ItemHistory, item_uuid)
        if item is None:
            return None
        return item.to_dict(include_transfers=True)

    def get_item_transfers(self, item_uuid: str) -> list[dict]:
        transfers = (
            ItemTransfer.query.filter_by(item_uuid=item_uuid)
            .order_by(ItemTransfer.id)
            .all()
        )
        return [t.to_dict() for t in transfers]

    def get_user_item_history(self, user_id: str, limit: int = 50) -> list[dict]:
        """Transfers in or out of a user's hands, newest first."""
        transfers = (
            ItemTransfer.query.filter(
                db.or_(ItemTransfer.from_user == user_id, ItemTransfer.to_user == user_id)
            )
            .order_by(ItemTransfer.id.desc())
            .limit(limit)
            .all()
        )
        return [t.to_dict() for t in transfers]

    def _get(self, item_uuid: str) -> ItemHistory:
        item = db.session.get(ItemHistory, item_uuid)
        if item is None:
            raise NotFound("item_history_not_found", f"No identity for {item_uuid}")
        return item
