"""Item identity and transfer history models."""

from datetime import datetime
from enum import Enum

from badboys import db


class ItemSource(str, Enum):
    """How an item instance first came into existence."""

    DROP = "drop"
    CASE = "case"
    SHOP = "shop"
    TRADE = "trade"
    MARKETPLACE = "marketplace"
    CRAFT = "craft"
    TRADEUP = "tradeup"


class TransferType(str, Enum):
    """Kinds of entries in the transfer log."""

    TRADE = "trade"
    MARKETPLACE_SELL = "marketplace_sell"
    MARKETPLACE_BUY = "marketplace_buy"
    INITIAL_CREATE = "initial_create"
    TRADEUP_CONSUME = "tradeup_consume"
    TRADEUP_REWARD = "tradeup_reward"
    CONTAINER_UNLOCK = "container_unlock"


class ItemHistory(db.Model):
    """Permanent identity record of one physical item instance."""

    __tablename__ = "item_history"

    item_uuid = db.Column(db.String(36), primary_key=True)
    item_id = db.Column(db.Integer, nullable=False, index=True)

    # Variable attributes at creation time
    wear = db.Column(db.Float, nullable=True)
    seed = db.Column(db.Integer, nullable=True)
    name_tag = db.Column(db.String(64), nullable=True)
    stickers = db.Column(db.JSON, nullable=True)

    created_by = db.Column(db.String(32), nullable=False, index=True)
    source = db.Column(db.String(20), nullable=False)

    # None once consumed
    current_owner = db.Column(db.String(32), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    deleted_at = db.Column(db.DateTime, nullable=True)

    transfers = db.relationship(
        "ItemTransfer",
        backref="item",
        lazy="dynamic",
        order_by="ItemTransfer.id",
        cascade="all, delete-orphan",
    )

    @property
    def is_consumed(self) -> bool:
        return self.deleted_at is not None

    def to_dict(self, include_transfers: bool = False) -> dict:
        """Convert to dictionary."""
        data = {
            "item_uuid": self.item_uuid,
            "item_id": self.item_id,
            "wear": self.wear,
            "seed": self.seed,
            "name_tag": self.name_tag,
            "stickers": self.stickers,
            "created_by": self.created_by,
            "source": self.source,
            "current_owner": self.current_owner,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }
        if include_transfers:
            data["transfers"] = [t.to_dict() for t in self.transfers]
        return data


class ItemTransfer(db.Model):
    """Append-only log of ownership changes."""

    __tablename__ = "item_transfers"

    id = db.Column(db.Integer, primary_key=True)
    item_uuid = db.Column(
        db.String(36),
        db.ForeignKey("item_history.item_uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # None for the initial creation
    from_user = db.Column(db.String(32), nullable=True)
    to_user = db.Column(db.String(32), nullable=False)
    transfer_type = db.Column(db.String(30), nullable=False)

    trade_id = db.Column(db.Integer, nullable=True)
    listing_id = db.Column(db.Integer, nullable=True)
    # JSON text
    metadata_json = db.Column("metadata", db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "item_uuid": self.item_uuid,
            "from_user": self.from_user,
            "to_user": self.to_user,
            "transfer_type": self.transfer_type,
            "trade_id": self.trade_id,
            "listing_id": self.listing_id,
            "metadata": self.metadata_json,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
