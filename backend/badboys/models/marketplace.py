"""Marketplace models."""

import json
from datetime import datetime
from enum import Enum

from badboys import db


class ListingStatus(str, Enum):
    """Listing lifecycle: active -> sold | cancelled."""

    ACTIVE = "active"
    SOLD = "sold"
    CANCELLED = "cancelled"


class MarketplaceListing(db.Model):
    """One sale offer for a single item, frozen at listing time."""

    __tablename__ = "marketplace_listings"

    id = db.Column(db.Integer, primary_key=True)

    # Seller
    seller_id = db.Column(
        db.String(32),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Key the item had in the seller inventory (uuid or legacy uid)
    item_key = db.Column(db.String(64), nullable=False)
    item_uuid = db.Column(db.String(36), nullable=True, index=True)
    item_uid = db.Column(db.Integer, nullable=True)
    item_id = db.Column(db.Integer, nullable=False, index=True)

    # Frozen item record (inventory codec JSON)
    item_data = db.Column(db.Text, nullable=False)

    price = db.Column(db.Numeric(12, 2), nullable=False)

    status = db.Column(
        db.String(20), default=ListingStatus.ACTIVE.value, nullable=False, index=True
    )

    # Buyer info (filled when sold)
    buyer_id = db.Column(
        db.String(32),
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Timing
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    sold_at = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    seller = db.relationship("User", foreign_keys=[seller_id])
    buyer = db.relationship("User", foreign_keys=[buyer_id])

    __table_args__ = (
        # At most one active listing per physical item
        db.Index(
            "uq_marketplace_listings_active_item",
            "item_uuid",
            unique=True,
            sqlite_where=db.text("status = 'active'"),
            postgresql_where=db.text("status = 'active'"),
        ),
        db.CheckConstraint("price > 0", name="ck_marketplace_listings_price"),
    )

    @property
    def item(self) -> dict:
        return json.loads(self.item_data)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.utcnow()) >= self.expires_at

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "seller": (
                {"id": self.seller.id, "name": self.seller.name}
                if self.seller
                else None
            ),
            "item_key": self.item_key,
            "item_uuid": self.item_uuid,
            "item_id": self.item_id,
            "item": self.item,
            "price": str(self.price),
            "status": self.status,
            "buyer_id": self.buyer_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "sold_at": self.sold_at.isoformat() if self.sold_at else None,
        }


class PriceHistory(db.Model):
    """Listing and sale prices per catalog item, for trend display only."""

    __tablename__ = "marketplace_price_history"

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, nullable=False, index=True)
    wear = db.Column(db.Float, nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    listing_id = db.Column(db.Integer, nullable=True)

    # None for the point written when the listing was created
    sold_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "item_id": self.item_id,
            "wear": self.wear,
            "price": str(self.price),
            "listing_id": self.listing_id,
            "sold_at": self.sold_at.isoformat() if self.sold_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
