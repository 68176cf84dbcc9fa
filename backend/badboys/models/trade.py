"""Player-to-player trade offers."""

from datetime import datetime
from decimal import Decimal

from badboys import db


class TradeOffer(db.Model):
    """Items (by inventory key) and coins offered by both sides."""

    __tablename__ = "trade_offers"

    id = db.Column(db.Integer, primary_key=True)

    sender_id = db.Column(
        db.String(32),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    receiver_id = db.Column(
        db.String(32),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Inventory keys on each side
    sender_items = db.Column(db.JSON, nullable=False, default=list)
    receiver_items = db.Column(db.JSON, nullable=False, default=list)

    sender_coins = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0"))
    receiver_coins = db.Column(
        db.Numeric(12, 2), nullable=False, default=Decimal("0")
    )

    status = db.Column(
        db.String(20), default="pending", nullable=False, index=True
    )  # pending, accepted, declined, cancelled

    message = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    sender = db.relationship("User", foreign_keys=[sender_id])
    receiver = db.relationship("User", foreign_keys=[receiver_id])

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "sender_items": list(self.sender_items or []),
            "receiver_items": list(self.receiver_items or []),
            "sender_coins": str(self.sender_coins),
            "receiver_coins": str(self.receiver_coins),
            "status": self.status,
            "message": self.message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
        }
