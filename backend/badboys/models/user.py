"""User model."""

from datetime import datetime
from decimal import Decimal

from badboys import db


class User(db.Model):
    """Steam user with a coin balance and a serialized inventory."""

    __tablename__ = "users"

    # Steam ID 64
    id = db.Column(db.String(32), primary_key=True)
    name = db.Column(db.String(255), nullable=True)
    avatar = db.Column(db.String(512), nullable=True)

    # Coins - fixed point, never negative
    coins = db.Column(
        db.Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )

    # Inventory blob, see services/inventory_codec.py
    inventory = db.Column(db.Text, nullable=True)

    # Bumped on every inventory write; writes are conditioned on it
    inventory_version = db.Column(db.Integer, default=0, nullable=False)
    synced_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (db.CheckConstraint("coins >= 0", name="ck_users_coins"),)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "avatar": self.avatar,
            "coins": str(self.coins) if self.coins is not None else "0.00",
            "inventory_version": self.inventory_version,
            "synced_at": self.synced_at.isoformat() if self.synced_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<User {self.id}>"


class UserRule(db.Model):
    """Per-user override of an inventory rule (max items, unlock allowed...)."""

    __tablename__ = "user_rules"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.String(32),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(64), nullable=False)
    value = db.Column(db.String(255), nullable=False)

    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="uq_user_rules_user_name"),
    )
