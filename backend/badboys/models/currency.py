"""Coin transaction log."""

from datetime import datetime
from enum import Enum

from badboys import db


class CurrencyTransactionType(str, Enum):
    """Transaction types for the coin ledger."""

    SPENT = "spent"
    EARNED = "earned"
    MARKETPLACE_PURCHASE = "marketplace_purchase"
    MARKETPLACE_SALE = "marketplace_sale"
    TRADE_IN = "trade_in"
    TRADE_OUT = "trade_out"


class CurrencyTransaction(db.Model):
    """One balance change. Amount is signed: positive received, negative spent."""

    __tablename__ = "currency_transactions"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(
        db.String(32),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    type = db.Column(db.String(30), nullable=False)

    # Reference to what this transaction is for
    reference_type = db.Column(db.String(30), nullable=True)  # listing, shop, trade
    reference_id = db.Column(db.String(64), nullable=True)
    related_user_id = db.Column(db.String(32), nullable=True)

    description = db.Column(db.String(200), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "amount": str(self.amount),
            "type": self.type,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "related_user_id": self.related_user_id,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
