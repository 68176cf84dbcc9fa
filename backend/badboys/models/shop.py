"""Shop catalog model."""

from datetime import datetime

from badboys import db


class ShopItem(db.Model):
    """Something sold for coins. ``item_id`` is None for currency-only goods."""

    __tablename__ = "shop_items"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=False)

    # Catalog item granted per unit (container, key...)
    item_id = db.Column(db.Integer, nullable=True)

    category = db.Column(db.String(50), nullable=False, default="cases")
    enabled = db.Column(db.Boolean, nullable=False, default=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": str(self.price),
            "item_id": self.item_id,
            "category": self.category,
            "enabled": self.enabled,
        }
