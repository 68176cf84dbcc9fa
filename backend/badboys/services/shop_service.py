"""Coin shop."""

import logging
from typing import Any

from flask import current_app

from badboys import db
from badboys.errors import DomainError, NotFound, ValidationError
from badboys.extensions import get_catalog, get_inventory_cache
from badboys.models.currency import CurrencyTransactionType
from badboys.models.item_history import ItemSource
from badboys.models.shop import ShopItem
from badboys.services import inventory_engine as engine
from badboys.services.balance_ledger import BalanceLedger
from badboys.services.inventory_codec import ItemRecord
from badboys.services.inventory_store import load_inventory, save_inventory
from badboys.services.outbox import Outbox, schedule_identity, schedule_inventory_changed
from badboys.services.rules import inventory_limits
from badboys.services.transaction import atomic

logger = logging.getLogger(__name__)


class ShopService:
    """Sells containers, keys and other catalog items for coins."""

    def __init__(self, catalog=None, cache=None, ledger: BalanceLedger | None = None):
        self.catalog = catalog if catalog is not None else get_catalog()
        self.cache = cache if cache is not None else get_inventory_cache()
        self.ledger = ledger or BalanceLedger()

    def get_shop_items(self, category: str | None = None) -> list[dict]:
        query = ShopItem.query.filter_by(enabled=True)
        if category:
            query = query.filter_by(category=category)
        items = query.order_by(ShopItem.sort_order, ShopItem.id).all()
        return [item.to_dict() for item in items]

    def purchase(
        self, user_id: str, shop_item_id: int, quantity: int = 1
    ) -> dict[str, Any]:
        """Buy ``quantity`` units: one debit, then one inventory item per unit."""
        outbox = Outbox()
        try:
            with atomic():
                shop_item = db.session.get(ShopItem, shop_item_id)
                if shop_item is None or not shop_item.enabled:
                    raise NotFound("shop_item_not_found", "Shop item not found")

                max_quantity = current_app.config["SHOP_MAX_QUANTITY"]
                if not isinstance(quantity, int) or not 1 <= quantity <= max_quantity:
                    raise ValidationError(
                        "invalid_quantity", f"Quantity must be 1 to {max_quantity}"
                    )

                total = shop_item.price * quantity
                balance = self.ledger.decrement(
                    user_id,
                    total,
                    CurrencyTransactionType.SPENT,
                    description=f"Shop: {quantity}x {shop_item.name}",
                    reference_type="shop",
                    reference_id=shop_item.id,
                )

                added = []
                if shop_item.item_id is not None:
                    # Validates the catalog id before anything is granted
                    self.catalog.get_by_id(shop_item.item_id)
                    inventory, version = load_inventory(user_id)
                    inventory, added = engine.apply(
                        inventory,
                        [engine.Add(ItemRecord(id=shop_item.item_id))] * quantity,
                        inventory_limits(user_id),
                    )
                    save_inventory(user_id, inventory, version)

                    for key in added:
                        schedule_identity(
                            outbox, key, inventory.items[key], user_id, ItemSource.SHOP
                        )
                    schedule_inventory_changed(outbox, self.cache, user_id)
        except DomainError as e:
            return e.to_result()

        outbox.flush()
        logger.info(
            f"User {user_id} bought {quantity}x shop item {shop_item_id} for {total}"
        )
        return {
            "success": True,
            "item_keys": added,
            "spent": str(total),
            "balance": str(balance),
        }
