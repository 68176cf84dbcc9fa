"""Trade-up contracts: ten items of one rarity for one of the next."""

import logging
import random
from typing import Any

from flask import current_app

from badboys.errors import (
    DomainError,
    ItemNotFound,
    MaxRarityReached,
    RarityMismatch,
    ValidationError,
)
from badboys.extensions import get_catalog, get_inventory_cache
from badboys.models.item_history import ItemSource, TransferType
from badboys.services import inventory_engine as engine
from badboys.services.catalog import next_rarity
from badboys.services.container_service import SEED_RANGE
from badboys.services.inventory_codec import ItemRecord
from badboys.services.inventory_store import load_inventory, save_inventory
from badboys.services.outbox import (
    Outbox,
    schedule_consume,
    schedule_identity,
    schedule_inventory_changed,
)
from badboys.services.rules import inventory_limits
from badboys.services.transaction import atomic

logger = logging.getLogger(__name__)


def resolve_refs(inventory, refs) -> list[str]:
    """Map client item refs to inventory keys.

    A ref is a key string, or a dict with ``uuid``/``key``. Dicts without a
    known key fall back to matching ``id``/``wear``/``nameTag``, for clients
    that still only know legacy items by their attributes.
    """
    keys = []
    for ref in refs:
        if isinstance(ref, str):
            key = ref if ref in inventory else None
        elif isinstance(ref, dict):
            key = ref.get("uuid") or ref.get("key")
            if key not in inventory:
                key = None
                if isinstance(ref.get("id"), int):
                    key = engine.find_by_properties(
                        inventory,
                        ref["id"],
                        wear=ref.get("wear"),
                        name_tag=ref.get("nameTag"),
                        exclude=keys,
                    )
        else:
            key = None

        if key is None:
            raise ItemNotFound(message=f"Trade-up item {ref!r} not found")
        if key in keys:
            raise ValidationError("duplicate_item", f"Item {key} used twice")
        keys.append(key)
    return keys


class TradeUpService:
    """Runs trade-up contracts against a user's inventory."""

    def __init__(self, catalog=None, cache=None, rng: random.Random | None = None):
        self.catalog = catalog if catalog is not None else get_catalog()
        self.cache = cache if cache is not None else get_inventory_cache()
        self.rng = rng or random.Random()

    def trade_up(self, user_id: str, refs: list) -> dict[str, Any]:
        """Consume the referenced items and add one of the next rarity."""
        input_count = current_app.config["TRADE_UP_INPUT_COUNT"]
        outbox = Outbox()
        try:
            if not isinstance(refs, list) or len(refs) != input_count:
                raise ValidationError(
                    "wrong_item_count", f"Exactly {input_count} items are required"
                )

            with atomic():
                inventory, version = load_inventory(user_id)
                keys = resolve_refs(inventory, refs)
                inputs = [inventory.items[key] for key in keys]
                reward = self._pick_reward(inputs)

                inventory, added = engine.apply(
                    inventory,
                    [engine.Remove(key) for key in keys] + [engine.Add(reward)],
                    inventory_limits(user_id),
                )
                reward_key = added[0]
                save_inventory(user_id, inventory, version)

                consumed = [record.uuid for record in inputs if not record.is_legacy]
                for record in inputs:
                    schedule_consume(
                        outbox,
                        record,
                        user_id,
                        TransferType.TRADEUP_CONSUME,
                        metadata={"reward": reward_key},
                    )
                schedule_identity(
                    outbox,
                    reward_key,
                    inventory.items[reward_key],
                    user_id,
                    ItemSource.TRADEUP,
                    metadata={"consumed": consumed},
                    transfer_type=TransferType.TRADEUP_REWARD,
                )
                schedule_inventory_changed(outbox, self.cache, user_id)
        except DomainError as e:
            return e.to_result()

        outbox.flush()
        logger.info(f"User {user_id} traded up {len(keys)} items into {reward.id}")
        return {
            "success": True,
            "item_key": reward_key,
            "item": inventory.items[reward_key].to_dict(),
            "consumed": keys,
        }

    def _pick_reward(self, inputs: list[ItemRecord]) -> ItemRecord:
        items = [self.catalog.get_by_id(record.id) for record in inputs]

        tiers = {item.tier for item in items}
        if len(tiers) != 1:
            raise RarityMismatch(message="All items must share one rarity")
        target = next_rarity(tiers.pop())
        if target is None:
            raise MaxRarityReached(message="Items are already of the highest rarity")

        types = {item.type for item in items}
        if len(types) != 1:
            raise ValidationError("type_mismatch", "All items must be of one type")
        item_type = types.pop()

        stat_trak = {record.stat_trak is not None for record in inputs}
        if len(stat_trak) != 1:
            raise ValidationError(
                "stattrak_mismatch", "Cannot mix StatTrak and regular items"
            )

        candidates = self.catalog.find(rarity=target, item_type=item_type)
        if not candidates:
            raise ValidationError(
                "no_reward_available", f"No {target} item to trade up into"
            )
        chosen = self.rng.choice(candidates)

        record = ItemRecord(id=chosen.id)
        if chosen.has_wear():
            wears = [r.wear for r in inputs if r.wear is not None]
            record.wear = round(sum(wears) / len(wears), 6) if wears else None
            record.seed = self.rng.randint(*SEED_RANGE)
        if stat_trak.pop():
            record.stat_trak = 0
        return record
