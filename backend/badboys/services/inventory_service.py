"""Inventory reads, drops, container unlocks and storage units."""

import logging
from typing import Any

from badboys.errors import DomainError, InvalidState, ValidationError
from badboys.extensions import get_catalog, get_inventory_cache
from badboys.models.item_history import ItemSource, TransferType
from badboys.models.user import User
from badboys.services import inventory_engine as engine
from badboys.services.catalog import display_rarity
from badboys.services.container_service import ContainerResolver
from badboys.services.inventory_store import (
    current_version,
    load_inventory,
    save_inventory,
)
from badboys.services.outbox import (
    Outbox,
    schedule_consume,
    schedule_identity,
    schedule_inventory_changed,
)
from badboys.services.rules import get_rule, inventory_limits
from badboys.services.transaction import atomic

logger = logging.getLogger(__name__)


def check_expected_version(expected_version: int | None, version: int) -> None:
    """Reject writes based on a snapshot the client no longer holds."""
    if expected_version is not None and expected_version != version:
        raise InvalidState(
            "stale_inventory", "Inventory changed since it was loaded, reload it"
        )


class InventoryService:
    """Operations on a single user's inventory."""

    def __init__(self, catalog=None, cache=None, rng=None):
        self.catalog = catalog if catalog is not None else get_catalog()
        self.cache = cache if cache is not None else get_inventory_cache()
        self.resolver = ContainerResolver(self.catalog, rng)

    def get_inventory(self, user_id: str) -> dict[str, Any]:
        """Current inventory, served from the cache when possible.

        The cache is looked up by the stored version, so an entry written
        from an older snapshot is never served.
        """
        try:
            cached = self.cache.get(user_id, current_version(user_id))
            if cached is not None:
                return {"success": True, **cached}
            inventory, version = load_inventory(user_id, for_update=False)
        except DomainError as e:
            return e.to_result()

        payload = {"inventory": inventory.to_dict(), "inventory_version": version}
        self.cache.set(user_id, payload)
        return {"success": True, **payload}

    def grant_item(
        self,
        user_id: str,
        item_id: int,
        source: ItemSource = ItemSource.DROP,
    ) -> dict[str, Any]:
        """Mint a new item into a user's inventory (game drops, rewards)."""
        source = ItemSource(source)
        outbox = Outbox()
        try:
            with atomic():
                item = self.catalog.get_by_id(item_id)
                inventory, version = load_inventory(user_id)
                record = self.resolver.roll_attributes(item)
                inventory, key = engine.add(inventory, record, inventory_limits(user_id))
                save_inventory(user_id, inventory, version)

                schedule_identity(outbox, key, inventory.items[key], user_id, source)
                schedule_inventory_changed(outbox, self.cache, user_id)
        except DomainError as e:
            return e.to_result()

        outbox.flush()
        logger.info(f"Item {item_id} granted to {user_id} as {key} ({source.value})")
        return {"success": True, "item_key": key, "item": inventory.items[key].to_dict()}

    def grant_random_drop(self, user_id: str) -> dict[str, Any]:
        """Grant a random weapon drop collected in game."""
        try:
            item = self.resolver.random_drop()
        except DomainError as e:
            return e.to_result()
        return self.grant_item(user_id, item.id, ItemSource.DROP)

    def unlock_case(
        self,
        user_id: str,
        case_key: str,
        key_key: str | None = None,
        expected_version: int | None = None,
    ) -> dict[str, Any]:
        """Open a container with its key and add the reward."""
        outbox = Outbox()
        try:
            with atomic():
                if not get_rule(user_id, "inventory_allow_unlock_container"):
                    raise ValidationError(
                        "unlock_disabled", "Opening containers is disabled"
                    )
                inventory, version = load_inventory(user_id)
                check_expected_version(expected_version, version)
                container_record = inventory.get(case_key)
                key_record = inventory.get(key_key) if key_key else None

                inventory, unlocked = engine.unlock_container(
                    inventory,
                    case_key,
                    key_key,
                    self.catalog,
                    self.resolver,
                    inventory_limits(user_id),
                )
                new_version = save_inventory(user_id, inventory, version)

                player_name = (
                    User.query.with_entities(User.name).filter_by(id=user_id).scalar()
                )
                self._schedule_unlock(
                    outbox, user_id, player_name, container_record, key_record, unlocked
                )
        except DomainError as e:
            return e.to_result()

        outbox.flush()
        logger.info(
            f"User {user_id} unlocked {unlocked.container_id} -> {unlocked.reward.id}"
        )
        return {
            "success": True,
            "item_key": unlocked.reward_key,
            "unlocked_item": unlocked.reward.to_dict(),
            "inventory_version": new_version,
        }

    def _schedule_unlock(
        self, outbox, user_id, player_name, container_record, key_record, unlocked
    ):
        from badboys.tasks.notification_tasks import (
            notify_case_opened_async,
            record_case_opening_async,
        )

        schedule_consume(outbox, container_record, user_id, TransferType.CONTAINER_UNLOCK)
        if key_record is not None:
            schedule_consume(outbox, key_record, user_id, TransferType.CONTAINER_UNLOCK)
        schedule_identity(
            outbox, unlocked.reward_key, unlocked.reward, user_id, ItemSource.CASE
        )
        schedule_inventory_changed(outbox, self.cache, user_id)

        reward_item = self.catalog.get_by_id(unlocked.reward.id)
        outbox.enqueue(
            notify_case_opened_async,
            player_name or user_id,
            reward_item.name,
            display_rarity(reward_item.tier),
            unlocked.reward.stat_trak is not None,
        )
        outbox.enqueue(
            record_case_opening_async,
            user_id,
            unlocked.container_id,
            unlocked.key_id,
            unlocked.reward.id,
        )

    def deposit_to_storage_unit(
        self, user_id: str, unit_key: str, item_keys: list[str]
    ) -> dict[str, Any]:
        """Move items into a storage unit."""
        return self._update_storage_unit(
            user_id,
            lambda inventory, limits: engine.deposit_to_storage_unit(
                inventory, unit_key, item_keys, self.catalog, limits
            ),
        )

    def retrieve_from_storage_unit(
        self, user_id: str, unit_key: str, item_keys: list[str]
    ) -> dict[str, Any]:
        """Move items out of a storage unit."""
        return self._update_storage_unit(
            user_id,
            lambda inventory, limits: engine.retrieve_from_storage_unit(
                inventory, unit_key, item_keys, limits
            ),
        )

    def _update_storage_unit(self, user_id, mutate) -> dict[str, Any]:
        outbox = Outbox()
        try:
            with atomic():
                inventory, version = load_inventory(user_id)
                inventory = mutate(inventory, inventory_limits(user_id))
                new_version = save_inventory(user_id, inventory, version)
                schedule_inventory_changed(outbox, self.cache, user_id)
        except DomainError as e:
            return e.to_result()

        outbox.flush()
        return {"success": True, "inventory_version": new_version}
