"""Tests for pure inventory mutations."""

import pytest

from badboys.errors import CapacityExceeded, ItemNotFound, ValidationError
from badboys.services import inventory_engine as engine
from badboys.services.container_service import ContainerResolver
from badboys.services.inventory_codec import Inventory, ItemRecord, is_uuid_key
from conftest import (
    ALPHA_CASE,
    ALPHA_KEY,
    BETA_KEY,
    CONSUMER_PISTOL,
    CONSUMER_RIFLE,
    STICKER,
    STICKER_CAPSULE,
    STORAGE_UNIT,
    legacy_item,
    uuid_item,
)

LIMITS = engine.InventoryLimits(max_items=5, storage_unit_max_items=2)

CASE_KEY = "aaaaaaaa-0000-4000-8000-000000000001"
KEY_KEY = "aaaaaaaa-0000-4000-8000-000000000002"
UNIT_KEY = "aaaaaaaa-0000-4000-8000-000000000003"


def inventory_of(*entries) -> Inventory:
    return Inventory(items=dict(entries))


class TestAddRemoveUpdate:
    """Basic operations."""

    def test_add_assigns_fresh_uuid(self):
        inventory = inventory_of()
        result, key = engine.add(inventory, ItemRecord(id=CONSUMER_RIFLE), LIMITS)

        assert is_uuid_key(key)
        assert result.items[key].uuid == key
        assert len(inventory) == 0  # input untouched

    def test_add_at_capacity(self):
        inventory = inventory_of(*(legacy_item(CONSUMER_RIFLE, uid) for uid in range(5)))
        with pytest.raises(CapacityExceeded) as exc:
            engine.add(inventory, ItemRecord(id=CONSUMER_RIFLE), LIMITS)
        assert exc.value.code == "inventory_full"

    def test_add_without_limits_ignores_capacity(self):
        inventory = inventory_of(*(legacy_item(CONSUMER_RIFLE, uid) for uid in range(5)))
        result, _ = engine.add(inventory, ItemRecord(id=CONSUMER_RIFLE), None)
        assert len(result) == 6

    def test_add_leaves_other_items_intact(self):
        stickers = {"0": {"id": STICKER, "wear": 0.2}}
        inventory = inventory_of(
            uuid_item(
                CONSUMER_RIFLE,
                CASE_KEY,
                stickers=stickers,
                extra={"keychains": {"0": {"id": 9}}},
            )
        )

        result, _ = engine.add(inventory, ItemRecord(id=CONSUMER_PISTOL), LIMITS)

        stored = result.items[CASE_KEY].to_dict()
        assert stored["stickers"] == {"0": {"id": STICKER, "wear": 0.2}}
        assert stored["keychains"] == {"0": {"id": 9}}

    def test_remove_missing_item(self):
        with pytest.raises(ItemNotFound):
            engine.remove(inventory_of(), "nope")

    def test_remove_returns_record(self):
        inventory = inventory_of(legacy_item(CONSUMER_RIFLE, 3, wear=0.2))
        result, record = engine.remove(inventory, "3")
        assert "3" not in result
        assert record.wear == 0.2
        assert "3" in inventory

    def test_update_attributes(self):
        inventory = inventory_of(legacy_item(CONSUMER_RIFLE, 3))
        result = engine.update(inventory, "3", {"name_tag": "Lucky"})
        assert result.items["3"].name_tag == "Lucky"
        assert inventory.items["3"].name_tag is None

    def test_update_rejects_identity_fields(self):
        inventory = inventory_of(legacy_item(CONSUMER_RIFLE, 3))
        with pytest.raises(ValidationError):
            engine.update(inventory, "3", {"id": CONSUMER_PISTOL})

    def test_apply_is_all_or_nothing(self):
        inventory = inventory_of(legacy_item(CONSUMER_RIFLE, 1))
        with pytest.raises(ItemNotFound):
            engine.apply(
                inventory,
                [engine.Remove("1"), engine.Add(ItemRecord(id=CONSUMER_PISTOL)), engine.Remove("9")],
                LIMITS,
            )
        assert list(inventory.items) == ["1"]

    def test_receive_keeps_uuid(self):
        key, record = uuid_item(CONSUMER_RIFLE, CASE_KEY)
        op = engine.receive(record)
        assert op.key == CASE_KEY

    def test_receive_rekeys_legacy_items(self):
        _, record = legacy_item(CONSUMER_RIFLE, 7)
        result, (key,) = engine.apply(inventory_of(), [engine.receive(record)], LIMITS)
        assert is_uuid_key(key)
        assert result.items[key].uid is None
        assert result.items[key].uuid == key


class TestFindByProperties:
    """Fallback matching for refs without a key."""

    def test_matches_id_wear_and_name_tag(self):
        inventory = inventory_of(
            legacy_item(CONSUMER_RIFLE, 1, wear=0.3),
            legacy_item(CONSUMER_RIFLE, 2, wear=0.5, name_tag="Tagged"),
        )
        assert engine.find_by_properties(inventory, CONSUMER_RIFLE, 0.5, "Tagged") == "2"
        assert engine.find_by_properties(inventory, CONSUMER_RIFLE, 0.30001) == "1"
        assert engine.find_by_properties(inventory, CONSUMER_RIFLE, 0.4) is None

    def test_exclude_skips_already_matched(self):
        inventory = inventory_of(
            legacy_item(CONSUMER_RIFLE, 1, wear=0.3),
            legacy_item(CONSUMER_RIFLE, 2, wear=0.3),
        )
        assert engine.find_by_properties(inventory, CONSUMER_RIFLE, 0.3, exclude=["1"]) == "2"


class TestUnlockContainer:
    """Container unlocks."""

    def test_unlock_consumes_case_and_key(self, catalog, rng):
        inventory = inventory_of(uuid_item(ALPHA_CASE, CASE_KEY), uuid_item(ALPHA_KEY, KEY_KEY))
        result, unlocked = engine.unlock_container(
            inventory, CASE_KEY, KEY_KEY, catalog, ContainerResolver(catalog, rng), LIMITS
        )

        assert CASE_KEY not in result
        assert KEY_KEY not in result
        assert list(result.items) == [unlocked.reward_key]
        assert unlocked.container_id == ALPHA_CASE
        assert unlocked.key_id == ALPHA_KEY
        assert unlocked.reward.id in catalog.get_by_id(ALPHA_CASE).contents

    def test_key_required(self, catalog, rng):
        inventory = inventory_of(uuid_item(ALPHA_CASE, CASE_KEY))
        with pytest.raises(ValidationError) as exc:
            engine.unlock_container(
                inventory, CASE_KEY, None, catalog, ContainerResolver(catalog, rng), LIMITS
            )
        assert exc.value.code == "key_required"

    def test_wrong_key(self, catalog, rng):
        inventory = inventory_of(uuid_item(ALPHA_CASE, CASE_KEY), uuid_item(BETA_KEY, KEY_KEY))
        with pytest.raises(ValidationError) as exc:
            engine.unlock_container(
                inventory, CASE_KEY, KEY_KEY, catalog, ContainerResolver(catalog, rng), LIMITS
            )
        assert exc.value.code == "key_mismatch"

    def test_not_a_container(self, catalog, rng):
        inventory = inventory_of(uuid_item(CONSUMER_RIFLE, CASE_KEY))
        with pytest.raises(ValidationError) as exc:
            engine.unlock_container(
                inventory, CASE_KEY, None, catalog, ContainerResolver(catalog, rng), LIMITS
            )
        assert exc.value.code == "not_a_container"

    def test_keyless_container(self, catalog, rng):
        inventory = inventory_of(uuid_item(STICKER_CAPSULE, CASE_KEY))
        result, unlocked = engine.unlock_container(
            inventory, CASE_KEY, None, catalog, ContainerResolver(catalog, rng), LIMITS
        )
        assert unlocked.reward.id == STICKER
        assert unlocked.key_id is None
        assert len(result) == 1


class TestStorageUnits:
    """Depositing into and retrieving from storage units."""

    def test_deposit_and_retrieve(self, catalog):
        inventory = inventory_of(
            uuid_item(STORAGE_UNIT, UNIT_KEY), legacy_item(CONSUMER_RIFLE, 1)
        )
        stored = engine.deposit_to_storage_unit(inventory, UNIT_KEY, ["1"], catalog, LIMITS)
        assert "1" not in stored
        assert "1" in stored.items[UNIT_KEY].storage

        restored = engine.retrieve_from_storage_unit(stored, UNIT_KEY, ["1"], LIMITS)
        assert "1" in restored
        assert restored.items[UNIT_KEY].storage == {}

    def test_storage_unit_capacity(self, catalog):
        inventory = inventory_of(
            uuid_item(STORAGE_UNIT, UNIT_KEY),
            *(legacy_item(CONSUMER_RIFLE, uid) for uid in range(3)),
        )
        with pytest.raises(CapacityExceeded) as exc:
            engine.deposit_to_storage_unit(inventory, UNIT_KEY, ["0", "1", "2"], catalog, LIMITS)
        assert exc.value.code == "storage_unit_full"

    def test_deposit_into_non_unit(self, catalog):
        inventory = inventory_of(legacy_item(CONSUMER_RIFLE, 1), legacy_item(CONSUMER_RIFLE, 2))
        with pytest.raises(ValidationError):
            engine.deposit_to_storage_unit(inventory, "1", ["2"], catalog, LIMITS)
