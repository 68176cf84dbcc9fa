"""Tests for inventory reads, grants, container unlocks and storage units."""

import random
from unittest.mock import MagicMock

import redis

from badboys import db
from badboys.models import CaseOpening, ItemHistory, User, UserRule
from badboys.services.identity_ledger import IdentityLedger
from badboys.services.inventory_cache import (
    InventoryCache,
    NullInventoryCache,
    create_inventory_cache,
)
from badboys.services.inventory_codec import parse
from badboys.services.inventory_service import InventoryService
from conftest import (
    ALPHA_CASE,
    ALPHA_KEY,
    CONSUMER_RIFLE,
    SELLER_ID,
    STORAGE_UNIT,
    legacy_item,
    uuid_item,
)

CASE_KEY = "44444444-0000-4000-8000-000000000001"
KEY_KEY = "44444444-0000-4000-8000-000000000002"
UNIT_KEY = "44444444-0000-4000-8000-000000000003"


class WriterRacingCache:
    """Dict cache whose refill runs after a concurrent write has committed."""

    def __init__(self, write):
        self.entries = {}
        self.write = write

    def get(self, user_id, version):
        return self.entries.get((user_id, version))

    def set(self, user_id, payload):
        write, self.write = self.write, None
        if write is not None:
            write()
        self.entries[(user_id, payload["inventory_version"])] = payload

    def invalidate(self, user_id):
        self.entries = {k: v for k, v in self.entries.items() if k[0] != user_id}


def inventory_of(user_id):
    return parse(db.session.get(User, user_id).inventory)


def service(cache=None):
    return InventoryService(cache=cache, rng=random.Random(42))


def setup_case(make_user):
    make_user(
        SELLER_ID,
        name="Tester",
        items=[uuid_item(ALPHA_CASE, CASE_KEY), uuid_item(ALPHA_KEY, KEY_KEY)],
    )
    ledger = IdentityLedger()
    ledger.create_identity(ALPHA_CASE, {}, SELLER_ID, "shop", CASE_KEY)
    ledger.create_identity(ALPHA_KEY, {}, SELLER_ID, "shop", KEY_KEY)
    db.session.commit()


class TestGetInventory:
    """Reading inventories through the cache."""

    def test_reads_and_populates_cache(self, app, make_user):
        make_user(SELLER_ID, items=[legacy_item(CONSUMER_RIFLE, 1)])
        cache = MagicMock()
        cache.get.return_value = None

        result = service(cache).get_inventory(SELLER_ID)

        assert result["success"] is True
        assert result["inventory_version"] == 0
        assert result["inventory"]["items"]["1"]["id"] == CONSUMER_RIFLE
        cache.set.assert_called_once()

    def test_served_from_cache(self, app, make_user):
        make_user(SELLER_ID)
        cache = MagicMock()
        cache.get.return_value = {
            "inventory": {"version": 1, "items": {"9": {"id": CONSUMER_RIFLE}}},
            "inventory_version": 0,
        }

        result = service(cache).get_inventory(SELLER_ID)

        cache.get.assert_called_once_with(SELLER_ID, 0)
        assert result["inventory"]["items"]["9"]["id"] == CONSUMER_RIFLE
        cache.set.assert_not_called()

    def test_late_refill_is_not_served(self, app, make_user):
        make_user(SELLER_ID)
        svc = service(WriterRacingCache(lambda: svc.grant_item(SELLER_ID, CONSUMER_RIFLE)))

        first = svc.get_inventory(SELLER_ID)
        second = svc.get_inventory(SELLER_ID)

        assert first["inventory_version"] == 0
        assert second["inventory_version"] == 1
        assert len(second["inventory"]["items"]) == 1

    def test_unknown_user(self, app):
        assert service().get_inventory("missing")["error"] == "user_not_found"

    def test_writes_invalidate_cache(self, app, make_user):
        make_user(SELLER_ID)
        cache = MagicMock()

        service(cache).grant_item(SELLER_ID, CONSUMER_RIFLE)

        cache.invalidate.assert_called_once_with(SELLER_ID)


class TestInventoryCache:
    """Redis cache gateway."""

    def test_round_trip(self):
        client = MagicMock()
        cache = InventoryCache(client, ttl=60)

        cache.set(SELLER_ID, {"inventory_version": 3})
        key, value = client.set.call_args.args
        assert key == f"inventory:{SELLER_ID}:3"
        assert client.set.call_args.kwargs == {"ex": 60}

        client.get.return_value = value
        assert cache.get(SELLER_ID, 3) == {"inventory_version": 3}
        client.get.assert_called_with(f"inventory:{SELLER_ID}:3")

    def test_invalidate_drops_every_version(self):
        client = MagicMock()
        client.scan_iter.return_value = iter(
            [f"inventory:{SELLER_ID}:3", f"inventory:{SELLER_ID}:4"]
        )

        InventoryCache(client).invalidate(SELLER_ID)

        client.scan_iter.assert_called_once_with(match=f"inventory:{SELLER_ID}:*")
        client.delete.assert_called_once_with(
            f"inventory:{SELLER_ID}:3", f"inventory:{SELLER_ID}:4"
        )

    def test_redis_errors_are_misses(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("down")
        client.set.side_effect = redis.ConnectionError("down")
        client.scan_iter.side_effect = redis.ConnectionError("down")
        cache = InventoryCache(client)

        assert cache.get(SELLER_ID, 0) is None
        cache.set(SELLER_ID, {"inventory_version": 0})
        cache.invalidate(SELLER_ID)

    def test_no_url_means_null_cache(self):
        assert isinstance(create_inventory_cache(""), NullInventoryCache)
        assert isinstance(create_inventory_cache(None), NullInventoryCache)


class TestGrantItem:
    """Minting items."""

    def test_grant_item(self, app, make_user):
        make_user(SELLER_ID)

        result = service().grant_item(SELLER_ID, CONSUMER_RIFLE, source="case")

        assert result["success"] is True
        record = inventory_of(SELLER_ID).get(result["item_key"])
        assert record.id == CONSUMER_RIFLE
        assert 0 <= record.wear < 1
        identity = db.session.get(ItemHistory, result["item_key"])
        assert identity.source == "case"
        assert identity.current_owner == SELLER_ID

    def test_unknown_catalog_item(self, app, make_user):
        make_user(SELLER_ID)
        assert service().grant_item(SELLER_ID, 424242)["error"] == "catalog_item_not_found"

    def test_inventory_full(self, app, make_user):
        make_user(SELLER_ID, items=[legacy_item(CONSUMER_RIFLE, 1)])
        db.session.add(UserRule(user_id=SELLER_ID, name="inventory_max_items", value="1"))
        db.session.commit()

        result = service().grant_item(SELLER_ID, CONSUMER_RIFLE)

        assert result["error"] == "inventory_full"
        assert len(inventory_of(SELLER_ID)) == 1

    def test_random_drop(self, app, make_user):
        make_user(SELLER_ID)

        result = service().grant_random_drop(SELLER_ID)

        assert result["success"] is True
        assert result["item"]["id"] in (101, 102, 201, 202, 301, 401, 501)


class TestUnlockCase:
    """Opening containers."""

    def test_unlock_case(self, app, make_user):
        setup_case(make_user)

        result = service().unlock_case(SELLER_ID, CASE_KEY, KEY_KEY, expected_version=0)

        assert result["success"] is True
        assert result["inventory_version"] == 1
        inventory = inventory_of(SELLER_ID)
        assert list(inventory.items) == [result["item_key"]]

        for key in (CASE_KEY, KEY_KEY):
            consumed = db.session.get(ItemHistory, key)
            assert consumed.is_consumed
            assert consumed.transfers.all()[-1].transfer_type == "container_unlock"

        reward = db.session.get(ItemHistory, result["item_key"])
        assert reward.source == "case"
        assert reward.item_id == result["unlocked_item"]["id"]

        opening = CaseOpening.query.one()
        assert opening.user_name == "Tester"
        assert opening.case_name == "Alpha Case"
        assert opening.key_item_id == ALPHA_KEY
        assert opening.unlocked_item_id == result["unlocked_item"]["id"]

    def test_stale_version(self, app, make_user):
        setup_case(make_user)

        result = service().unlock_case(SELLER_ID, CASE_KEY, KEY_KEY, expected_version=3)

        assert result["error"] == "stale_inventory"
        assert len(inventory_of(SELLER_ID)) == 2

    def test_disabled_by_user_rule(self, app, make_user):
        setup_case(make_user)
        db.session.add(
            UserRule(user_id=SELLER_ID, name="inventory_allow_unlock_container", value="false")
        )
        db.session.commit()

        result = service().unlock_case(SELLER_ID, CASE_KEY, KEY_KEY)

        assert result["error"] == "unlock_disabled"
        assert CaseOpening.query.count() == 0

    def test_missing_key(self, app, make_user):
        setup_case(make_user)
        result = service().unlock_case(SELLER_ID, CASE_KEY)
        assert result["error"] == "key_required"


class TestStorageUnits:
    """Storage unit deposits and retrievals."""

    def test_deposit_and_retrieve(self, app, make_user):
        make_user(
            SELLER_ID,
            items=[uuid_item(STORAGE_UNIT, UNIT_KEY), legacy_item(CONSUMER_RIFLE, 1)],
        )
        svc = service()

        deposit = svc.deposit_to_storage_unit(SELLER_ID, UNIT_KEY, ["1"])
        assert deposit == {"success": True, "inventory_version": 1}
        assert "1" in inventory_of(SELLER_ID).get(UNIT_KEY).storage

        retrieve = svc.retrieve_from_storage_unit(SELLER_ID, UNIT_KEY, ["1"])
        assert retrieve["inventory_version"] == 2
        assert "1" in inventory_of(SELLER_ID)

    def test_unit_capacity_from_config(self, app, make_user):
        make_user(
            SELLER_ID,
            items=[uuid_item(STORAGE_UNIT, UNIT_KEY), legacy_item(CONSUMER_RIFLE, 1)],
        )
        app.config["STORAGE_UNIT_MAX_ITEMS"] = 0

        result = service().deposit_to_storage_unit(SELLER_ID, UNIT_KEY, ["1"])

        assert result["error"] == "storage_unit_full"
        assert "1" in inventory_of(SELLER_ID)
