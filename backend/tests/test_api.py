"""Tests for the HTTP API."""

from decimal import Decimal
from unittest.mock import patch

from badboys import db
from badboys.errors import InventoryConflict
from badboys.models import ShopItem, User
from badboys.services.inventory_codec import parse
from conftest import (
    ALPHA_CASE,
    ALPHA_KEY,
    BUYER_ID,
    CONSUMER_RIFLE,
    SELLER_ID,
    legacy_item,
    uuid_item,
)

ITEM_KEY = "55555555-0000-4000-8000-000000000001"
KEY_KEY = "55555555-0000-4000-8000-000000000002"


class TestAuth:
    """Authentication on user and plugin endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json() == {"status": "ok"}

    def test_request_id_echoed(self, client):
        forwarded = client.get("/health", headers={"X-Request-ID": "plugin-42"})
        assert forwarded.headers["X-Request-ID"] == "plugin-42"

        generated = client.get("/health")
        assert len(generated.headers["X-Request-ID"]) == 12

    def test_token_required(self, client):
        assert client.get("/api/v1/inventory").status_code == 401
        assert client.post("/api/v1/marketplace", json={}).status_code == 401

    def test_plugin_key_rejected(self, client, make_user):
        make_user(BUYER_ID)
        response = client.post(
            "/api/v1/plugin/case-drop",
            json={"steam_id": BUYER_ID, "item_id": ALPHA_CASE},
            headers={"X-API-Key": "wrong"},
        )
        assert response.status_code == 401
        assert response.get_json()["error"]["code"] == "UNAUTHORIZED"

    def test_plugin_case_drop(self, client, make_user):
        make_user(BUYER_ID)
        response = client.post(
            "/api/v1/plugin/case-drop",
            json={"steam_id": BUYER_ID, "item_id": ALPHA_CASE},
            headers={"X-API-Key": "test-drop-key"},
        )

        assert response.status_code == 200
        item_key = response.get_json()["data"]["item_key"]
        assert parse(db.session.get(User, BUYER_ID).inventory).get(item_key).id == ALPHA_CASE

    def test_plugin_key_in_body(self, client, make_user):
        make_user(BUYER_ID)
        response = client.post(
            "/api/v1/plugin/drop-collected",
            json={"collectorSteamId": BUYER_ID, "apiKey": "test-drop-key"},
        )
        assert response.status_code == 200
        assert response.get_json()["data"]["item"]["id"] < 1000

    def test_plugin_validation(self, client):
        response = client.post(
            "/api/v1/plugin/case-drop",
            json={"steam_id": BUYER_ID, "item_id": "1001"},
            headers={"X-API-Key": "test-drop-key"},
        )
        assert response.status_code == 400


class TestInventoryApi:
    """Inventory endpoints."""

    def test_get_inventory(self, client, make_user, auth_headers):
        make_user(SELLER_ID, items=[legacy_item(CONSUMER_RIFLE, 1, wear=0.4)])

        response = client.get("/api/v1/inventory", headers=auth_headers(SELLER_ID))

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["inventory_version"] == 0
        assert data["inventory"]["items"]["1"] == {"id": CONSUMER_RIFLE, "wear": 0.4, "uid": 1}

    def test_unknown_user_inventory(self, client, auth_headers):
        response = client.get("/api/v1/inventory", headers=auth_headers("76561198999999999"))
        assert response.status_code == 404

    def test_unlock_case(self, client, make_user, auth_headers):
        make_user(
            SELLER_ID, items=[uuid_item(ALPHA_CASE, ITEM_KEY), uuid_item(ALPHA_KEY, KEY_KEY)]
        )

        response = client.post(
            "/api/v1/inventory/unlock-case",
            json={"case_key": ITEM_KEY, "key_key": KEY_KEY, "inventory_version": 0},
            headers=auth_headers(SELLER_ID),
        )

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["inventory_version"] == 1
        assert data["unlocked_item"]["id"] in (101, 201, 301, 601)

    def test_unlock_case_stale_version(self, client, make_user, auth_headers):
        make_user(
            SELLER_ID, items=[uuid_item(ALPHA_CASE, ITEM_KEY), uuid_item(ALPHA_KEY, KEY_KEY)]
        )

        response = client.post(
            "/api/v1/inventory/unlock-case",
            json={"case_key": ITEM_KEY, "key_key": KEY_KEY, "inventory_version": 5},
            headers=auth_headers(SELLER_ID),
        )

        assert response.status_code == 409
        assert response.get_json()["error"]["code"] == "stale_inventory"

    def test_trade_up_requires_list(self, client, make_user, auth_headers):
        make_user(SELLER_ID)
        response = client.post(
            "/api/v1/trade-up", json={"items": "nope"}, headers=auth_headers(SELLER_ID)
        )
        assert response.status_code == 400


class TestMarketplaceApi:
    """Listing and buying over HTTP."""

    def test_sell_and_buy(self, client, make_user, auth_headers):
        make_user(SELLER_ID, items=[uuid_item(CONSUMER_RIFLE, ITEM_KEY, wear=0.2)])
        make_user(BUYER_ID, coins="15.00")

        created = client.post(
            "/api/v1/marketplace",
            json={"item_key": ITEM_KEY, "price": "10.00"},
            headers=auth_headers(SELLER_ID),
        )
        assert created.status_code == 201
        listing_id = created.get_json()["data"]["listing"]["id"]

        browse = client.get("/api/v1/marketplace", headers=auth_headers(BUYER_ID))
        assert browse.get_json()["data"]["total"] == 1

        bought = client.post(
            f"/api/v1/marketplace/{listing_id}/purchase", headers=auth_headers(BUYER_ID)
        )
        assert bought.status_code == 200
        assert bought.get_json()["data"]["balance"] == "5.00"

        again = client.post(
            f"/api/v1/marketplace/{listing_id}/purchase", headers=auth_headers(BUYER_ID)
        )
        assert again.status_code == 409
        assert again.get_json()["error"]["code"] == "listing_not_active"

        coins = client.get("/api/v1/coins", headers=auth_headers(SELLER_ID))
        assert coins.get_json()["data"]["coins"] == "10.00"

        history = client.get(f"/api/v1/items/{ITEM_KEY}/history", headers=auth_headers(BUYER_ID))
        assert history.status_code == 404  # never had an identity record

    def test_storage_conflict_is_retryable(self, client, make_user, auth_headers):
        make_user(SELLER_ID, items=[uuid_item(CONSUMER_RIFLE, ITEM_KEY)])
        make_user(BUYER_ID, coins="5.00")
        listing_id = client.post(
            "/api/v1/marketplace",
            json={"item_key": ITEM_KEY, "price": "1.00"},
            headers=auth_headers(SELLER_ID),
        ).get_json()["data"]["listing"]["id"]

        with patch(
            "badboys.services.marketplace_service.save_inventory",
            side_effect=InventoryConflict(),
        ):
            response = client.post(
                f"/api/v1/marketplace/{listing_id}/purchase",
                headers=auth_headers(BUYER_ID),
            )

        assert response.status_code == 503
        assert response.get_json()["error"]["code"] == "inventory_conflict"

        retried = client.post(
            f"/api/v1/marketplace/{listing_id}/purchase", headers=auth_headers(BUYER_ID)
        )
        assert retried.status_code == 200
        assert retried.get_json()["data"]["balance"] == "4.00"

    def test_missing_fields(self, client, make_user, auth_headers):
        make_user(SELLER_ID)
        response = client.post(
            "/api/v1/marketplace", json={"price": "1.00"}, headers=auth_headers(SELLER_ID)
        )
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "VALIDATION_ERROR"

    def test_cancel_not_seller(self, client, make_user, auth_headers):
        make_user(SELLER_ID, items=[uuid_item(CONSUMER_RIFLE, ITEM_KEY)])
        make_user(BUYER_ID)
        listing_id = client.post(
            "/api/v1/marketplace",
            json={"item_key": ITEM_KEY, "price": "1.00"},
            headers=auth_headers(SELLER_ID),
        ).get_json()["data"]["listing"]["id"]

        response = client.delete(
            f"/api/v1/marketplace/{listing_id}", headers=auth_headers(BUYER_ID)
        )
        assert response.status_code == 403

    def test_unknown_listing(self, client, make_user, auth_headers):
        make_user(BUYER_ID)
        response = client.get("/api/v1/marketplace/42", headers=auth_headers(BUYER_ID))
        assert response.status_code == 404


class TestShopAndTradesApi:
    """Shop, coins and trade endpoints."""

    def test_shop_purchase(self, client, make_user, auth_headers):
        make_user(BUYER_ID, coins="5.00")
        shop_item = ShopItem(name="Alpha Case", price=Decimal("2.50"), item_id=ALPHA_CASE)
        db.session.add(shop_item)
        db.session.commit()

        listing = client.get("/api/v1/shop", headers=auth_headers(BUYER_ID))
        assert listing.get_json()["data"]["items"][0]["price"] == "2.50"

        response = client.post(
            f"/api/v1/shop/{shop_item.id}/purchase",
            json={"quantity": 2},
            headers=auth_headers(BUYER_ID),
        )
        assert response.status_code == 200
        assert response.get_json()["data"]["balance"] == "0.00"

        history = client.get("/api/v1/coins/history", headers=auth_headers(BUYER_ID))
        assert history.get_json()["data"]["transactions"][0]["amount"] == "-5.00"

        broke = client.post(
            f"/api/v1/shop/{shop_item.id}/purchase", headers=auth_headers(BUYER_ID)
        )
        assert broke.status_code == 400
        assert broke.get_json()["error"]["code"] == "insufficient_funds"

    def test_trade_flow(self, client, make_user, auth_headers):
        make_user(SELLER_ID, items=[uuid_item(CONSUMER_RIFLE, ITEM_KEY)])
        make_user(BUYER_ID, coins="3.00")

        created = client.post(
            "/api/v1/trades",
            json={"receiver_id": BUYER_ID, "sender_items": [ITEM_KEY], "receiver_coins": "3.00"},
            headers=auth_headers(SELLER_ID),
        )
        assert created.status_code == 201
        trade_id = created.get_json()["data"]["trade"]["id"]

        pending = client.get("/api/v1/trades", headers=auth_headers(BUYER_ID))
        assert [t["id"] for t in pending.get_json()["data"]["incoming"]] == [trade_id]

        accepted = client.post(
            f"/api/v1/trades/{trade_id}/accept", headers=auth_headers(BUYER_ID)
        )
        assert accepted.status_code == 200
        assert accepted.get_json()["data"]["received_keys"] == [ITEM_KEY]

        declined = client.post(
            f"/api/v1/trades/{trade_id}/decline", headers=auth_headers(BUYER_ID)
        )
        assert declined.status_code == 409
