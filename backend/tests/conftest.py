"""Pytest configuration and fixtures."""

import random
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from badboys import create_app, db
from badboys.models import User
from badboys.services.catalog import CatalogItem, ItemCatalog
from badboys.services.inventory_cache import NullInventoryCache
from badboys.services.inventory_codec import Inventory, ItemRecord, serialize

SELLER_ID = "76561198000000001"
BUYER_ID = "76561198000000002"

# Catalog ids used across the tests
CONSUMER_RIFLE = 101
CONSUMER_PISTOL = 102
INDUSTRIAL_RIFLE = 201
INDUSTRIAL_PISTOL = 202
MILSPEC_RIFLE = 301
RESTRICTED_RIFLE = 401
CLASSIFIED_RIFLE = 501
COVERT_RIFLE = 601
CONTRABAND_RIFLE = 701
STICKER = 801
ALPHA_CASE = 1001
MYSTERY_CASE = 1002
STICKER_CAPSULE = 1003
ALPHA_KEY = 1101
BETA_KEY = 1102
STORAGE_UNIT = 1201


def make_catalog() -> ItemCatalog:
    """Small item catalog covering every rarity tier and container kind."""
    weapons = [
        (CONSUMER_RIFLE, "Rifle | Sand Dune", "consumer grade"),
        (CONSUMER_PISTOL, "Pistol | Sand Dune", "consumer grade"),
        (INDUSTRIAL_RIFLE, "Rifle | Urban", "industrial grade"),
        (INDUSTRIAL_PISTOL, "Pistol | Urban", "industrial grade"),
        (MILSPEC_RIFLE, "Rifle | Blue Steel", "mil-spec grade"),
        (RESTRICTED_RIFLE, "Rifle | Purple Haze", "restricted"),
        (CLASSIFIED_RIFLE, "Rifle | Pink DDPAT", "classified"),
        (COVERT_RIFLE, "Rifle | Asiimov", "covert"),
        (CONTRABAND_RIFLE, "Rifle | Howl", "contraband"),
    ]
    items = [
        CatalogItem(id=item_id, name=name, rarity=rarity, type="weapon")
        for item_id, name, rarity in weapons
    ]
    items += [
        CatalogItem(id=STICKER, name="Sticker | Badboys", rarity="mil-spec grade", type="sticker"),
        CatalogItem(
            id=ALPHA_CASE,
            name="Alpha Case",
            rarity="consumer grade",
            type="container",
            category="weapon_case",
            keys=(ALPHA_KEY,),
            contents=(CONSUMER_RIFLE, INDUSTRIAL_RIFLE, MILSPEC_RIFLE, COVERT_RIFLE),
        ),
        CatalogItem(
            id=MYSTERY_CASE,
            name="Mystery Case",
            rarity="consumer grade",
            type="container",
            category="mystery_case",
            reward_weights=((ALPHA_CASE, 1),),
        ),
        CatalogItem(
            id=STICKER_CAPSULE,
            name="Badboys Capsule",
            rarity="consumer grade",
            type="container",
            category="sticker_capsule",
            contents=(STICKER,),
        ),
        CatalogItem(id=ALPHA_KEY, name="Alpha Case Key", rarity="consumer grade", type="key"),
        CatalogItem(id=BETA_KEY, name="Beta Case Key", rarity="consumer grade", type="key"),
        CatalogItem(
            id=STORAGE_UNIT, name="Storage Unit", rarity="consumer grade", type="storage_unit"
        ),
    ]
    return ItemCatalog(items)


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def rng():
    """Deterministic random source for container and trade-up draws."""
    return random.Random(1234)


@pytest.fixture
def app():
    """Create and configure a test application instance."""
    app = create_app(
        "testing", catalog=make_catalog(), inventory_cache=NullInventoryCache()
    )

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory creating a user with coins and inventory items.

    ``items`` maps inventory key to ItemRecord.
    """

    def _make_user(user_id, coins="0.00", items=None, name=None):
        user = User(
            id=user_id,
            name=name or f"player-{user_id[-4:]}",
            coins=Decimal(coins),
            inventory=serialize(Inventory(items=dict(items or {}))),
        )
        db.session.add(user)
        db.session.commit()
        return user_id

    return _make_user


@pytest.fixture
def auth_headers(app):
    """Factory for JWT headers of a given Steam ID."""

    def _auth_headers(user_id):
        token = create_access_token(identity=user_id)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


def uuid_item(item_id, key, **attrs) -> tuple[str, ItemRecord]:
    """Inventory entry under a UUID key."""
    return key, ItemRecord(id=item_id, uuid=key, **attrs)


def legacy_item(item_id, uid, **attrs) -> tuple[str, ItemRecord]:
    """Inventory entry under a legacy integer key."""
    return str(uid), ItemRecord(id=item_id, uid=uid, **attrs)
