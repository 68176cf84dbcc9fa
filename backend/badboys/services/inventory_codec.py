"""Inventory blob codec.

Inventories are persisted as one JSON document per user::

    {"version": 1, "items": {"<key>": {"id": 44, "wear": 0.12, ...}}}

Keys are either legacy per-user integer uids ("17") or item UUIDs. The blob
is decoded here, once, into ``ItemRecord`` objects; nothing past this module
looks at the key format again.
"""

import copy
import json
from dataclasses import dataclass, field, replace

INVENTORY_VERSION = 1

UUID_KEY_DELIMITER = "-"

# ItemRecord attribute -> blob field
_FIELDS = {
    "id": "id",
    "wear": "wear",
    "seed": "seed",
    "name_tag": "nameTag",
    "stickers": "stickers",
    "stat_trak": "statTrak",
    "uuid": "uuid",
    "uid": "uid",
}

# Decoded separately from _FIELDS
_NESTED = {"storage"}


class InvalidInventory(ValueError):
    """Blob that cannot be decoded."""


def is_uuid_key(key: str) -> bool:
    """UUID-scheme keys contain a hyphen; decimal integers never do."""
    return UUID_KEY_DELIMITER in key


@dataclass
class ItemRecord:
    """One item as stored in an inventory."""

    id: int
    wear: float | None = None
    seed: int | None = None
    name_tag: str | None = None
    # Slot-keyed object in current blobs, a list in some older ones
    stickers: dict | list | None = None
    stat_trak: int | None = None
    # Contents of a storage unit, keyed like the top level
    storage: dict[str, "ItemRecord"] | None = None
    uuid: str | None = None
    uid: int | None = None
    # Blob fields this codec does not model (keychains, patches, ...)
    extra: dict = field(default_factory=dict)

    @property
    def is_legacy(self) -> bool:
        """Items created before UUIDs only carry a per-user uid."""
        return self.uuid is None

    def attributes(self) -> dict:
        """Variable attributes, as recorded in the identity ledger."""
        return {
            "wear": self.wear,
            "seed": self.seed,
            "name_tag": self.name_tag,
            "stickers": self.stickers,
        }

    def copy(self, **changes) -> "ItemRecord":
        if self.storage is not None and "storage" not in changes:
            changes["storage"] = {k: v.copy() for k, v in self.storage.items()}
        if self.stickers is not None and "stickers" not in changes:
            changes["stickers"] = copy.deepcopy(self.stickers)
        if "extra" not in changes:
            changes["extra"] = copy.deepcopy(self.extra)
        return replace(self, **changes)

    def to_dict(self) -> dict:
        data = copy.deepcopy(self.extra)
        for attr, name in _FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                data[name] = value
        if self.storage is not None:
            data["storage"] = {k: v.to_dict() for k, v in self.storage.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ItemRecord":
        if not isinstance(data, dict) or not isinstance(data.get("id"), int):
            raise InvalidInventory("item record needs an integer id")
        kwargs = {attr: data.get(name) for attr, name in _FIELDS.items()}
        known = set(_FIELDS.values()) | _NESTED
        kwargs["extra"] = {
            k: copy.deepcopy(v) for k, v in data.items() if k not in known
        }
        storage = data.get("storage")
        if storage is not None:
            kwargs["storage"] = _decode_items(storage)
        return cls(**kwargs)


@dataclass
class Inventory:
    """Snapshot of one user's items. Treat as immutable; see inventory_engine."""

    items: dict[str, ItemRecord] = field(default_factory=dict)
    version: int = INVENTORY_VERSION

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, key) -> bool:
        return key in self.items

    def get(self, key: str) -> ItemRecord | None:
        return self.items.get(key)

    def copy(self) -> "Inventory":
        return Inventory(
            items={k: v.copy() for k, v in self.items.items()}, version=self.version
        )

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "items": {k: v.to_dict() for k, v in self.items.items()},
        }


def _decode_items(raw_items) -> dict[str, ItemRecord]:
    if not isinstance(raw_items, dict):
        raise InvalidInventory("items must be an object")

    items = {}
    for key, raw in raw_items.items():
        record = ItemRecord.from_dict(raw)
        if is_uuid_key(key):
            if record.uuid is None:
                record.uuid = key
        else:
            try:
                uid = int(key)
            except ValueError:
                raise InvalidInventory(f"invalid item key {key!r}") from None
            if record.uid is None:
                record.uid = uid
        items[key] = record
    return items


def empty_inventory() -> Inventory:
    return Inventory()


def parse(raw: str | None) -> Inventory | None:
    """Decode a blob. None (not an error) when there is no usable inventory."""
    if not raw:
        return None
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            return None
        version = data.get("version", INVENTORY_VERSION)
        if not isinstance(version, int):
            return None
        return Inventory(items=_decode_items(data.get("items", {})), version=version)
    except (ValueError, TypeError):
        # json.JSONDecodeError and InvalidInventory are ValueErrors
        return None


def parse_or_empty(raw: str | None) -> Inventory:
    inventory = parse(raw)
    return inventory if inventory is not None else empty_inventory()


def serialize(inventory: Inventory) -> str:
    return json.dumps(inventory.to_dict(), separators=(",", ":"))


def serialize_item(record: ItemRecord) -> str:
    return json.dumps(record.to_dict(), separators=(",", ":"))


def parse_item(raw: str) -> ItemRecord:
    return ItemRecord.from_dict(json.loads(raw))
