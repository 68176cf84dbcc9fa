"""Read-only item catalog.

The catalog is owned by an external definition source; this adapter only
looks items up. It is built once in the app factory and handed to services.
"""

import json
from dataclasses import dataclass

from badboys.errors import NotFound

# Ordered lowest to highest
RARITY_TIERS = [
    "consumer grade",
    "industrial grade",
    "mil-spec grade",
    "restricted",
    "classified",
    "covert",
    "contraband",
]

RARITY_ALIASES = {
    "consumer": "consumer grade",
    "common": "consumer grade",
    "industrial": "industrial grade",
    "uncommon": "industrial grade",
    "mil-spec": "mil-spec grade",
    "rare": "mil-spec grade",
    "mythical": "restricted",
    "legendary": "classified",
    "ancient": "covert",
    "extraordinary": "contraband",
    "immortal": "contraband",
    # Hex colors used by the economy data
    "#b0c3d9": "consumer grade",
    "#ded6cc": "consumer grade",
    "#5e98d9": "industrial grade",
    "#4b69ff": "mil-spec grade",
    "#8847ff": "restricted",
    "#d32ce6": "classified",
    "#eb4b4b": "covert",
    "#e4ae39": "contraband",
}

# Container categories
WEAPON_CASE = "weapon_case"
SOUVENIR_CASE = "souvenir_case"
STICKER_CAPSULE = "sticker_capsule"
GRAFFITI_BOX = "graffiti_box"


def normalize_rarity(value: str | None) -> str:
    """Map any known rarity spelling to its tier name."""
    if not value:
        return RARITY_TIERS[0]
    normalized = value.strip().lower()
    if normalized in RARITY_TIERS:
        return normalized
    return RARITY_ALIASES.get(normalized, RARITY_TIERS[0])


def rarity_index(rarity: str) -> int:
    return RARITY_TIERS.index(normalize_rarity(rarity))


def next_rarity(rarity: str) -> str | None:
    """Tier immediately above ``rarity``, or None at the top."""
    index = rarity_index(rarity)
    if index >= len(RARITY_TIERS) - 1:
        return None
    return RARITY_TIERS[index + 1]


def display_rarity(rarity: str) -> str:
    """Rarity as the game server plugin spells it ("Mil-Spec Grade")."""
    return normalize_rarity(rarity).title()


@dataclass(frozen=True)
class CatalogItem:
    """Static metadata of one item definition."""

    id: int
    name: str
    rarity: str
    type: str
    category: str | None = None
    # Key item ids that open this container; empty means no key needed
    keys: tuple[int, ...] = ()
    # Item ids a container can yield
    contents: tuple[int, ...] = ()
    # Allowed reward rarities; empty means every rarity in ``contents``
    rarity_band: tuple[str, ...] = ()
    # Explicit (item_id, weight) table, used instead of rarity weights
    reward_weights: tuple[tuple[int, int], ...] = ()

    @property
    def tier(self) -> str:
        return normalize_rarity(self.rarity)

    def is_weapon(self) -> bool:
        return self.type == "weapon"

    def is_container(self) -> bool:
        return self.type == "container"

    def is_key(self) -> bool:
        return self.type == "key"

    def is_storage_unit(self) -> bool:
        return self.type == "storage_unit"

    def is_weapon_case(self) -> bool:
        return self.is_container() and self.category == WEAPON_CASE

    def is_souvenir_case(self) -> bool:
        return self.is_container() and self.category == SOUVENIR_CASE

    def is_sticker_capsule(self) -> bool:
        return self.is_container() and self.category == STICKER_CAPSULE

    def is_graffiti_box(self) -> bool:
        return self.is_container() and self.category == GRAFFITI_BOX

    def requires_key(self) -> bool:
        return bool(self.keys)

    def has_wear(self) -> bool:
        return self.type in ("weapon", "knife", "glove")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "rarity": self.tier,
            "type": self.type,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogItem":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            rarity=normalize_rarity(data.get("rarity")),
            type=data["type"],
            category=data.get("category"),
            keys=tuple(int(k) for k in data.get("keys", ())),
            contents=tuple(int(c) for c in data.get("contents", ())),
            rarity_band=tuple(
                normalize_rarity(r) for r in data.get("rarity_band", ())
            ),
            reward_weights=tuple(
                (int(item_id), int(weight))
                for item_id, weight in data.get("reward_weights", ())
            ),
        )


class ItemCatalog:
    """Lookup of item definitions by id."""

    def __init__(self, items):
        self._items = {item.id: item for item in items}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id) -> bool:
        return item_id in self._items

    def get_by_id(self, item_id: int) -> CatalogItem:
        try:
            return self._items[int(item_id)]
        except (KeyError, TypeError, ValueError):
            raise NotFound(
                "catalog_item_not_found", f"Unknown item id {item_id}"
            ) from None

    def find(self, rarity: str | None = None, item_type: str | None = None):
        """Items matching rarity tier and type, ordered by id."""
        tier = normalize_rarity(rarity) if rarity else None
        return [
            item
            for item_id, item in sorted(self._items.items())
            if (tier is None or item.tier == tier)
            and (item_type is None or item.type == item_type)
        ]

    @classmethod
    def from_file(cls, path: str) -> "ItemCatalog":
        """Load definitions from a JSON array of item objects."""
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        return cls(CatalogItem.from_dict(entry) for entry in data)
