"""Container reward resolution.

A container lists the item ids it can yield. Each candidate weighs
according to its rarity tier and the reward is one draw over that table,
in the order the container lists its contents.
Containers with an explicit ``reward_weights`` table (mystery cases) draw
from that table instead.
"""

import random

from badboys.errors import ValidationError
from badboys.services.inventory_codec import ItemRecord

# Relative odds per tier, highest tiers rarest
RARITY_WEIGHTS = {
    "consumer grade": 800,
    "industrial grade": 400,
    "mil-spec grade": 200,
    "restricted": 40,
    "classified": 8,
    "covert": 2,
    "contraband": 1,
}

# Kill drops never go above classified
DROP_RARITY_WEIGHTS = {
    "consumer grade": 50,
    "industrial grade": 30,
    "mil-spec grade": 15,
    "restricted": 4,
    "classified": 1,
}

STAT_TRAK_CHANCE = 0.1
SEED_RANGE = (1, 1000)


def weighted_pick(table, draw: float):
    """Pick from ``[(value, weight), ...]`` with ``draw`` uniform in [0, 1).

    ``r = draw * total``; weights are subtracted in table order until
    ``r <= 0``. Rounding leftovers fall on the last entry.
    """
    entries = [(value, weight) for value, weight in table if weight > 0]
    if not entries:
        raise ValidationError("empty_reward_table", "Nothing to pick from")

    total = sum(weight for _, weight in entries)
    r = draw * total
    for value, weight in entries:
        r -= weight
        if r <= 0:
            return value
    return entries[-1][0]


class ContainerResolver:
    """Resolves the reward of a container unlock.

    ``rng`` is injectable so draws can be reproduced.
    """

    def __init__(self, catalog, rng: random.Random | None = None):
        self.catalog = catalog
        self.rng = rng or random.Random()

    def __call__(self, container) -> ItemRecord:
        return self.resolve(container)

    def resolve(self, container) -> ItemRecord:
        if container.reward_weights:
            item_id = weighted_pick(container.reward_weights, self.rng.random())
            return ItemRecord(id=item_id)

        candidates = [self.catalog.get_by_id(item_id) for item_id in container.contents]
        if container.rarity_band:
            candidates = [c for c in candidates if c.tier in container.rarity_band]
        if not candidates:
            raise ValidationError(
                "no_reward_available", f"{container.name} has no possible rewards"
            )

        table = [(item, RARITY_WEIGHTS.get(item.tier, 1)) for item in candidates]
        item = weighted_pick(table, self.rng.random())
        return self.roll_attributes(item, container)

    def roll_attributes(self, item, container=None) -> ItemRecord:
        """Fresh wear, seed and StatTrak for items that have them."""
        if not item.has_wear():
            return ItemRecord(id=item.id)

        record = ItemRecord(
            id=item.id,
            wear=round(self.rng.random(), 6),
            seed=self.rng.randint(*SEED_RANGE),
        )
        if (
            container is not None
            and container.is_weapon_case()
            and self.rng.random() < STAT_TRAK_CHANCE
        ):
            record.stat_trak = 0
        return record

    def random_drop(self):
        """Catalog weapon for a kill drop, weighted by rarity."""
        pool = [
            (item, DROP_RARITY_WEIGHTS[item.tier])
            for item in self.catalog.find(item_type="weapon")
            if item.tier in DROP_RARITY_WEIGHTS
        ]
        if not pool:
            raise ValidationError("no_reward_available", "Drop pool is empty")
        return weighted_pick(pool, self.rng.random())
