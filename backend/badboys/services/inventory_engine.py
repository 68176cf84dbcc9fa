"""Pure inventory mutations.

Every function takes an ``Inventory`` snapshot and returns a new one; the
input is never modified. Persisting the result, and serializing concurrent
writers of the same user, is the caller's job (see inventory_store).
"""

import uuid
from dataclasses import dataclass

from badboys.errors import CapacityExceeded, ItemNotFound, ValidationError
from badboys.services.inventory_codec import Inventory, ItemRecord

WEAR_TOLERANCE = 0.0001


@dataclass(frozen=True)
class InventoryLimits:
    max_items: int
    storage_unit_max_items: int


@dataclass(frozen=True)
class Add:
    item: ItemRecord
    # Reuse an existing identity (marketplace, trade); a new UUID otherwise
    key: str | None = None


@dataclass(frozen=True)
class Remove:
    key: str


@dataclass(frozen=True)
class Update:
    key: str
    attrs: dict


@dataclass
class UnlockResult:
    reward_key: str
    reward: ItemRecord
    container_id: int
    key_id: int | None


def new_item_key() -> str:
    return str(uuid.uuid4())


def _check_capacity(inventory: Inventory, limits: InventoryLimits | None) -> None:
    if limits is not None and len(inventory.items) >= limits.max_items:
        raise CapacityExceeded(
            message=f"Inventory is full ({limits.max_items} items)"
        )


def add(
    inventory: Inventory,
    item: ItemRecord,
    limits: InventoryLimits | None,
    key: str | None = None,
) -> tuple[Inventory, str]:
    """Insert ``item``; returns the new snapshot and the key it was stored under.

    ``limits=None`` skips the capacity check, used only when an item must go
    back where it came from (listing cancel).
    """
    _check_capacity(inventory, limits)

    if key is None:
        key = new_item_key()
        record = item.copy(uuid=key)
    else:
        record = item.copy()
    if key in inventory.items:
        raise ValidationError("duplicate_item", f"Item {key} is already present")

    result = inventory.copy()
    result.items[key] = record
    return result, key


def remove(inventory: Inventory, key: str) -> tuple[Inventory, ItemRecord]:
    """Delete ``key``; returns the new snapshot and the removed record."""
    if key not in inventory.items:
        raise ItemNotFound(key)
    result = inventory.copy()
    record = result.items.pop(key)
    return result, record


def update(inventory: Inventory, key: str, attrs: dict) -> Inventory:
    if key not in inventory.items:
        raise ItemNotFound(key)
    allowed = {"wear", "seed", "name_tag", "stickers", "stat_trak"}
    unknown = set(attrs) - allowed
    if unknown:
        raise ValidationError(
            "invalid_attributes", f"Cannot update {', '.join(sorted(unknown))}"
        )
    result = inventory.copy()
    result.items[key] = result.items[key].copy(**attrs)
    return result


def apply(
    inventory: Inventory, operations, limits: InventoryLimits | None
) -> tuple[Inventory, list[str]]:
    """Apply operations in order; all of them or none.

    Returns the final snapshot and the keys assigned by ``Add`` operations.
    """
    added = []
    for op in operations:
        if isinstance(op, Add):
            inventory, key = add(inventory, op.item, limits, key=op.key)
            added.append(key)
        elif isinstance(op, Remove):
            inventory, _ = remove(inventory, op.key)
        elif isinstance(op, Update):
            inventory = update(inventory, op.key, op.attrs)
        else:
            raise TypeError(f"Unknown inventory operation {op!r}")
    return inventory, added


def find_by_properties(
    inventory: Inventory,
    item_id: int,
    wear: float | None = None,
    name_tag: str | None = None,
    exclude=(),
) -> str | None:
    """Best-effort lookup for refs that carry no key (pre-UUID clients).

    With duplicates the first match wins, which may not be the exact
    instance the client meant.
    """
    for key, record in inventory.items.items():
        if key in exclude or record.id != item_id:
            continue
        if abs((record.wear or 0) - (wear or 0)) >= WEAR_TOLERANCE:
            continue
        if (record.name_tag or "") != (name_tag or ""):
            continue
        return key
    return None


def unlock_container(
    inventory: Inventory,
    container_key: str,
    key_item_key: str | None,
    catalog,
    resolve_reward,
    limits: InventoryLimits,
) -> tuple[Inventory, UnlockResult]:
    """Consume a container (and its key) and add the resolved reward.

    ``resolve_reward(container_catalog_item) -> ItemRecord`` picks the
    reward. All three effects land in the one returned snapshot.
    """
    container_record = inventory.get(container_key)
    if container_record is None:
        raise ItemNotFound(container_key)
    container = catalog.get_by_id(container_record.id)
    if not container.is_container():
        raise ValidationError("not_a_container", f"{container.name} cannot be unlocked")

    operations = [Remove(container_key)]
    key_id = None
    if container.requires_key():
        if key_item_key is None:
            raise ValidationError("key_required", f"{container.name} needs a key")
        key_record = inventory.get(key_item_key)
        if key_record is None:
            raise ItemNotFound(key_item_key)
        if key_record.id not in container.keys:
            raise ValidationError(
                "key_mismatch", f"This key does not open {container.name}"
            )
        operations.append(Remove(key_item_key))
        key_id = key_record.id
    elif key_item_key is not None:
        raise ValidationError("key_mismatch", f"{container.name} does not use a key")

    reward = resolve_reward(container)
    operations.append(Add(reward))

    result, added = apply(inventory, operations, limits)
    reward_key = added[0]
    return result, UnlockResult(
        reward_key=reward_key,
        reward=result.items[reward_key],
        container_id=container_record.id,
        key_id=key_id,
    )


def deposit_to_storage_unit(
    inventory: Inventory,
    unit_key: str,
    item_keys: list[str],
    catalog,
    limits: InventoryLimits,
) -> Inventory:
    """Move top-level items into a storage unit, keeping their keys."""
    unit = inventory.get(unit_key)
    if unit is None:
        raise ItemNotFound(unit_key)
    if not catalog.get_by_id(unit.id).is_storage_unit():
        raise ValidationError("not_a_storage_unit", "Item is not a storage unit")

    stored = dict(unit.storage or {})
    if len(stored) + len(item_keys) > limits.storage_unit_max_items:
        raise CapacityExceeded(
            "storage_unit_full",
            f"Storage unit holds at most {limits.storage_unit_max_items} items",
        )

    result = inventory.copy()
    for key in item_keys:
        if key == unit_key:
            raise ValidationError("invalid_deposit", "Cannot store a unit in itself")
        result, record = remove(result, key)
        if catalog.get_by_id(record.id).is_storage_unit():
            raise ValidationError("invalid_deposit", "Storage units cannot be nested")
        stored[key] = record

    result.items[unit_key] = result.items[unit_key].copy(storage=stored)
    return result


def retrieve_from_storage_unit(
    inventory: Inventory,
    unit_key: str,
    item_keys: list[str],
    limits: InventoryLimits,
) -> Inventory:
    """Move items out of a storage unit back to the top level."""
    unit = inventory.get(unit_key)
    if unit is None:
        raise ItemNotFound(unit_key)
    stored = dict(unit.storage or {})
    for key in item_keys:
        if key not in stored:
            raise ItemNotFound(key)
    if len(inventory.items) + len(item_keys) > limits.max_items:
        raise CapacityExceeded(
            message=f"Inventory is full ({limits.max_items} items)"
        )

    result = inventory.copy()
    for key in item_keys:
        if key in result.items:
            raise ValidationError("duplicate_item", f"Item {key} is already present")
        result.items[key] = stored.pop(key)
    result.items[unit_key] = result.items[unit_key].copy(storage=stored)
    return result


def receive(record: ItemRecord) -> Add:
    """Add operation for an item arriving from another inventory.

    The item keeps its UUID as key. A legacy item is given a fresh UUID and
    loses its per-user uid, which means nothing in the new inventory.
    """
    if record.is_legacy:
        return Add(record.copy(uid=None))
    return Add(record, key=record.uuid)
