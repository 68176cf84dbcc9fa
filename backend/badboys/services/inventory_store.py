"""Persistence of inventory snapshots with optimistic concurrency.

A write only lands if ``users.inventory_version`` still holds the version
read earlier in the same transaction; otherwise ``InventoryConflict`` is
raised and the transaction must be rolled back.
"""

from datetime import datetime

from sqlalchemy import select, update

from badboys import db
from badboys.errors import InventoryConflict, NotFound
from badboys.models.user import User
from badboys.services.inventory_codec import Inventory, parse_or_empty, serialize


def load_inventory(user_id: str, for_update: bool = True) -> tuple[Inventory, int]:
    """Current snapshot and its version. Raises ``NotFound`` for unknown users."""
    stmt = select(User.inventory, User.inventory_version).where(User.id == user_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = db.session.execute(stmt).first()
    if row is None:
        raise NotFound("user_not_found", f"User {user_id} not found")
    return parse_or_empty(row.inventory), row.inventory_version


def current_version(user_id: str) -> int:
    """Version of the stored snapshot without loading the blob."""
    version = db.session.execute(
        select(User.inventory_version).where(User.id == user_id)
    ).scalar()
    if version is None:
        raise NotFound("user_not_found", f"User {user_id} not found")
    return version


def save_inventory(user_id: str, inventory: Inventory, expected_version: int) -> int:
    """Compare-and-swap the blob; returns the new version."""
    new_version = expected_version + 1
    result = db.session.execute(
        update(User)
        .where(User.id == user_id, User.inventory_version == expected_version)
        .values(
            inventory=serialize(inventory),
            inventory_version=new_version,
            synced_at=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InventoryConflict(
            message=f"Inventory of {user_id} changed concurrently, retry"
        )
    return new_version
