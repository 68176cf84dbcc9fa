"""Inventory rules with per-user overrides."""

import logging

from flask import current_app

from badboys.models.user import UserRule
from badboys.services.inventory_engine import InventoryLimits

logger = logging.getLogger(__name__)

# Rule name -> (config key, parser)
RULES = {
    "inventory_max_items": ("INVENTORY_MAX_ITEMS", int),
    "storage_unit_max_items": ("STORAGE_UNIT_MAX_ITEMS", int),
    "inventory_allow_unlock_container": (
        "INVENTORY_ALLOW_UNLOCK_CONTAINER",
        lambda v: str(v).lower() in ("1", "true", "yes"),
    ),
}


def get_rule(user_id: str | None, name: str):
    """Value of rule ``name`` for a user, falling back to app config."""
    config_key, parse = RULES[name]
    if user_id is not None:
        override = UserRule.query.filter_by(user_id=user_id, name=name).first()
        if override is not None:
            try:
                return parse(override.value)
            except ValueError:
                logger.warning(
                    f"Ignoring malformed rule {name}={override.value!r} for {user_id}"
                )
    return parse(current_app.config[config_key])


def inventory_limits(user_id: str | None) -> InventoryLimits:
    return InventoryLimits(
        max_items=get_rule(user_id, "inventory_max_items"),
        storage_unit_max_items=get_rule(user_id, "storage_unit_max_items"),
    )
