"""Inventory API endpoints: reads, case unlocks, storage units, trade-ups."""

from flask import request
from flask_jwt_extended import get_jwt_identity, jwt_required

from badboys.api import api_bp
from badboys.services.inventory_service import InventoryService
from badboys.services.tradeup_service import TradeUpService
from badboys.utils import result_response, validation_error


@api_bp.route("/inventory", methods=["GET"])
@jwt_required()
def get_inventory():
    """Get the current user's inventory and its version."""
    user_id = get_jwt_identity()
    return result_response(InventoryService().get_inventory(user_id))


@api_bp.route("/inventory/unlock-case", methods=["POST"])
@jwt_required()
def unlock_case():
    """
    Open a container.

    Request body:
    {
        "case_key": "<item key>",
        "key_key": "<item key>",       # when the container needs a key
        "inventory_version": 12        # optional, rejects stale clients
    }
    """
    user_id = get_jwt_identity()
    data = request.get_json() or {}

    case_key = data.get("case_key")
    if not case_key:
        return validation_error({"case_key": "case_key is required"})

    result = InventoryService().unlock_case(
        user_id,
        str(case_key),
        key_key=str(data["key_key"]) if data.get("key_key") else None,
        expected_version=data.get("inventory_version"),
    )
    return result_response(result)


@api_bp.route("/inventory/storage-units/<unit_key>/deposit", methods=["POST"])
@jwt_required()
def deposit_to_storage_unit(unit_key: str):
    """Move items into a storage unit. Body: {"item_keys": [...]}"""
    user_id = get_jwt_identity()
    item_keys = (request.get_json() or {}).get("item_keys")
    if not item_keys or not isinstance(item_keys, list):
        return validation_error({"item_keys": "A list of item keys is required"})

    result = InventoryService().deposit_to_storage_unit(
        user_id, unit_key, [str(k) for k in item_keys]
    )
    return result_response(result)


@api_bp.route("/inventory/storage-units/<unit_key>/retrieve", methods=["POST"])
@jwt_required()
def retrieve_from_storage_unit(unit_key: str):
    """Move items out of a storage unit. Body: {"item_keys": [...]}"""
    user_id = get_jwt_identity()
    item_keys = (request.get_json() or {}).get("item_keys")
    if not item_keys or not isinstance(item_keys, list):
        return validation_error({"item_keys": "A list of item keys is required"})

    result = InventoryService().retrieve_from_storage_unit(
        user_id, unit_key, [str(k) for k in item_keys]
    )
    return result_response(result)


@api_bp.route("/trade-up", methods=["POST"])
@jwt_required()
def trade_up():
    """
    Trade up ten items of one rarity.

    Request body:
    {
        "items": ["<uuid>", {"uuid": "<uuid>"}, {"id": 44, "wear": 0.1}, ...]
    }
    """
    user_id = get_jwt_identity()
    items = (request.get_json() or {}).get("items")
    if not isinstance(items, list):
        return validation_error({"items": "A list of items is required"})

    return result_response(TradeUpService().trade_up(user_id, items))
