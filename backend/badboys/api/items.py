"""Item history API endpoints."""

from flask import request
from flask_jwt_extended import get_jwt_identity, jwt_required

from badboys.api import api_bp
from badboys.services.identity_ledger import IdentityLedger
from badboys.utils import not_found, success_response


@api_bp.route("/items/<item_uuid>/history", methods=["GET"])
@jwt_required()
def get_item_history(item_uuid: str):
    """Identity record of an item with all its transfers."""
    history = IdentityLedger().get_item_history(item_uuid)
    if history is None:
        return not_found("Item not found")
    return success_response({"item": history})


@api_bp.route("/items/history", methods=["GET"])
@jwt_required()
def get_my_item_history():
    """Recent transfers involving the current user."""
    user_id = get_jwt_identity()
    limit = min(request.args.get("limit", 50, type=int), 200)
    transfers = IdentityLedger().get_user_item_history(user_id, limit=limit)
    return success_response({"transfers": transfers})
