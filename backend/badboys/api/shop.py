"""Shop and coin balance API endpoints."""

from flask import request
from flask_jwt_extended import get_jwt_identity, jwt_required

from badboys.api import api_bp
from badboys.errors import NotFound
from badboys.services.balance_ledger import BalanceLedger
from badboys.services.shop_service import ShopService
from badboys.utils import not_found, result_response, success_response, validation_error


@api_bp.route("/shop", methods=["GET"])
@jwt_required()
def get_shop():
    """Enabled shop items, optionally filtered by ?category=."""
    category = request.args.get("category")
    return success_response({"items": ShopService().get_shop_items(category)})


@api_bp.route("/shop/<int:shop_item_id>/purchase", methods=["POST"])
@jwt_required()
def purchase_shop_item(shop_item_id: int):
    """Buy a shop item. Body: {"quantity": 1}"""
    user_id = get_jwt_identity()
    quantity = (request.get_json(silent=True) or {}).get("quantity", 1)
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        return validation_error({"quantity": "quantity must be an integer"})

    return result_response(ShopService().purchase(user_id, shop_item_id, quantity))


@api_bp.route("/coins", methods=["GET"])
@jwt_required()
def get_balance():
    """Current coin balance."""
    user_id = get_jwt_identity()
    try:
        balance = BalanceLedger().get_balance(user_id)
    except NotFound:
        return not_found("User not found")
    return success_response({"coins": str(balance)})


@api_bp.route("/coins/history", methods=["GET"])
@jwt_required()
def get_coin_history():
    """Coin transactions, newest first."""
    user_id = get_jwt_identity()
    limit = min(request.args.get("limit", 50, type=int), 200)
    offset = request.args.get("offset", 0, type=int)
    transactions = BalanceLedger().get_transaction_history(
        user_id, limit=limit, offset=offset
    )
    return success_response({"transactions": transactions})
