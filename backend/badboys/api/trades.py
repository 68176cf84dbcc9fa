"""Player trade API endpoints."""

from flask import request
from flask_jwt_extended import get_jwt_identity, jwt_required

from badboys.api import api_bp
from badboys.services.trade_service import TradeService
from badboys.utils import result_response, success_response, validation_error


@api_bp.route("/trades", methods=["GET"])
@jwt_required()
def get_trades():
    """Pending trade offers, incoming and outgoing."""
    user_id = get_jwt_identity()
    return success_response(TradeService().get_pending_trades(user_id))


@api_bp.route("/trades", methods=["POST"])
@jwt_required()
def create_trade():
    """
    Offer a trade.

    Request body:
    {
        "receiver_id": "7656119...",
        "sender_items": ["<item key>", ...],
        "receiver_items": ["<item key>", ...],
        "sender_coins": "0.00",
        "receiver_coins": "0.00",
        "message": "optional"
    }
    """
    user_id = get_jwt_identity()
    data = request.get_json() or {}

    receiver_id = data.get("receiver_id")
    if not receiver_id:
        return validation_error({"receiver_id": "receiver_id is required"})
    for field in ("sender_items", "receiver_items"):
        if not isinstance(data.get(field, []), list):
            return validation_error({field: "Must be a list of item keys"})

    result = TradeService().create_trade_offer(
        user_id,
        str(receiver_id),
        sender_items=[str(k) for k in data.get("sender_items", [])],
        receiver_items=[str(k) for k in data.get("receiver_items", [])],
        sender_coins=data.get("sender_coins", 0),
        receiver_coins=data.get("receiver_coins", 0),
        message=data.get("message"),
    )
    return result_response(result, status_code=201)


@api_bp.route("/trades/<int:trade_id>/accept", methods=["POST"])
@jwt_required()
def accept_trade(trade_id: int):
    """Accept a trade offer."""
    user_id = get_jwt_identity()
    return result_response(TradeService().accept_trade(user_id, trade_id))


@api_bp.route("/trades/<int:trade_id>/decline", methods=["POST"])
@jwt_required()
def decline_trade(trade_id: int):
    """Decline a trade offer."""
    user_id = get_jwt_identity()
    return result_response(TradeService().decline_trade(user_id, trade_id))


@api_bp.route("/trades/<int:trade_id>/cancel", methods=["POST"])
@jwt_required()
def cancel_trade(trade_id: int):
    """Cancel a trade offer you sent."""
    user_id = get_jwt_identity()
    return result_response(TradeService().cancel_trade(user_id, trade_id))
