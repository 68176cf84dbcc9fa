"""Marketplace API endpoints."""

from flask import request
from flask_jwt_extended import get_jwt_identity, jwt_required

from badboys.api import api_bp
from badboys.services.marketplace_service import MarketplaceService
from badboys.utils import not_found, result_response, success_response, validation_error

# ============ Listings ============


@api_bp.route("/marketplace", methods=["GET"])
@jwt_required()
def browse_marketplace():
    """
    Browse marketplace listings.

    Query params:
    - page: page number (default 1)
    - per_page: items per page (default 20, max 100)
    - item_id: filter by catalog item
    - min_price / max_price: price bounds
    - sort_by: "newest" (default), "price_low", "price_high"
    """
    user_id = get_jwt_identity()
    page = request.args.get("page", 1, type=int)
    per_page = min(request.args.get("per_page", 20, type=int), 100)
    item_id = request.args.get("item_id", type=int)
    min_price = request.args.get("min_price", type=float)
    max_price = request.args.get("max_price", type=float)
    sort_by = request.args.get("sort_by", "newest")

    result = MarketplaceService().browse_listings(
        page=page,
        per_page=per_page,
        item_id=item_id,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        exclude_seller_id=user_id,  # Don't show user's own listings
    )

    return success_response(result)


@api_bp.route("/marketplace/my-listings", methods=["GET"])
@jwt_required()
def my_listings():
    """Get the current user's listings (?status=active|sold|cancelled)."""
    user_id = get_jwt_identity()
    status = request.args.get("status")
    listings = MarketplaceService().get_user_listings(user_id, status=status)
    return success_response({"listings": listings})


@api_bp.route("/marketplace/<int:listing_id>", methods=["GET"])
@jwt_required()
def get_listing(listing_id: int):
    """Get listing details."""
    listing = MarketplaceService().get_listing(listing_id)

    if not listing:
        return not_found("Listing not found")

    return success_response({"listing": listing})


@api_bp.route("/marketplace", methods=["POST"])
@jwt_required()
def create_listing():
    """
    List an item for sale.

    Request body:
    {
        "item_key": "<item key>",
        "price": "10.00",
        "duration_days": 7    # optional
    }
    """
    user_id = get_jwt_identity()
    data = request.get_json() or {}

    item_key = data.get("item_key")
    price = data.get("price")

    if not item_key:
        return validation_error({"item_key": "item_key is required"})
    if price is None:
        return validation_error({"price": "price is required"})

    result = MarketplaceService().create_listing(
        user_id, str(item_key), price, ttl_days=data.get("duration_days")
    )
    return result_response(result, status_code=201)


@api_bp.route("/marketplace/<int:listing_id>", methods=["DELETE"])
@jwt_required()
def cancel_listing(listing_id: int):
    """Cancel a listing (seller only)."""
    user_id = get_jwt_identity()
    return result_response(MarketplaceService().cancel_listing(listing_id, user_id))


@api_bp.route("/marketplace/<int:listing_id>/purchase", methods=["POST"])
@jwt_required()
def purchase_listing(listing_id: int):
    """Buy a listing with coins."""
    user_id = get_jwt_identity()
    return result_response(MarketplaceService().purchase_listing(listing_id, user_id))


# ============ Prices ============


@api_bp.route("/marketplace/price-history/<int:item_id>", methods=["GET"])
@jwt_required()
def price_history(item_id: int):
    """Sale prices of a catalog item, oldest first."""
    limit = min(request.args.get("limit", 100, type=int), 500)
    points = MarketplaceService().get_price_history(item_id, limit=limit)
    return success_response({"item_id": item_id, "history": points})
