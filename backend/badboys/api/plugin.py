"""Game server plugin endpoints, authenticated by API key instead of JWT."""

import hmac
import logging
from functools import wraps

from flask import current_app, request

from badboys.api import api_bp
from badboys.services.inventory_service import InventoryService
from badboys.utils import result_response, unauthorized, validation_error

logger = logging.getLogger(__name__)


def plugin_key_required(fn):
    """Require ``X-API-Key`` (or ``apiKey`` in the body) to match CASE_DROP_API_KEY."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("CASE_DROP_API_KEY", "")
        provided = request.headers.get("X-API-Key") or (
            request.get_json(silent=True) or {}
        ).get("apiKey", "")
        if not expected or not hmac.compare_digest(str(provided), expected):
            logger.warning(f"Rejected plugin call to {request.path}")
            return unauthorized("Invalid API key")
        return fn(*args, **kwargs)

    return wrapper


@api_bp.route("/plugin/case-drop", methods=["POST"])
@plugin_key_required
def case_drop():
    """
    Grant a case dropped at the end of a match.

    Request body:
    {
        "steam_id": "7656119...",
        "item_id": 4109
    }
    """
    data = request.get_json(silent=True) or {}
    steam_id = data.get("steam_id")
    item_id = data.get("item_id")

    if not steam_id:
        return validation_error({"steam_id": "steam_id is required"})
    if not isinstance(item_id, int):
        return validation_error({"item_id": "item_id must be an integer"})

    return result_response(InventoryService().grant_item(str(steam_id), item_id))


@api_bp.route("/plugin/drop-collected", methods=["POST"])
@plugin_key_required
def drop_collected():
    """A player picked up a drop crate; grant a random weapon skin."""
    data = request.get_json(silent=True) or {}
    steam_id = data.get("collectorSteamId") or data.get("steam_id")
    if not steam_id:
        return validation_error({"collectorSteamId": "collectorSteamId is required"})

    return result_response(InventoryService().grant_random_drop(str(steam_id)))
