"""CS2 server plugin webhook client."""

import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)


def _post_to_plugin(path: str, payload: dict) -> bool:
    base_url = current_app.config.get("CS2_PLUGIN_WEBHOOK_URL", "")
    if not base_url:
        logger.debug("No CS2_PLUGIN_WEBHOOK_URL configured, skipping webhook")
        return False

    url = f"{base_url.rstrip('/')}{path}"
    timeout = current_app.config.get("CS2_PLUGIN_WEBHOOK_TIMEOUT", 5)

    try:
        response = requests.post(url, json=payload, timeout=timeout)
        if response.ok:
            return True
        logger.warning(f"Plugin webhook {path} returned status {response.status_code}")
        return False
    except requests.RequestException as e:
        logger.error(f"Error calling plugin webhook {path}: {e}")
        return False


def send_case_opened(
    player_name: str, item_name: str, rarity: str, stat_trak: bool
) -> bool:
    """
    Broadcast a case opening to the game server chat.

    Args:
        player_name: Display name of the player
        item_name: Name of the unlocked item
        rarity: Rarity as shown in game ("Covert")
        stat_trak: Whether the item rolled StatTrak

    Returns:
        True if the plugin accepted the notification
    """
    return _post_to_plugin(
        "/api/plugin/case-opened",
        {
            "PlayerName": player_name,
            "ItemName": item_name,
            "Rarity": rarity,
            "StatTrak": stat_trak,
        },
    )


def send_inventory_refresh(steam_id: str) -> bool:
    """Ask the plugin to reload a player's inventory."""
    return _post_to_plugin("/api/plugin/refresh-inventory", {"SteamId": steam_id})
