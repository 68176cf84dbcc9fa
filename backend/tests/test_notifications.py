"""Tests for the game server webhook client."""

from unittest.mock import MagicMock, patch

import requests

from badboys.utils.notifications import send_case_opened, send_inventory_refresh
from conftest import SELLER_ID


class TestPluginWebhook:
    """Webhook calls to the CS2 server plugin."""

    def test_disabled_without_url(self, app):
        with patch("badboys.utils.notifications.requests.post") as post:
            assert send_inventory_refresh(SELLER_ID) is False
        post.assert_not_called()

    def test_case_opened_payload(self, app):
        app.config["CS2_PLUGIN_WEBHOOK_URL"] = "http://cs2.local/"
        with patch("badboys.utils.notifications.requests.post") as post:
            post.return_value = MagicMock(ok=True)
            assert send_case_opened("Tester", "Rifle | Asiimov", "Covert", True) is True

        post.assert_called_once_with(
            "http://cs2.local/api/plugin/case-opened",
            json={
                "PlayerName": "Tester",
                "ItemName": "Rifle | Asiimov",
                "Rarity": "Covert",
                "StatTrak": True,
            },
            timeout=5,
        )

    def test_failures_are_swallowed(self, app):
        app.config["CS2_PLUGIN_WEBHOOK_URL"] = "http://cs2.local"
        with patch("badboys.utils.notifications.requests.post") as post:
            post.side_effect = requests.ConnectionError("refused")
            assert send_inventory_refresh(SELLER_ID) is False

            post.side_effect = None
            post.return_value = MagicMock(ok=False, status_code=500)
            assert send_inventory_refresh(SELLER_ID) is False
