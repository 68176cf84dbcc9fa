"""Tests for per-user inventory rules."""

from badboys import db
from badboys.models import UserRule
from badboys.services.rules import get_rule, inventory_limits
from conftest import SELLER_ID


def add_rule(name, value):
    db.session.add(UserRule(user_id=SELLER_ID, name=name, value=value))
    db.session.commit()


class TestGetRule:
    """Override lookup with config fallback."""

    def test_config_default(self, app, make_user):
        make_user(SELLER_ID)
        assert get_rule(SELLER_ID, "inventory_max_items") == app.config["INVENTORY_MAX_ITEMS"]
        assert get_rule(None, "inventory_allow_unlock_container") is True

    def test_user_override(self, app, make_user):
        make_user(SELLER_ID)
        add_rule("storage_unit_max_items", "4")
        add_rule("inventory_allow_unlock_container", "no")

        assert inventory_limits(SELLER_ID).storage_unit_max_items == 4
        assert get_rule(SELLER_ID, "inventory_allow_unlock_container") is False

    def test_malformed_override_falls_back(self, app, make_user):
        make_user(SELLER_ID)
        add_rule("inventory_max_items", "abc")

        assert get_rule(SELLER_ID, "inventory_max_items") == app.config["INVENTORY_MAX_ITEMS"]
