"""Game server notifications and the case opening feed."""

import structlog

from badboys.celery_app import celery

logger = structlog.get_logger()


@celery.task(bind=True)
def notify_case_opened_async(
    self, player_name: str, item_name: str, rarity: str, stat_trak: bool = False
):
    """Broadcast a case opening through the plugin webhook."""
    from badboys.utils.notifications import send_case_opened

    if send_case_opened(player_name, item_name, rarity, stat_trak):
        logger.info("case_opened_broadcast", player=player_name, item=item_name)
        return {"success": True}

    logger.warning("case_opened_webhook_failed", player=player_name, item=item_name)
    return {"success": False, "error": "Webhook not delivered"}


@celery.task(bind=True)
def notify_inventory_changed_async(self, user_id: str):
    """Ask the game server to reload a player's inventory."""
    from badboys.utils.notifications import send_inventory_refresh

    if send_inventory_refresh(user_id):
        logger.info("inventory_refresh_sent", user_id=user_id)
        return {"success": True}

    logger.warning("inventory_refresh_failed", user_id=user_id)
    return {"success": False, "error": "Webhook not delivered"}


@celery.task(bind=True)
def record_case_opening_async(
    self,
    user_id: str,
    case_item_id: int,
    key_item_id: int | None,
    unlocked_item_id: int,
):
    """Add an unlock to the public activity feed."""
    from badboys import db
    from badboys.errors import NotFound
    from badboys.extensions import get_catalog
    from badboys.models import CaseOpening, User

    catalog = get_catalog()

    def _name(item_id):
        if item_id is None:
            return None
        try:
            return catalog.get_by_id(item_id).name
        except NotFound:
            return None

    try:
        user = db.session.get(User, user_id)
        unlocked_rarity = None
        if unlocked_item_id in catalog:
            unlocked_rarity = catalog.get_by_id(unlocked_item_id).tier

        db.session.add(
            CaseOpening(
                user_id=user_id,
                user_name=user.name if user else None,
                case_item_id=case_item_id,
                case_name=_name(case_item_id),
                key_item_id=key_item_id,
                key_name=_name(key_item_id),
                unlocked_item_id=unlocked_item_id,
                unlocked_name=_name(unlocked_item_id),
                unlocked_rarity=unlocked_rarity,
            )
        )
        db.session.commit()
        logger.info("case_opening_recorded", user_id=user_id, case_item_id=case_item_id)
        return {"success": True}

    except Exception as e:
        db.session.rollback()
        logger.error("case_opening_record_failed", user_id=user_id, error=str(e))
        return {"success": False, "error": str(e)}
