"""Player-to-player trades of items and coins."""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import update

from badboys import db
from badboys.errors import (
    DomainError,
    InvalidState,
    ItemNotFound,
    NotFound,
    ValidationError,
)
from badboys.extensions import get_inventory_cache
from badboys.models.currency import CurrencyTransactionType
from badboys.models.item_history import ItemSource, TransferType
from badboys.models.trade import TradeOffer
from badboys.models.user import User
from badboys.services import inventory_engine as engine
from badboys.services.balance_ledger import BalanceLedger, to_amount
from badboys.services.inventory_store import load_inventory, save_inventory
from badboys.services.outbox import (
    Outbox,
    schedule_inventory_changed,
    schedule_transfer,
)
from badboys.services.rules import inventory_limits
from badboys.services.transaction import atomic

logger = logging.getLogger(__name__)

PENDING = "pending"


class TradeService:
    """Trade offers. Items stay with their owners until the offer is accepted."""

    def __init__(self, cache=None, ledger: BalanceLedger | None = None):
        self.cache = cache if cache is not None else get_inventory_cache()
        self.ledger = ledger or BalanceLedger()

    def create_trade_offer(
        self,
        sender_id: str,
        receiver_id: str,
        sender_items: list[str] | None = None,
        receiver_items: list[str] | None = None,
        sender_coins=0,
        receiver_coins=0,
        message: str | None = None,
    ) -> dict:
        """Offer ``sender_items`` (+ coins) for ``receiver_items`` (+ coins)."""
        sender_items = list(sender_items or [])
        receiver_items = list(receiver_items or [])
        try:
            if sender_id == receiver_id:
                raise ValidationError("cannot_trade_self", "Cannot trade with yourself")
            sender_coins = to_amount(sender_coins)
            receiver_coins = to_amount(receiver_coins)
            if not (sender_items or receiver_items or sender_coins or receiver_coins):
                raise ValidationError("empty_trade", "Trade offer is empty")
            for keys in (sender_items, receiver_items):
                if len(set(keys)) != len(keys):
                    raise ValidationError("duplicate_item", "Item offered twice")

            if db.session.get(User, receiver_id) is None:
                raise NotFound("user_not_found", f"User {receiver_id} not found")
            self._check_owned(sender_id, sender_items)
            self._check_owned(receiver_id, receiver_items)
        except DomainError as e:
            return e.to_result()

        trade = TradeOffer(
            sender_id=sender_id,
            receiver_id=receiver_id,
            sender_items=sender_items,
            receiver_items=receiver_items,
            sender_coins=sender_coins,
            receiver_coins=receiver_coins,
            message=message,
            status=PENDING,
        )
        db.session.add(trade)
        db.session.commit()

        logger.info(f"Trade {trade.id} offered by {sender_id} to {receiver_id}")
        return {"success": True, "trade": trade.to_dict()}

    def accept_trade(self, user_id: str, trade_id: int) -> dict:
        """Accept a trade offer: swap items and coins in one transaction."""
        outbox = Outbox()
        try:
            with atomic():
                trade = self._get_pending(trade_id)
                if trade.receiver_id != user_id:
                    raise NotFound("trade_not_found", "Trade offer not found")
                self._finish(trade_id, "accepted")

                sender_id, receiver_id = trade.sender_id, trade.receiver_id
                # Fixed lock order across both users
                loaded = {uid: load_inventory(uid) for uid in sorted((sender_id, receiver_id))}
                sender_inv, sender_version = loaded[sender_id]
                receiver_inv, receiver_version = loaded[receiver_id]

                sender_inv, from_sender = self._take(sender_inv, trade.sender_items)
                receiver_inv, from_receiver = self._take(
                    receiver_inv, trade.receiver_items
                )
                sender_inv, sender_keys = engine.apply(
                    sender_inv,
                    [engine.receive(record) for record in from_receiver],
                    inventory_limits(sender_id),
                )
                receiver_inv, receiver_keys = engine.apply(
                    receiver_inv,
                    [engine.receive(record) for record in from_sender],
                    inventory_limits(receiver_id),
                )
                save_inventory(sender_id, sender_inv, sender_version)
                save_inventory(receiver_id, receiver_inv, receiver_version)

                self._move_coins(trade_id, sender_id, receiver_id, trade.sender_coins)
                self._move_coins(trade_id, receiver_id, sender_id, trade.receiver_coins)

                for record, key in zip(from_sender, receiver_keys):
                    schedule_transfer(
                        outbox, record, key, sender_id, receiver_id,
                        TransferType.TRADE, ItemSource.TRADE, trade_id=trade_id,
                    )
                for record, key in zip(from_receiver, sender_keys):
                    schedule_transfer(
                        outbox, record, key, receiver_id, sender_id,
                        TransferType.TRADE, ItemSource.TRADE, trade_id=trade_id,
                    )
                schedule_inventory_changed(outbox, self.cache, sender_id, receiver_id)
        except DomainError as e:
            return e.to_result()

        outbox.flush()
        logger.info(f"Trade {trade_id} accepted by {user_id}")
        return {
            "success": True,
            "trade": db.session.get(TradeOffer, trade_id).to_dict(),
            "received_keys": receiver_keys,
        }

    def decline_trade(self, user_id: str, trade_id: int) -> dict:
        """Decline a trade offer addressed to ``user_id``."""
        return self._close(user_id, trade_id, "declined", "receiver_id")

    def cancel_trade(self, user_id: str, trade_id: int) -> dict:
        """Withdraw a trade offer sent by ``user_id``."""
        return self._close(user_id, trade_id, "cancelled", "sender_id")

    def get_pending_trades(self, user_id: str) -> dict:
        """Get pending trades for user (both sent and received)."""
        incoming = (
            TradeOffer.query.filter_by(receiver_id=user_id, status=PENDING)
            .order_by(TradeOffer.created_at.desc())
            .all()
        )
        outgoing = (
            TradeOffer.query.filter_by(sender_id=user_id, status=PENDING)
            .order_by(TradeOffer.created_at.desc())
            .all()
        )
        return {
            "incoming": [t.to_dict() for t in incoming],
            "outgoing": [t.to_dict() for t in outgoing],
        }

    def _close(self, user_id, trade_id, status, party) -> dict:
        try:
            with atomic():
                trade = self._get_pending(trade_id)
                if getattr(trade, party) != user_id:
                    raise NotFound("trade_not_found", "Trade offer not found")
                self._finish(trade_id, status)
        except DomainError as e:
            return e.to_result()

        logger.info(f"Trade {trade_id} {status} by {user_id}")
        return {"success": True}

    def _get_pending(self, trade_id: int) -> TradeOffer:
        trade = db.session.get(TradeOffer, trade_id)
        if trade is None:
            raise NotFound("trade_not_found", "Trade offer not found")
        if trade.status != PENDING:
            raise InvalidState("trade_not_pending", f"Trade is already {trade.status}")
        return trade

    def _finish(self, trade_id: int, status: str) -> None:
        result = db.session.execute(
            update(TradeOffer)
            .where(TradeOffer.id == trade_id, TradeOffer.status == PENDING)
            .values(status=status, completed_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidState("trade_not_pending", "Trade is no longer pending")

    def _check_owned(self, user_id: str, keys: list[str]) -> None:
        if not keys:
            return
        inventory, _ = load_inventory(user_id, for_update=False)
        for key in keys:
            if key not in inventory:
                raise ItemNotFound(key)

    def _take(self, inventory, keys):
        records = []
        for key in keys:
            inventory, record = engine.remove(inventory, key)
            records.append(record)
        return inventory, records

    def _move_coins(self, trade_id, from_user, to_user, amount) -> None:
        if not amount or Decimal(amount) <= 0:
            return
        self.ledger.decrement(
            from_user,
            amount,
            CurrencyTransactionType.TRADE_OUT,
            description=f"Trade #{trade_id}",
            reference_type="trade",
            reference_id=trade_id,
            related_user_id=to_user,
        )
        self.ledger.increment(
            to_user,
            amount,
            CurrencyTransactionType.TRADE_IN,
            description=f"Trade #{trade_id}",
            reference_type="trade",
            reference_id=trade_id,
            related_user_id=from_user,
        )
