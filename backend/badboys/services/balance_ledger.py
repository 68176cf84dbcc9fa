"""Coin balance changes.

Balances are only changed through ``increment`` and ``decrement``, each a
single conditional UPDATE paired with a ``currency_transactions`` row. Both
run inside the caller's transaction; nothing here commits.
"""

import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy import select, update

from badboys import db
from badboys.errors import InsufficientFunds, NotFound, ValidationError
from badboys.models.currency import CurrencyTransaction, CurrencyTransactionType
from badboys.models.user import User

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_amount(value) -> Decimal:
    """Parse a non-negative coin amount with two decimals."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("invalid_amount", f"Invalid amount: {value!r}") from None
    if not amount.is_finite() or amount < 0:
        raise ValidationError("invalid_amount", f"Invalid amount: {value!r}")
    if amount != amount.quantize(CENT):
        raise ValidationError("invalid_amount", "Amounts have at most two decimals")
    return amount.quantize(CENT)


def to_price(value, max_price=None) -> Decimal:
    """Parse a strictly positive price, optionally capped."""
    try:
        price = to_amount(value)
    except ValidationError:
        raise ValidationError("invalid_price", f"Invalid price: {value!r}") from None
    if price <= 0:
        raise ValidationError("invalid_price", "Price must be positive")
    if max_price is not None and price > Decimal(str(max_price)):
        raise ValidationError("invalid_price", f"Price cannot exceed {max_price}")
    return price


class BalanceLedger:
    """Atomic coin movements with an audit row per change."""

    def get_balance(self, user_id: str) -> Decimal:
        balance = db.session.execute(
            select(User.coins).where(User.id == user_id)
        ).scalar_one_or_none()
        if balance is None:
            raise NotFound("user_not_found", f"User {user_id} not found")
        return Decimal(balance).quantize(CENT)

    def increment(
        self,
        user_id: str,
        amount,
        transaction_type: CurrencyTransactionType,
        description: str | None = None,
        reference_type: str | None = None,
        reference_id=None,
        related_user_id: str | None = None,
    ) -> Decimal:
        """Credit ``amount``; returns the new balance."""
        amount = to_amount(amount)
        result = db.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(coins=User.coins + amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFound("user_not_found", f"User {user_id} not found")

        self._record(
            user_id,
            amount,
            transaction_type,
            description,
            reference_type,
            reference_id,
            related_user_id,
        )
        return self.get_balance(user_id)

    def decrement(
        self,
        user_id: str,
        amount,
        transaction_type: CurrencyTransactionType,
        description: str | None = None,
        reference_type: str | None = None,
        reference_id=None,
        related_user_id: str | None = None,
    ) -> Decimal:
        """Debit ``amount`` if the balance covers it; returns the new balance."""
        amount = to_amount(amount)
        result = db.session.execute(
            update(User)
            .where(User.id == user_id, User.coins >= amount)
            .values(coins=User.coins - amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Tell a missing user apart from a short balance
            balance = self.get_balance(user_id)
            raise InsufficientFunds(
                message=f"Not enough coins: need {amount}, have {balance}"
            )

        self._record(
            user_id,
            -amount,
            transaction_type,
            description,
            reference_type,
            reference_id,
            related_user_id,
        )
        return self.get_balance(user_id)

    def get_transaction_history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[dict]:
        transactions = (
            CurrencyTransaction.query.filter_by(user_id=user_id)
            .order_by(CurrencyTransaction.created_at.desc(), CurrencyTransaction.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [tx.to_dict() for tx in transactions]

    def _record(
        self,
        user_id,
        amount,
        transaction_type,
        description,
        reference_type,
        reference_id,
        related_user_id,
    ) -> None:
        tx_type = CurrencyTransactionType(transaction_type).value
        db.session.add(
            CurrencyTransaction(
                user_id=user_id,
                amount=amount,
                type=tx_type,
                description=description,
                reference_type=reference_type,
                reference_id=str(reference_id) if reference_id is not None else None,
                related_user_id=related_user_id,
            )
        )
        logger.info(f"Balance of {user_id} changed by {amount} ({tx_type})")
