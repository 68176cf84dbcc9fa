"""Database models."""

from badboys.models.case_opening import CaseOpening
from badboys.models.currency import CurrencyTransaction, CurrencyTransactionType
from badboys.models.item_history import (
    ItemHistory,
    ItemSource,
    ItemTransfer,
    TransferType,
)
from badboys.models.marketplace import ListingStatus, MarketplaceListing, PriceHistory
from badboys.models.shop import ShopItem
from badboys.models.trade import TradeOffer
from badboys.models.user import User, UserRule

__all__ = [
    "User",
    "UserRule",
    "ItemHistory",
    "ItemTransfer",
    "ItemSource",
    "TransferType",
    "MarketplaceListing",
    "ListingStatus",
    "PriceHistory",
    "CurrencyTransaction",
    "CurrencyTransactionType",
    "ShopItem",
    "TradeOffer",
    "CaseOpening",
]
