"""Business logic services."""

from badboys.services.balance_ledger import BalanceLedger
from badboys.services.identity_ledger import IdentityLedger
from badboys.services.inventory_service import InventoryService
from badboys.services.marketplace_service import MarketplaceService
from badboys.services.shop_service import ShopService
from badboys.services.trade_service import TradeService
from badboys.services.tradeup_service import TradeUpService

__all__ = [
    "BalanceLedger",
    "IdentityLedger",
    "InventoryService",
    "MarketplaceService",
    "ShopService",
    "TradeService",
    "TradeUpService",
]
