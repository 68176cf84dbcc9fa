"""Marketplace service for selling items for coins."""

import logging
from datetime import datetime, timedelta
from typing import Any

from flask import current_app
from sqlalchemy import update

from badboys import db
from badboys.errors import (
    AlreadyListed,
    DomainError,
    InvalidState,
    ItemNotFound,
    ListingNotActive,
    NotFound,
    StorageError,
    Unauthorized,
    ValidationError,
)
from badboys.extensions import get_inventory_cache
from badboys.models.currency import CurrencyTransactionType
from badboys.models.item_history import ItemSource, TransferType
from badboys.models.marketplace import ListingStatus, MarketplaceListing, PriceHistory
from badboys.services import inventory_engine as engine
from badboys.services.balance_ledger import BalanceLedger, to_price
from badboys.services.inventory_codec import parse_item, serialize_item
from badboys.services.inventory_store import load_inventory, save_inventory
from badboys.services.outbox import (
    Outbox,
    schedule_inventory_changed,
    schedule_transfer,
)
from badboys.services.rules import inventory_limits
from badboys.services.transaction import atomic

logger = logging.getLogger(__name__)


class MarketplaceService:
    """Service for managing marketplace listings and purchases."""

    def __init__(self, cache=None, ledger: BalanceLedger | None = None):
        self.cache = cache if cache is not None else get_inventory_cache()
        self.ledger = ledger or BalanceLedger()

    def create_listing(
        self, seller_id: str, item_key: str, price, ttl_days: int | None = None
    ) -> dict[str, Any]:
        """List an item for sale. The item leaves the seller's inventory."""
        if ttl_days is None:
            ttl_days = current_app.config["MARKETPLACE_LISTING_TTL_DAYS"]

        outbox = Outbox()
        try:
            price = to_price(price, current_app.config["MARKETPLACE_MAX_PRICE"])
            if not isinstance(ttl_days, int) or ttl_days < 1:
                raise ValidationError("invalid_duration", "Listing must last a day or more")

            with atomic():
                inventory, version = load_inventory(seller_id)
                record = inventory.get(item_key)
                if record is None:
                    raise ItemNotFound(item_key)
                if record.storage:
                    raise ValidationError(
                        "storage_unit_not_empty", "Empty the storage unit before selling it"
                    )
                if self._active_listing_for(seller_id, item_key, record) is not None:
                    raise AlreadyListed(message="Item is already listed")

                inventory, _ = engine.remove(inventory, item_key)
                save_inventory(seller_id, inventory, version)

                now = datetime.utcnow()
                listing = MarketplaceListing(
                    seller_id=seller_id,
                    item_key=item_key,
                    item_uuid=record.uuid,
                    item_uid=record.uid,
                    item_id=record.id,
                    item_data=serialize_item(record),
                    price=price,
                    status=ListingStatus.ACTIVE.value,
                    created_at=now,
                    expires_at=now + timedelta(days=ttl_days),
                )
                db.session.add(listing)
                db.session.flush()

                db.session.add(
                    PriceHistory(
                        item_id=record.id,
                        wear=record.wear,
                        price=price,
                        listing_id=listing.id,
                        sold_at=None,
                    )
                )
                schedule_inventory_changed(outbox, self.cache, seller_id)
        except DomainError as e:
            return e.to_result()

        outbox.flush()
        logger.info(f"Item {item_key} listed by {seller_id} for {price}")
        return {"success": True, "listing": listing.to_dict()}

    def cancel_listing(self, listing_id: int, requester_id: str) -> dict[str, Any]:
        """Withdraw a listing; the item goes back under its original key."""
        outbox = Outbox()
        try:
            with atomic():
                listing = self._get_listing(listing_id)
                if listing.seller_id != requester_id:
                    raise Unauthorized("not_seller", "Only the seller can cancel")
                self._return_to_seller(listing, outbox)
        except DomainError as e:
            return e.to_result()

        outbox.flush()
        logger.info(f"Listing {listing_id} cancelled by {requester_id}")
        return {"success": True, "item_key": listing.item_key}

    def purchase_listing(
        self, listing_id: int, buyer_id: str, now: datetime | None = None
    ) -> dict[str, Any]:
        """Buy a listing: item to the buyer, coins from buyer to seller."""
        now = now or datetime.utcnow()
        outbox = Outbox()
        try:
            with atomic():
                listing = self._get_listing(listing_id)
                if listing.status != ListingStatus.ACTIVE.value:
                    raise ListingNotActive(message="Listing is no longer available")
                if listing.is_expired(now):
                    raise InvalidState("listing_expired", "Listing has expired")
                if listing.seller_id == buyer_id:
                    raise ValidationError("cannot_buy_own", "Cannot buy your own listing")

                seller_id = listing.seller_id
                price = listing.price

                # First purchase wins; a concurrent one matches no row here
                self._transition(
                    listing_id,
                    ListingStatus.SOLD,
                    buyer_id=buyer_id,
                    sold_at=now,
                )

                record = parse_item(listing.item_data)
                inventory, version = load_inventory(buyer_id)
                inventory, (item_key,) = engine.apply(
                    inventory, [engine.receive(record)], inventory_limits(buyer_id)
                )
                save_inventory(buyer_id, inventory, version)

                balance = self.ledger.decrement(
                    buyer_id,
                    price,
                    CurrencyTransactionType.MARKETPLACE_PURCHASE,
                    description=f"Marketplace purchase #{listing_id}",
                    reference_type="listing",
                    reference_id=listing_id,
                    related_user_id=seller_id,
                )
                self.ledger.increment(
                    seller_id,
                    price,
                    CurrencyTransactionType.MARKETPLACE_SALE,
                    description=f"Marketplace sale #{listing_id}",
                    reference_type="listing",
                    reference_id=listing_id,
                    related_user_id=buyer_id,
                )

                db.session.add(
                    PriceHistory(
                        item_id=record.id,
                        wear=record.wear,
                        price=price,
                        listing_id=listing_id,
                        sold_at=now,
                    )
                )

                schedule_transfer(
                    outbox,
                    record,
                    item_key,
                    seller_id,
                    buyer_id,
                    TransferType.MARKETPLACE_BUY,
                    ItemSource.MARKETPLACE,
                    listing_id=listing_id,
                )
                schedule_inventory_changed(outbox, self.cache, buyer_id, seller_id)
        except DomainError as e:
            return e.to_result()

        outbox.flush()
        logger.info(f"Listing {listing_id} bought by {buyer_id} for {price}")
        return {
            "success": True,
            "item_key": item_key,
            "price": str(price),
            "balance": str(balance),
        }

    def expire_listings(self, now: datetime | None = None) -> dict[str, Any]:
        """Cancel every active listing past its expiry, returning the items."""
        now = now or datetime.utcnow()
        listing_ids = [
            listing_id
            for (listing_id,) in db.session.query(MarketplaceListing.id)
            .filter(
                MarketplaceListing.status == ListingStatus.ACTIVE.value,
                MarketplaceListing.expires_at <= now,
            )
            .order_by(MarketplaceListing.id)
            .all()
        ]

        expired = failed = 0
        for listing_id in listing_ids:
            outbox = Outbox()
            try:
                with atomic():
                    self._return_to_seller(self._get_listing(listing_id), outbox)
            except ListingNotActive:
                # Sold or cancelled since the sweep started
                continue
            except (DomainError, StorageError) as e:
                failed += 1
                logger.warning(f"Could not expire listing {listing_id}: {e}")
                continue
            outbox.flush()
            expired += 1

        if expired or failed:
            logger.info(f"Expired {expired} listings, {failed} failed")
        return {"success": True, "expired": expired, "failed": failed}

    def browse_listings(
        self,
        page: int = 1,
        per_page: int = 20,
        item_id: int | None = None,
        min_price=None,
        max_price=None,
        sort_by: str = "newest",
        exclude_seller_id: str | None = None,
    ) -> dict[str, Any]:
        """Browse active, unexpired listings."""
        query = MarketplaceListing.query.filter(
            MarketplaceListing.status == ListingStatus.ACTIVE.value,
            MarketplaceListing.expires_at > datetime.utcnow(),
        )

        # Exclude user's own listings
        if exclude_seller_id:
            query = query.filter(MarketplaceListing.seller_id != exclude_seller_id)

        if item_id is not None:
            query = query.filter(MarketplaceListing.item_id == item_id)
        if min_price is not None:
            query = query.filter(MarketplaceListing.price >= min_price)
        if max_price is not None:
            query = query.filter(MarketplaceListing.price <= max_price)

        # Sorting
        if sort_by == "price_low":
            query = query.order_by(MarketplaceListing.price.asc())
        elif sort_by == "price_high":
            query = query.order_by(MarketplaceListing.price.desc())
        else:  # newest
            query = query.order_by(
                MarketplaceListing.created_at.desc(), MarketplaceListing.id.desc()
            )

        pagination = query.paginate(page=page, per_page=per_page, error_out=False)

        return {
            "listings": [listing.to_dict() for listing in pagination.items],
            "total": pagination.total,
            "page": page,
            "pages": pagination.pages,
        }

    def get_listing(self, listing_id: int) -> dict | None:
        listing = db.session.get(MarketplaceListing, listing_id)
        return listing.to_dict() if listing else None

    def get_user_listings(self, user_id: str, status: str | None = None) -> list[dict]:
        """Get a seller's listings, active ones by default."""
        listings = (
            MarketplaceListing.query.filter_by(
                seller_id=user_id, status=status or ListingStatus.ACTIVE.value
            )
            .order_by(MarketplaceListing.created_at.desc())
            .all()
        )
        return [listing.to_dict() for listing in listings]

    def get_price_history(
        self, item_id: int, sold_only: bool = True, limit: int = 100
    ) -> list[dict]:
        query = PriceHistory.query.filter_by(item_id=item_id)
        if sold_only:
            query = query.filter(PriceHistory.sold_at.isnot(None))
        points = query.order_by(PriceHistory.created_at.desc()).limit(limit).all()
        return [point.to_dict() for point in reversed(points)]

    def _get_listing(self, listing_id: int) -> MarketplaceListing:
        listing = db.session.get(MarketplaceListing, listing_id)
        if listing is None:
            raise NotFound("listing_not_found", f"Listing {listing_id} not found")
        return listing

    def _active_listing_for(self, seller_id, item_key, record):
        query = MarketplaceListing.query.filter_by(status=ListingStatus.ACTIVE.value)
        if record.uuid is not None:
            query = query.filter_by(item_uuid=record.uuid)
        else:
            query = query.filter_by(seller_id=seller_id, item_key=item_key)
        return query.first()

    def _transition(self, listing_id: int, status: ListingStatus, **values) -> None:
        """Move an active listing to ``status``; fails if it is not active anymore."""
        result = db.session.execute(
            update(MarketplaceListing)
            .where(
                MarketplaceListing.id == listing_id,
                MarketplaceListing.status == ListingStatus.ACTIVE.value,
            )
            .values(status=status.value, updated_at=datetime.utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ListingNotActive(message="Listing is no longer available")

    def _return_to_seller(self, listing: MarketplaceListing, outbox: Outbox) -> None:
        """Cancel the listing and merge its item back into the seller inventory.

        Capacity is not enforced: the item only returns to where it was.
        """
        self._transition(listing.id, ListingStatus.CANCELLED)

        record = parse_item(listing.item_data)
        inventory, version = load_inventory(listing.seller_id)
        inventory, _ = engine.add(inventory, record, None, key=listing.item_key)
        save_inventory(listing.seller_id, inventory, version)

        schedule_inventory_changed(outbox, self.cache, listing.seller_id)
