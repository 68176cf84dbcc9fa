"""Error taxonomy for inventory, balance and marketplace operations.

Domain errors are terminal for the request and are turned into failure
results by the services. ``StorageError`` is propagated so the caller can
retry the whole operation; the transaction guarantees nothing was written.
"""


class InventoryError(Exception):
    """Base class for all errors raised by the item economy."""

    kind = "error"
    default_code = "error"

    def __init__(self, code: str | None = None, message: str | None = None):
        self.code = code or self.default_code
        self.message = message or self.code.replace("_", " ").capitalize()
        super().__init__(self.message)

    def to_result(self) -> dict:
        return {
            "success": False,
            "error": self.code,
            "kind": self.kind,
            "message": self.message,
        }


class DomainError(InventoryError):
    """A declined operation. Never retried."""


class NotFound(DomainError):
    kind = "not_found"
    default_code = "not_found"


class InvalidState(DomainError):
    kind = "invalid_state"
    default_code = "invalid_state"


class Unauthorized(DomainError):
    kind = "unauthorized"
    default_code = "unauthorized"


class CapacityExceeded(DomainError):
    kind = "capacity_exceeded"
    default_code = "inventory_full"


class InsufficientFunds(DomainError):
    kind = "insufficient_funds"
    default_code = "insufficient_funds"


class ValidationError(DomainError):
    kind = "validation_error"
    default_code = "validation_error"


class StorageError(InventoryError):
    """Transaction failure or serialization conflict."""

    kind = "storage_error"
    default_code = "storage_error"


class InventoryConflict(StorageError):
    """The inventory changed between read and write."""

    default_code = "inventory_conflict"


class ItemNotFound(NotFound):
    default_code = "item_not_found"

    def __init__(self, key=None, message: str | None = None):
        if message is None and key is not None:
            message = f"Item {key} not found in inventory"
        super().__init__(message=message)


class ListingNotActive(InvalidState):
    default_code = "listing_not_active"


class AlreadyListed(InvalidState):
    default_code = "already_listed"


class RarityMismatch(ValidationError):
    default_code = "rarity_mismatch"


class MaxRarityReached(ValidationError):
    default_code = "max_rarity_reached"
