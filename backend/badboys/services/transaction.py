"""Transaction boundary shared by the services."""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from badboys import db
from badboys.errors import InventoryError, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def atomic():
    """Run the block in one database transaction.

    Commits when the block finishes. Any exception rolls everything back;
    SQLAlchemy failures come out as ``StorageError`` so callers see a single
    retryable kind.
    """
    try:
        yield db.session
        db.session.commit()
    except InventoryError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Transaction rolled back: {e}")
        raise StorageError(message="Database transaction failed") from e
    except Exception:
        db.session.rollback()
        raise
