"""API blueprints."""

from flask import Blueprint

from badboys.errors import StorageError

api_bp = Blueprint("api", __name__)


@api_bp.errorhandler(StorageError)
def handle_storage_error(error: StorageError):
    """Nothing was written; the client may retry the whole request."""
    from badboys.utils import error_response

    return error_response(error.code, error.message, status_code=503)


from badboys.api import (inventory, items, marketplace,  # noqa: E402, F401
                         plugin, shop, trades)
