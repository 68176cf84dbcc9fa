"""API response helpers."""

from typing import Any

from flask import jsonify

# Failure kind -> HTTP status
KIND_STATUS = {
    "not_found": 404,
    "invalid_state": 409,
    "unauthorized": 403,
    "capacity_exceeded": 409,
    "insufficient_funds": 400,
    "validation_error": 400,
    "storage_error": 503,
}


def success_response(
    data: Any = None, message: str | None = None, status_code: int = 200
):
    """Create a success response."""
    response = {"success": True}

    if data is not None:
        response["data"] = data

    if message is not None:
        response["message"] = message

    return jsonify(response), status_code


def error_response(
    code: str, message: str, details: dict | None = None, status_code: int = 400
):
    """Create an error response."""
    response = {"success": False, "error": {"code": code, "message": message}}

    if details is not None:
        response["error"]["details"] = details

    return jsonify(response), status_code


def result_response(result: dict, status_code: int = 200):
    """Turn a service result dict into a response.

    Failures carry ``error`` (code), ``kind`` and ``message``; everything
    else in a successful result becomes the response data.
    """
    if result.get("success"):
        data = {k: v for k, v in result.items() if k != "success"}
        return success_response(data, status_code=status_code)

    return error_response(
        result.get("error", "error"),
        result.get("message", "Request failed"),
        status_code=KIND_STATUS.get(result.get("kind"), 400),
    )


# Common error responses
def unauthorized(message: str = "Unauthorized"):
    """401 Unauthorized response."""
    return error_response("UNAUTHORIZED", message, status_code=401)


def not_found(message: str = "Resource not found"):
    """404 Not Found response."""
    return error_response("NOT_FOUND", message, status_code=404)


def validation_error(details: dict):
    """400 Validation Error response."""
    return error_response(
        "VALIDATION_ERROR", "Invalid input data", details, status_code=400
    )

