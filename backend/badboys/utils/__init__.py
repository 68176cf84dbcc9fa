"""Utility functions."""

from badboys.utils.response import (
    error_response,
    not_found,
    result_response,
    success_response,
    unauthorized,
    validation_error,
)

__all__ = [
    "success_response",
    "error_response",
    "result_response",
    "unauthorized",
    "not_found",
    "validation_error",
]
