"""
Tool response envelopes.

Successful calls return human-readable text plus structured data. Failed
calls return ``isError`` with an ``errorKind`` from the library's error
taxonomy, which a transport can map to a status code:

    validation -> 400, not_found -> 404, conflict -> 409, internal -> 500
"""

import logging
from typing import Any

from ..errors import EntityValidationError, LibraryError

logger = logging.getLogger(__name__)


def success_response(message: str, data: dict[str, Any]) -> dict[str, Any]:
    return {
        "content": [{"type": "text", "text": message}],
        "data": data,
    }


def error_response(operation: str, error: Exception) -> dict[str, Any]:
    """
    Build the error envelope for a failed tool call.

    Must be called from an ``except`` block so internal failures are logged
    with their traceback.
    """
    kind = error.kind if isinstance(error, LibraryError) else "internal"
    if kind == "internal":
        logger.exception("%s failed", operation)
    else:
        logger.info("%s rejected (%s): %s", operation, kind, error)

    response: dict[str, Any] = {
        "isError": True,
        "errorKind": kind,
        "content": [{"type": "text", "text": f"{operation} failed: {error}"}],
    }
    if isinstance(error, EntityValidationError) and error.errors:
        response["errors"] = error.errors
    return response
