"""Helpers shared by resource handlers."""

import logging

from fastmcp.exceptions import ResourceError

from ..errors import LibraryError

logger = logging.getLogger(__name__)


def resource_error(action: str, error: Exception) -> ResourceError:
    """
    Translate a failure into the ResourceError a client sees.

    Expected failures (unknown id, invalid parameter) keep their message.
    Anything else is logged with its traceback, so call this from an
    ``except`` block.
    """
    if isinstance(error, ResourceError):
        return error
    if isinstance(error, LibraryError) and error.kind != "internal":
        logger.info("%s: %s", action, error)
        return ResourceError(f"{action}: {error}")
    logger.exception("%s failed", action)
    return ResourceError(f"{action} failed: {error!s}")
