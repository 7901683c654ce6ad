"""Error handling utilities.

Uniform error handling and user-facing error messages.
"""

from __future__ import annotations

from typing import Any

from checkform.utils.exceptions import (
    AppException,
    AssetError,
    ConfigError,
    DatabaseError,
    EditValidationError,
    PersistenceError,
    TemplateImportError,
    TemplateNotFoundError,
)
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)


# Generic messages for whole error families. Validation errors carry their
# own precise message and are not listed here.
ERROR_MESSAGES = {
    TemplateNotFoundError: "The template no longer exists. Reload the template list.",
    DatabaseError: "The version history could not be read or written.",
    PersistenceError: "Saving failed. Your changes are kept locally, try again.",
    TemplateImportError: "The file is not a valid template export.",
    AssetError: "The image could not be uploaded.",
    ConfigError: "Configuration error, check the settings file.",
}


def get_user_friendly_message(exception: Exception) -> str:
    """Get a user-facing message for an exception.

    Args:
        exception: Exception instance

    Returns:
        Message suitable for a status bar or toast
    """
    if isinstance(exception, EditValidationError):
        return exception.message

    for exc_type, message in ERROR_MESSAGES.items():
        if isinstance(exception, exc_type):
            return message

    if isinstance(exception, AppException):
        return exception.message

    return "Operation failed, please try again."


def get_error_details(exception: Exception) -> dict[str, Any]:
    """Get error details.

    Args:
        exception: Exception instance

    Returns:
        Dict with type, message, user message and code when available
    """
    details = {
        "type": type(exception).__name__,
        "message": str(exception),
        "user_message": get_user_friendly_message(exception),
    }

    if isinstance(exception, AppException):
        details["code"] = exception.code

    return details


def handle_exception(
    exception: Exception,
    context: str = "",
    reraise: bool = True,
    log_traceback: bool = True,
) -> None:
    """Uniform exception handling.

    Args:
        exception: Exception instance
        context: Context description
        reraise: Re-raise after logging
        log_traceback: Log the stack trace
    """
    msg = "Exception raised"
    if context:
        msg = f"{context}: {msg}"

    if log_traceback:
        logger.exception(f"{msg}: {exception}")
    else:
        logger.error(f"{msg}: {exception}")

    if reraise:
        raise exception
