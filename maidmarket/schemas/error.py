"""Error categories shared by the API client and the toggle coordinator."""

from enum import Enum


class ErrorType(str, Enum):
    """Types of errors that can occur while talking to the backend."""

    NETWORK_ERROR = "network_error"
    TIMEOUT_ERROR = "timeout_error"
    SERVER_ERROR = "server_error"
    AUTHENTICATION_ERROR = "authentication_error"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"


def classify_status(status_code: int | None) -> ErrorType:
    """Map an HTTP status (``None`` for transport failures) to an :class:`ErrorType`."""

    if status_code is None:
        return ErrorType.NETWORK_ERROR
    if status_code in (401, 403):
        return ErrorType.AUTHENTICATION_ERROR
    if status_code == 404:
        return ErrorType.NOT_FOUND
    if status_code in (408, 504):
        return ErrorType.TIMEOUT_ERROR
    return ErrorType.SERVER_ERROR
