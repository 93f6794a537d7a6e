"""Exception hierarchy raised by the maidmarket client."""

from __future__ import annotations

from maidmarket.schemas.error import ErrorType, classify_status


class MaidMarketError(Exception):
    """Base class for every error raised by this package."""


class ApiError(MaidMarketError):
    """The backend rejected a request or could not be reached.

    ``status_code`` is ``None`` when the failure happened below HTTP (DNS,
    refused connection, transport timeout).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_type: ErrorType | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type or classify_status(status_code)


class ToggleMutationFailed(MaidMarketError):
    """A favorite add/remove did not succeed and the toggle was rolled back."""

    def __init__(
        self,
        maid_id: str,
        intended_value: bool,
        *,
        reason: ErrorType = ErrorType.INTERNAL_ERROR,
        detail: str | None = None,
    ) -> None:
        action = "add" if intended_value else "remove"
        message = f"Failed to {action} favorite {maid_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.maid_id = maid_id
        self.intended_value = intended_value
        self.reason = reason
        self.detail = detail


__all__ = ["ApiError", "MaidMarketError", "ToggleMutationFailed"]
