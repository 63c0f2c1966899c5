"""Domain error taxonomy.

Routers never translate these by hand: the global handlers registered in
``bomber.middleware.error_handler`` map each class to an HTTP status.
"""

from __future__ import annotations


class BomberError(Exception):
    """Base class for all progression/reward domain errors."""

    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(BomberError):
    """Implausible or malformed input. Raised before any state is mutated."""

    status_code = 422


class NotFoundError(BomberError):
    """Unknown user, chest, equipment, achievement or venue id."""

    status_code = 404


class AlreadyClaimedError(BomberError):
    """A one-time grant was already applied.

    Services usually convert this into the stored result; it only reaches the
    client when there is nothing stored to return.
    """

    status_code = 409


class InsufficientFundsError(BomberError):
    """Not enough coins or duplicates for an equipment upgrade."""

    status_code = 409


class ConcurrencyConflict(BomberError):
    """Transaction serialization kept failing after the configured retries."""

    status_code = 503

    def __init__(self, detail: str, retry_after: int = 1) -> None:
        super().__init__(detail)
        self.retry_after = retry_after
