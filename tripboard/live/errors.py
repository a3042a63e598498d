"""Errors surfaced to live clients as unicast ``error`` frames."""

from __future__ import annotations


class LiveError(Exception):
    """Base class: carries the HTTP-like status sent back to the requester."""

    status: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidMessageError(LiveError):
    status = 400
    default_message = "Invalid message"


class UnauthenticatedError(LiveError):
    status = 400
    default_message = "Please submit your name first"


class NotFoundError(LiveError):
    status = 404
    default_message = "Not found"


class BoundExceededError(LiveError):
    status = 403
    default_message = "Update rejected, counter is outside its allowed range"


class NotServedError(LiveError):
    """The date exists in the store but its bucket is not loaded in the cache."""

    status = 503
    default_message = "This date is not currently being served"


class ServiceUnavailableError(LiveError):
    status = 503
    default_message = "Service is under maintenance"


class StoreFailureError(LiveError):
    status = 500
    default_message = "Storage error, please try again"
