"""Exception types shared by the infra adapters and the dispatcher."""

from __future__ import annotations

from typing import Any


class TransportError(RuntimeError):
    """Network-level failure talking to a remote API."""


class HttpStatusError(TransportError):
    """A remote API answered with a non-2xx status."""

    def __init__(self, status_code: int, payload: Any, message: str | None = None):
        self.status_code = status_code
        self.payload = payload
        super().__init__(message or f"HTTP {status_code}: {payload}")


class StoreError(RuntimeError):
    """The order store rejected or failed a request."""


class StoreValidationError(StoreError):
    """The order store rejected a request as invalid.

    ``property_name`` is set when the offending store property could be
    identified from the error message.
    """

    def __init__(self, message: str, property_name: str | None = None):
        self.property_name = property_name
        super().__init__(message)


class OrderNotFound(LookupError):
    def __init__(self, short_id: int | str):
        self.short_id = short_id
        super().__init__(f"No order with short id {short_id}")


class DeliveryError(RuntimeError):
    """A chat reply could not be delivered."""
