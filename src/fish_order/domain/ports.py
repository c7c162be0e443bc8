"""Interfaces the dispatcher needs from its collaborators.

The order store and the chat platform are external; these protocols are
all the application layer knows about them.
"""

from __future__ import annotations

from typing import Protocol

from .filters import Filter
from .models import Order, OrderDelta


class OrderRepository(Protocol):
    """Persistence for order records. Every call is a remote call."""

    def create(self, order: Order) -> Order:
        """Store a new order and return it with its store-assigned ids.

        Payment status, paid amount and logistics status are forced to
        their initial values.
        """
        ...

    def find_id_by_short_id(self, short_id: int | str) -> str | None:
        """Internal id of the order with this short id, or None."""
        ...

    def retrieve(self, page_id: str) -> Order:
        ...

    def update(self, page_id: str, delta: OrderDelta) -> Order:
        """Overwrite only the fields the delta provides."""
        ...

    def query(self, filter: Filter | None = None) -> list[Order]:
        """All matching orders, most recently edited first."""
        ...


class ReplySender(Protocol):
    """Outbound side of the chat platform."""

    def reply(self, reply_token: str, text: str) -> None:
        ...
