"""Intents produced by the command parser.

Intents are plain data carriers; the dispatcher decides how to execute
them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .models import Order, OrderDelta


class QueryKind(Enum):
    ALL = "all"
    LOGISTICS = "logistics"
    PAYMENT = "payment"
    READY_TO_CLOSE = "ready_to_close"
    KEYWORD = "keyword"
    SHORT_ID = "short_id"
    CUSTOMERS = "customers"


class Intent:
    """Base type for parser results."""


@dataclass(frozen=True)
class Help(Intent):
    pass


@dataclass(frozen=True)
class NewOrder(Intent):
    order: Order


@dataclass(frozen=True)
class QuickOrder(NewOrder):
    keyword: str = ""


@dataclass(frozen=True)
class UpdateOrder(Intent):
    short_id: int
    delta: OrderDelta


@dataclass(frozen=True)
class PayByCustomer(Intent):
    """Payment update addressed by customer and product instead of short id."""

    customer: str
    product: str
    delta: OrderDelta


@dataclass(frozen=True)
class Query(Intent):
    kind: QueryKind
    value: Any = None


@dataclass(frozen=True)
class StatusSummary(Intent):
    pass


@dataclass(frozen=True)
class Unrecognized(Intent):
    text: str = ""


@dataclass(frozen=True)
class Malformed(Unrecognized):
    """A command keyword was recognised but its arguments were not.

    ``command`` is the canonical command name ("update" or "pay").
    """

    command: str = ""
