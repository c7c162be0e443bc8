"""Boolean filter trees for order queries.

Filters are store-agnostic; the repository translates them into the
store's native filter syntax.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .models import OrderField


class Op(Enum):
    EQUALS = "equals"
    CONTAINS = "contains"


@dataclass(frozen=True)
class Condition:
    """A single field predicate, e.g. ``customer contains "Alice"``."""

    field: OrderField
    op: Op
    value: Any


@dataclass(frozen=True)
class AllOf:
    children: tuple["Filter", ...]


@dataclass(frozen=True)
class AnyOf:
    children: tuple["Filter", ...]


Filter = Union[Condition, AllOf, AnyOf]


def equals(order_field: OrderField, value: Any) -> Condition:
    return Condition(order_field, Op.EQUALS, value)


def contains(order_field: OrderField, value: Any) -> Condition:
    return Condition(order_field, Op.CONTAINS, value)


def all_of(*children: Filter) -> AllOf:
    return AllOf(tuple(children))


def any_of(*children: Filter) -> AnyOf:
    return AnyOf(tuple(children))
