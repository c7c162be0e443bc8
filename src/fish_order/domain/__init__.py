"""Domain layer: order model, command grammar and payment rules."""

from .models import CLEAR, MISSING, FieldMap, Order, OrderDelta, OrderField, PaymentStatus
from .parser import CommandParser
from .ports import OrderRepository, ReplySender
from .reconcile import Reconciliation, derive_payment_status, reconcile

__all__ = [
    "CLEAR",
    "MISSING",
    "CommandParser",
    "FieldMap",
    "Order",
    "OrderDelta",
    "OrderField",
    "OrderRepository",
    "PaymentStatus",
    "Reconciliation",
    "ReplySender",
    "derive_payment_status",
    "reconcile",
]
