"""Payment reconciliation.

Computes the paid amount and payment status an order should have after an
update. Pure functions only; the dispatcher reads the current order and
writes the result.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import CLEAR, OrderDelta, PaymentStatus


@dataclass(frozen=True)
class Reconciliation:
    paid_amount: float
    payment_status: PaymentStatus


def derive_payment_status(amount: float, paid_amount: float) -> PaymentStatus:
    """Payment status implied by the totals.

    Nothing paid is UNPAID, including a zero-amount order. Overpayment
    counts as PAID.
    """
    if paid_amount <= 0:
        return PaymentStatus.UNPAID
    if paid_amount >= amount:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL


def reconcile(
    current_amount: float,
    current_paid: float,
    delta: OrderDelta | None = None,
) -> Reconciliation:
    """Apply the payment part of ``delta`` to the stored totals.

    - ``pay_full`` sets the paid amount to the order amount.
    - An explicit paid amount replaces the stored one (it is not added).
    - A cleared paid amount resets it to 0.
    - The status is always recomputed unless the delta forces one.
    """
    delta = delta or OrderDelta()

    if delta.pay_full:
        paid = current_amount
    elif delta.paid_amount is CLEAR:
        paid = 0
    elif isinstance(delta.paid_amount, (int, float)):
        paid = delta.paid_amount
    else:
        paid = current_paid

    if isinstance(delta.payment_status, PaymentStatus):
        status = delta.payment_status
    else:
        status = derive_payment_status(current_amount, paid)
    return Reconciliation(paid_amount=paid, payment_status=status)
