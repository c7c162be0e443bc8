"""Order model and the field mapping table.

Each OrderField member names one logical order attribute and carries the
store property kind and default property name it is persisted under. The
rest of the system only deals with typed ``Order`` objects; raw store
property bags never leave the infra layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class PropertyKind(Enum):
    """Store property types used by the order schema."""

    TITLE = "title"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    SELECT = "select"
    URL = "url"
    DATE = "date"
    CHECKBOX = "checkbox"
    UNIQUE_ID = "unique_id"


class OrderField(Enum):
    """Logical order fields.

    Attributes:
        kind: Store property type the field is persisted as.
        default_name: Property name used when no override is configured.
    """

    CUSTOMER = "customer"
    PRODUCT = "product"
    QUANTITY = "quantity"
    AMOUNT = "amount"
    PAID_AMOUNT = "paid_amount"
    PAYMENT_STATUS = "payment_status"
    LOGISTICS_STATUS = "logistics_status"
    MEMO = "memo"
    STYLE = "style"
    COST = "cost"
    WEIGHT = "weight"
    SHIPPING_FEE = "shipping_fee"
    URL = "url"
    SHIP_DATE = "ship_date"
    MEMBER_ID = "member_id"
    INTL_SHIPPING = "intl_shipping"
    SHORT_ID = "short_id"

    @property
    def kind(self) -> PropertyKind:
        return _KINDS[self]

    @property
    def default_name(self) -> str:
        return _DEFAULT_NAMES[self]

    @property
    def writable(self) -> bool:
        """False for properties the store assigns itself."""
        return self is not OrderField.SHORT_ID


_KINDS: dict["OrderField", PropertyKind] = {
    OrderField.CUSTOMER: PropertyKind.RICH_TEXT,
    OrderField.PRODUCT: PropertyKind.RICH_TEXT,
    OrderField.QUANTITY: PropertyKind.NUMBER,
    OrderField.AMOUNT: PropertyKind.NUMBER,
    OrderField.PAID_AMOUNT: PropertyKind.NUMBER,
    OrderField.PAYMENT_STATUS: PropertyKind.SELECT,
    OrderField.LOGISTICS_STATUS: PropertyKind.SELECT,
    OrderField.MEMO: PropertyKind.RICH_TEXT,
    OrderField.STYLE: PropertyKind.RICH_TEXT,
    OrderField.COST: PropertyKind.NUMBER,
    OrderField.WEIGHT: PropertyKind.NUMBER,
    OrderField.SHIPPING_FEE: PropertyKind.NUMBER,
    OrderField.URL: PropertyKind.URL,
    OrderField.SHIP_DATE: PropertyKind.DATE,
    OrderField.MEMBER_ID: PropertyKind.RICH_TEXT,
    OrderField.INTL_SHIPPING: PropertyKind.CHECKBOX,
    OrderField.SHORT_ID: PropertyKind.UNIQUE_ID,
}

_DEFAULT_NAMES: dict["OrderField", str] = {
    OrderField.CUSTOMER: "客人名稱",
    OrderField.PRODUCT: "商品名稱",
    OrderField.QUANTITY: "數量",
    OrderField.AMOUNT: "金額",
    OrderField.PAID_AMOUNT: "已付金額",
    OrderField.PAYMENT_STATUS: "付款狀態",
    OrderField.LOGISTICS_STATUS: "物流狀態",
    OrderField.MEMO: "備註",
    OrderField.STYLE: "款式",
    OrderField.COST: "成本",
    OrderField.WEIGHT: "重量",
    OrderField.SHIPPING_FEE: "預估運費",
    OrderField.URL: "商品網址",
    OrderField.SHIP_DATE: "出貨日",
    OrderField.MEMBER_ID: "會員編號",
    OrderField.INTL_SHIPPING: "含國際運",
    OrderField.SHORT_ID: "訂單編號",
}


class FieldMap:
    """Resolves logical fields to store property names.

    Args:
        overrides: Mapping of logical field name (``OrderField.value``) to the
            property name used in the store, for schemas that differ from the
            defaults.

    Raises:
        ValueError: If an override names an unknown field.
    """

    def __init__(self, overrides: dict[str, str] | None = None):
        self._names = {f: f.default_name for f in OrderField}
        for key, name in (overrides or {}).items():
            try:
                order_field = OrderField(key)
            except ValueError:
                known = ", ".join(f.value for f in OrderField)
                raise ValueError(
                    f"Unknown order field: {key!r}. Known: {known}"
                ) from None
            self._names[order_field] = name

    def name(self, order_field: OrderField) -> str:
        return self._names[order_field]

    def field_for(self, property_name: str) -> OrderField | None:
        """Reverse lookup: the logical field stored under ``property_name``."""
        for order_field, name in self._names.items():
            if name == property_name:
                return order_field
        return None

    def names(self) -> dict[OrderField, str]:
        return dict(self._names)


class PaymentStatus(Enum):
    """Derived payment tri-state. Values are the store's select option names."""

    UNPAID = "未付款"
    PARTIAL = "部分付款"
    PAID = "已付款"

    @classmethod
    def from_label(cls, label: str) -> "PaymentStatus | None":
        """Match an option name or an English alias (case-insensitive)."""
        label = label.strip()
        for status in cls:
            if label == status.value or label.casefold() == status.name.casefold():
                return status
        return None


class _Sentinel:
    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        return False


# Delta field not provided: leave the stored value unchanged.
MISSING: Any = _Sentinel("MISSING")
# Delta field explicitly cleared by the operator.
CLEAR: Any = _Sentinel("CLEAR")


@dataclass
class Order:
    """An order record.

    ``page_id`` and ``short_id`` are assigned by the store and are None for
    an order that has not been created yet.
    """

    customer: str
    product: str
    quantity: int = 1
    amount: float = 0
    paid_amount: float = 0
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    logistics_status: str = ""
    memo: str = ""
    style: str = ""
    cost: float | None = None
    weight: float | None = None
    shipping_fee: float | None = None
    url: str | None = None
    ship_date: str | None = None
    member_id: str = ""
    intl_shipping: bool = False
    page_id: str | None = None
    short_id: int | None = None
    last_edited: str | None = None

    @property
    def owed(self) -> float:
        return self.amount - self.paid_amount


@dataclass
class OrderDelta:
    """Partial update of an order.

    Fields left at ``MISSING`` are not written; fields set to ``CLEAR`` are
    written as empty. ``pay_full`` asks the reconciler to set the paid
    amount to the order amount.
    """

    paid_amount: Any = MISSING
    payment_status: Any = MISSING
    logistics_status: Any = MISSING
    memo: Any = MISSING
    style: Any = MISSING
    cost: Any = MISSING
    weight: Any = MISSING
    shipping_fee: Any = MISSING
    url: Any = MISSING
    ship_date: Any = MISSING
    member_id: Any = MISSING
    intl_shipping: Any = MISSING
    pay_full: bool = field(default=False)

    def provided(self) -> dict[OrderField, Any]:
        """Fields to write, keyed by OrderField."""
        return {
            OrderField(f.name): getattr(self, f.name)
            for f in fields(self)
            if f.name != "pay_full" and getattr(self, f.name) is not MISSING
        }

    def is_empty(self) -> bool:
        return not self.pay_full and not self.provided()
