"""Reply text for the chat operator.

All functions here are pure formatting; field labels are the store
property names from the FieldMap, so replies use the same vocabulary as
the database the operator looks at.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

import pandas as pd

from .domain.models import FieldMap, Order, OrderField, PaymentStatus

# Orders shown in any list reply. Fixed; the header always states the true total.
LIST_LIMIT = 10

OWED_LABEL = "尚欠"


class CustomerCategory(Enum):
    HAS_UNPAID = "有未付款"
    PARTIAL_ONLY = "僅部分付款"
    ALL_PAID = "已全部付清"


_CATEGORY_ICONS = {
    CustomerCategory.HAS_UNPAID: "🔴",
    CustomerCategory.PARTIAL_ONLY: "🟡",
    CustomerCategory.ALL_PAID: "🟢",
}

# Command name -> argument summary shown when a command is malformed.
_USAGE = {
    "update": "改 編號 欄位 值 …（例：改 7 已付 300）",
    "pay": "付款 客人 商品 金額/付清/付款狀態",
}


def format_number(value: float | None) -> str:
    """Render 500.0 as '500' and 12.5 as '12.5'; None as '-'."""
    if value is None:
        return "-"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def classify_customer(statuses: Iterable[PaymentStatus]) -> CustomerCategory:
    """Worst case wins: any unpaid order outranks partial, partial outranks paid."""
    statuses = set(statuses)
    if PaymentStatus.UNPAID in statuses:
        return CustomerCategory.HAS_UNPAID
    if PaymentStatus.PARTIAL in statuses:
        return CustomerCategory.PARTIAL_ONLY
    return CustomerCategory.ALL_PAID


class OrderRenderer:
    def __init__(
        self,
        field_map: FieldMap | None = None,
        logistics_statuses: tuple[str, ...] = (),
        quick_products: dict[str, str] | None = None,
    ):
        self.field_map = field_map or FieldMap()
        self.logistics_statuses = tuple(logistics_statuses)
        self.quick_products = dict(quick_products or {})

    def _label(self, order_field: OrderField) -> str:
        return self.field_map.name(order_field)

    def _line(self, order_field: OrderField, value: object) -> str:
        return f"{self._label(order_field)}：{value}"

    def _money_lines(self, order: Order) -> list[str]:
        return [
            self._line(OrderField.AMOUNT, format_number(order.amount)),
            self._line(OrderField.PAID_AMOUNT, format_number(order.paid_amount)),
            f"{OWED_LABEL}：{format_number(order.owed)}",
            self._line(OrderField.PAYMENT_STATUS, order.payment_status.value),
            self._line(OrderField.LOGISTICS_STATUS, order.logistics_status or "-"),
        ]

    # ------------------------------------------------------------------ #
    #  Single order views                                                 #
    # ------------------------------------------------------------------ #

    def card(self, order: Order) -> str:
        """Confirmation for a newly created order."""
        lines = [
            f"🎉 已新增訂單 #{order.short_id}",
            self._line(OrderField.CUSTOMER, order.customer),
            self._line(OrderField.PRODUCT, order.product),
            self._line(OrderField.QUANTITY, order.quantity),
            *self._money_lines(order),
        ]
        if order.memo:
            lines.append(self._line(OrderField.MEMO, order.memo))
        return "\n".join(lines)

    def updated(self, order: Order) -> str:
        lines = [
            f"✏️ 已更新訂單 #{order.short_id}",
            f"{order.customer} / {order.product}",
            *self._money_lines(order),
        ]
        return "\n".join(lines)

    def detail(self, order: Order) -> str:
        """Every field of one order."""
        lines = [
            f"📦 訂單 #{order.short_id}",
            self._line(OrderField.CUSTOMER, order.customer),
            self._line(OrderField.PRODUCT, order.product),
            self._line(OrderField.STYLE, order.style or "-"),
            self._line(OrderField.QUANTITY, order.quantity),
            *self._money_lines(order),
            self._line(OrderField.COST, format_number(order.cost)),
            self._line(OrderField.WEIGHT, format_number(order.weight)),
            self._line(OrderField.SHIPPING_FEE, format_number(order.shipping_fee)),
            self._line(OrderField.INTL_SHIPPING, "是" if order.intl_shipping else "否"),
            self._line(OrderField.SHIP_DATE, order.ship_date or "-"),
            self._line(OrderField.MEMBER_ID, order.member_id or "-"),
            self._line(OrderField.URL, order.url or "-"),
            self._line(OrderField.MEMO, order.memo or "-"),
        ]
        return "\n".join(lines)

    # ------------------------------------------------------------------ #
    #  Collections                                                        #
    # ------------------------------------------------------------------ #

    def order_list(self, orders: list[Order], title: str) -> str:
        total = len(orders)
        lines = [f"{title}（共 {total} 筆）"]
        if not orders:
            lines.append("沒有符合的訂單")
            return "\n".join(lines)
        for order in orders[:LIST_LIMIT]:
            lines.append(
                f"#{order.short_id} {order.customer} {order.product} "
                f"{order.payment_status.value}/{order.logistics_status or '-'}"
            )
        if total > LIST_LIMIT:
            lines.append(f"…只顯示最近 {LIST_LIMIT} 筆")
        return "\n".join(lines)

    def aggregate(
        self,
        orders: list[Order],
        category: CustomerCategory | None = None,
    ) -> str:
        """Customers grouped by their worst payment state.

        Within each category customers are sorted by order count,
        descending. With ``category`` only that group is shown.
        """
        title = "👥 客人總覽"
        if not orders:
            return f"{title}\n沒有訂單"

        df = pd.DataFrame([
            {"customer": o.customer, "status": o.payment_status.value, "owed": o.owed}
            for o in orders
        ])
        summary = df.groupby("customer").agg(
            orders=("status", "size"),
            owed=("owed", "sum"),
            category=("status", lambda s: classify_customer(PaymentStatus(v) for v in s).value),
        )
        summary = summary.sort_values("orders", ascending=False, kind="stable")

        categories = [category] if category else list(CustomerCategory)
        lines = [f"{title}（{summary.shape[0]} 位客人，{len(orders)} 筆訂單）"]
        for cat in categories:
            group = summary[summary["category"] == cat.value]
            if group.empty:
                continue
            lines.append(f"{_CATEGORY_ICONS[cat]} {cat.value}（{len(group)} 位）")
            for customer, row in group.iterrows():
                line = f"- {customer} {int(row['orders'])} 筆"
                if row["owed"] > 0:
                    line += f"，{OWED_LABEL} {format_number(row['owed'])}"
                lines.append(line)
        return "\n".join(lines)

    def status_totals(self, orders: list[Order]) -> str:
        """Order counts per logistics and payment status, plus the total owed."""
        lines = [f"📊 訂單統計（共 {len(orders)} 筆）"]
        if not orders:
            return "\n".join(lines)

        df = pd.DataFrame([
            {
                "logistics": o.logistics_status or "-",
                "payment": o.payment_status.value,
                "owed": max(o.owed, 0),
            }
            for o in orders
        ])
        lines.append(f"{self._label(OrderField.LOGISTICS_STATUS)}：")
        for label, count in df["logistics"].value_counts().items():
            lines.append(f"- {label}：{count}")
        lines.append(f"{self._label(OrderField.PAYMENT_STATUS)}：")
        for label, count in df["payment"].value_counts().items():
            lines.append(f"- {label}：{count}")
        lines.append(f"{OWED_LABEL}總額：{format_number(df['owed'].sum())}")
        return "\n".join(lines)

    # ------------------------------------------------------------------ #
    #  Fixed replies                                                      #
    # ------------------------------------------------------------------ #

    def help(self) -> str:
        lines = [
            "📌 指令格式",
            "新增：客人 商品 數量 金額 備註",
            "例：魚魚 相卡 2 350 宅配",
            "修改：改 編號 欄位 值 …",
            "例：改 7 已付 300 物流 已到貨 備註 已通知",
            "欄位：已付 付清 付款狀態 物流 備註 款式 成本 重量 運費 網址 會員 出貨日 國際運",
            "付款：付款 客人 商品 金額/付清",
            "查詢：查 編號 ／ 查 關鍵字",
            "清單：未付款 部分付款 已付款 可結單 查詢",
            "統計：統計 ／ 客人總覽",
        ]
        if self.logistics_statuses:
            lines.append("物流狀態：" + " ".join(self.logistics_statuses))
        if self.quick_products:
            lines.append("快速下單：" + " ".join(self.quick_products) + " [數量] 金額 備註")
        return "\n".join(lines)

    def unrecognized(self) -> str:
        return "❓ 看不懂這個指令（輸入「格式」查看範例）"

    def usage(self, command: str) -> str:
        """Format hint for a command whose arguments could not be read."""
        example = _USAGE.get(command)
        if example is None:
            return self.unrecognized()
        return f"❗格式錯誤：{example}"

    def not_found(self, reference: object) -> str:
        return f"找不到訂單：{reference}"

    def store_error(self, message: str) -> str:
        return f"⚠️ 資料庫錯誤：{message}"

    def validation_error(self, property_name: str | None, message: str) -> str:
        if property_name:
            return f"⚠️ 欄位「{property_name}」的值不被資料庫接受，請檢查選項名稱（含全形/半形）"
        return f"⚠️ 資料庫拒絕了這筆資料：{message}"

    def failure(self) -> str:
        return "⚠️ 處理失敗，請稍後再試"
