"""Tests for fish_order.render."""

import pytest

from fish_order.domain.models import FieldMap, Order, PaymentStatus
from fish_order.render import (
    LIST_LIMIT,
    CustomerCategory,
    OrderRenderer,
    classify_customer,
    format_number,
)


def _order(short_id=1, customer="Alice", product="Shirt", amount=500, paid=0,
           status=PaymentStatus.UNPAID, logistics="未處理", **kwargs):
    return Order(
        customer=customer, product=product, quantity=kwargs.pop("quantity", 1),
        amount=amount, paid_amount=paid, payment_status=status,
        logistics_status=logistics, short_id=short_id, page_id=f"p-{short_id}",
        **kwargs,
    )


@pytest.fixture
def renderer():
    return OrderRenderer()


class TestFormatNumber:
    def test_values(self):
        assert format_number(500.0) == "500"
        assert format_number(12.5) == "12.5"
        assert format_number(1.25) == "1.25"
        assert format_number(None) == "-"


class TestCard:
    def test_card_fields(self, renderer):
        text = renderer.card(_order(short_id=7, amount=500, paid=200, memo="gift wrap"))
        assert "#7" in text
        assert "客人名稱：Alice" in text
        assert "商品名稱：Shirt" in text
        assert "金額：500" in text
        assert "尚欠：300" in text
        assert "付款狀態：未付款" in text
        assert "備註：gift wrap" in text

    def test_labels_follow_field_map(self):
        renderer = OrderRenderer(FieldMap({"customer": "Customer"}))
        assert "Customer：Alice" in renderer.card(_order())


class TestDetail:
    def test_includes_secondary_fields(self, renderer):
        order = _order(style="藍色", weight=1.5, url="https://shop.example/1",
                       ship_date="2026-05-01", member_id="M001", intl_shipping=True)
        text = renderer.detail(order)
        assert "款式：藍色" in text
        assert "重量：1.5" in text
        assert "商品網址：https://shop.example/1" in text
        assert "出貨日：2026-05-01" in text
        assert "會員編號：M001" in text
        assert "含國際運：是" in text
        assert "成本：-" in text


class TestOrderList:
    def test_header_and_lines(self, renderer):
        orders = [_order(1, "Alice"), _order(2, "Alice", "Hat", status=PaymentStatus.PAID)]
        text = renderer.order_list(orders, "🔍 搜尋「Alice」")
        lines = text.splitlines()
        assert lines[0] == "🔍 搜尋「Alice」（共 2 筆）"
        assert lines[1] == "#1 Alice Shirt 未付款/未處理"
        assert lines[2] == "#2 Alice Hat 已付款/未處理"

    def test_caps_at_limit_with_true_total(self, renderer):
        orders = [_order(i) for i in range(1, 26)]
        text = renderer.order_list(orders, "全部")
        order_lines = [line for line in text.splitlines() if line.startswith("#")]
        assert len(order_lines) == LIST_LIMIT == 10
        assert "共 25 筆" in text.splitlines()[0]

    def test_empty(self, renderer):
        text = renderer.order_list([], "全部")
        assert "共 0 筆" in text
        assert "沒有符合的訂單" in text


class TestAggregate:
    def test_classify_worst_case_wins(self):
        P = PaymentStatus
        assert classify_customer([P.PAID, P.UNPAID]) is CustomerCategory.HAS_UNPAID
        assert classify_customer([P.PAID, P.PARTIAL]) is CustomerCategory.PARTIAL_ONLY
        assert classify_customer([P.PAID, P.PAID]) is CustomerCategory.ALL_PAID

    def test_groups_and_sorting(self, renderer):
        orders = [
            _order(1, "Alice", status=PaymentStatus.PAID, paid=500),
            _order(2, "Alice", status=PaymentStatus.UNPAID),
            _order(3, "Bob", status=PaymentStatus.PAID, paid=500),
            _order(4, "Carol", status=PaymentStatus.PARTIAL, paid=100),
            _order(5, "Dave", status=PaymentStatus.UNPAID),
            _order(6, "Dave", status=PaymentStatus.UNPAID),
            _order(7, "Dave", status=PaymentStatus.PAID, paid=500),
        ]
        text = renderer.aggregate(orders)
        lines = text.splitlines()
        assert "4 位客人" in lines[0]
        unpaid_at = lines.index("🔴 有未付款（2 位）")
        # Dave (3 orders) before Alice (2 orders)
        assert lines[unpaid_at + 1] == "- Dave 3 筆，尚欠 1000"
        assert lines[unpaid_at + 2] == "- Alice 2 筆，尚欠 500"
        assert "- Carol 1 筆，尚欠 400" in lines
        assert "- Bob 1 筆" in lines

    def test_single_category(self, renderer):
        orders = [
            _order(1, "Alice", status=PaymentStatus.UNPAID),
            _order(2, "Bob", status=PaymentStatus.PAID, paid=500),
        ]
        text = renderer.aggregate(orders, CustomerCategory.ALL_PAID)
        assert "Bob" in text
        assert "Alice" not in text

    def test_empty(self, renderer):
        assert "沒有訂單" in renderer.aggregate([])


class TestStatusTotals:
    def test_counts(self, renderer):
        orders = [
            _order(1, logistics="未處理"),
            _order(2, logistics="未處理", status=PaymentStatus.PAID, paid=500),
            _order(3, logistics="已到貨", paid=100, status=PaymentStatus.PARTIAL),
        ]
        text = renderer.status_totals(orders)
        assert "共 3 筆" in text
        assert "- 未處理：2" in text
        assert "- 已到貨：1" in text
        assert "- 已付款：1" in text
        assert "尚欠總額：900" in text


class TestFixedReplies:
    def test_help_mentions_formats(self):
        renderer = OrderRenderer(
            logistics_statuses=("未處理", "已到貨"), quick_products={"代購": "代購商品"},
        )
        text = renderer.help()
        assert "客人 商品 數量 金額 備註" in text
        assert "未處理 已到貨" in text
        assert "代購" in text

    def test_error_replies(self, renderer):
        assert "7" in renderer.not_found(7)
        assert "資料庫錯誤：boom" in renderer.store_error("boom")
        assert "付款狀態" in renderer.validation_error("付款狀態", "bad")
        assert "bad" in renderer.validation_error(None, "bad")

    def test_usage_hints(self, renderer):
        assert renderer.usage("pay") == "❗格式錯誤：付款 客人 商品 金額/付清/付款狀態"
        assert renderer.usage("update").startswith("❗格式錯誤：改 編號")
        assert renderer.usage("other") == renderer.unrecognized()
