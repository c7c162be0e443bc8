"""Chat command parser.

Turns one trimmed chat message into an Intent. The grammar is an ordered
list of rules; each rule either recognises the message or passes it on to
the next one. Parsing never raises: text no rule accepts becomes
``Unrecognized``.

Command summary (Chinese keyword / English alias):

    格式 | help                       -> Help
    改 <id> <field> <value> ...        -> UpdateOrder
    付款 <customer> <product> <value>  -> PayByCustomer
    <logistics label> | 未付款 | ...   -> Query / StatusSummary
    查 <id or keyword>                 -> Query
    <quick keyword> [qty] <amount> ... -> QuickOrder
    <customer> <product> <qty> <amount> [memo] -> NewOrder
"""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Protocol

from .commands import (
    Help,
    Intent,
    Malformed,
    NewOrder,
    PayByCustomer,
    Query,
    QueryKind,
    QuickOrder,
    StatusSummary,
    Unrecognized,
    UpdateOrder,
)
from .models import CLEAR, Order, OrderDelta, PaymentStatus

DEFAULT_LOGISTICS_STATUSES: tuple[str, ...] = (
    "未處理", "處理中", "已到貨", "已出貨", "已結單",
)
DEFAULT_READY_STATUS = "已到貨"
DEFAULT_QUICK_PRODUCTS: dict[str, str] = {
    "代購": "代購商品",
    "現貨": "現貨商品",
}
DEFAULT_QUICK_CUSTOMER = "店內"

HELP_KEYWORDS = frozenset({"格式", "指令", "help", "format", "commands"})
UPDATE_KEYWORDS = frozenset({"改", "更新", "update"})
PAY_KEYWORDS = frozenset({"付款", "pay"})
QUERY_KEYWORDS = frozenset({"查", "query"})

PAY_FULL_WORDS = frozenset({"付清", "全額", "full"})
CLEAR_WORDS = frozenset({"-", "清除", "clear"})
YES_WORDS = frozenset({"是", "有", "要", "y", "yes", "true", "1"})
NO_WORDS = frozenset({"否", "無", "不", "n", "no", "false", "0"})

# Whole-message keywords that are not logistics labels.
_RESERVED_QUERIES: dict[str, Intent] = {
    "未付款": Query(QueryKind.PAYMENT, PaymentStatus.UNPAID),
    "unpaid": Query(QueryKind.PAYMENT, PaymentStatus.UNPAID),
    "部分付款": Query(QueryKind.PAYMENT, PaymentStatus.PARTIAL),
    "partial": Query(QueryKind.PAYMENT, PaymentStatus.PARTIAL),
    "已付款": Query(QueryKind.PAYMENT, PaymentStatus.PAID),
    "paid": Query(QueryKind.PAYMENT, PaymentStatus.PAID),
    "可結單": Query(QueryKind.READY_TO_CLOSE),
    "ready-to-close": Query(QueryKind.READY_TO_CLOSE),
    "查詢": Query(QueryKind.ALL),
    "all": Query(QueryKind.ALL),
    "客人總覽": Query(QueryKind.CUSTOMERS),
    "customers": Query(QueryKind.CUSTOMERS),
    "統計": StatusSummary(),
    "status-totals": StatusSummary(),
}

_INT_RE = re.compile(r"\d+")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")
_DIGITS_RE = re.compile(r"\D")


class _Arity(Enum):
    FLAG = "flag"        # no value
    NUMBER = "number"    # one numeric token
    TOKEN = "token"      # one token
    REST = "rest"        # every remaining token


# Update keyword -> (OrderDelta attribute, arity)
_UPDATE_FIELDS: dict[str, tuple[str, _Arity]] = {
    "已付": ("paid_amount", _Arity.NUMBER),
    "paid": ("paid_amount", _Arity.NUMBER),
    "付清": ("pay_full", _Arity.FLAG),
    "全額": ("pay_full", _Arity.FLAG),
    "full": ("pay_full", _Arity.FLAG),
    "付款狀態": ("payment_status", _Arity.TOKEN),
    "payment-status": ("payment_status", _Arity.TOKEN),
    "物流": ("logistics_status", _Arity.TOKEN),
    "status": ("logistics_status", _Arity.TOKEN),
    "備註": ("memo", _Arity.REST),
    "memo": ("memo", _Arity.REST),
    "款式": ("style", _Arity.TOKEN),
    "style": ("style", _Arity.TOKEN),
    "成本": ("cost", _Arity.NUMBER),
    "cost": ("cost", _Arity.NUMBER),
    "重量": ("weight", _Arity.NUMBER),
    "weight": ("weight", _Arity.NUMBER),
    "運費": ("shipping_fee", _Arity.NUMBER),
    "shipping": ("shipping_fee", _Arity.NUMBER),
    "網址": ("url", _Arity.TOKEN),
    "url": ("url", _Arity.TOKEN),
    "會員": ("member_id", _Arity.TOKEN),
    "member": ("member_id", _Arity.TOKEN),
    "出貨日": ("ship_date", _Arity.TOKEN),
    "ship-date": ("ship_date", _Arity.TOKEN),
    "國際運": ("intl_shipping", _Arity.TOKEN),
    "intl": ("intl_shipping", _Arity.TOKEN),
}


# ------------------------------------------------------------------ #
#  Token helpers                                                       #
# ------------------------------------------------------------------ #


def is_integer_token(token: str) -> bool:
    """True for a run of decimal digits (full-width digits included)."""
    return _INT_RE.fullmatch(token) is not None


def to_number(token: str) -> int | float | None:
    """Parse a numeric token; integral values come back as int."""
    if _NUMBER_RE.fullmatch(token) is None:
        return None
    value = float(token)
    return int(value) if value.is_integer() else value


def short_id_digits(token: str) -> int | None:
    """Reduce a short-id token such as ``#7`` or ``FO-7`` to its number."""
    digits = _DIGITS_RE.sub("", token)
    return int(digits) if digits else None


def parse_ship_date(token: str, today: date | None = None) -> str | None:
    """Normalise a ship date to ISO format.

    Accepts 'YYYY-MM-DD', 'YYYY/MM/DD', 'MM/DD' and 'MM-DD' (current year).
    Returns None for anything else.
    """
    for fmt in ("%Y-%m-%d", "%Y/%m/%d"):
        try:
            return datetime.strptime(token, fmt).date().isoformat()
        except ValueError:
            continue
    year = (today or date.today()).year
    for fmt in ("%m/%d", "%m-%d"):
        try:
            parsed = datetime.strptime(f"{year}/{token}", f"%Y/{fmt}")
        except ValueError:
            continue
        return parsed.date().isoformat()
    return None


def _parse_flag(token: str) -> bool | None:
    word = token.casefold()
    if word in YES_WORDS:
        return True
    if word in NO_WORDS:
        return False
    return None


def _convert_token(attr: str, token: str) -> Any:
    if attr == "payment_status":
        return PaymentStatus.from_label(token)
    if attr == "ship_date":
        return parse_ship_date(token)
    if attr == "intl_shipping":
        return _parse_flag(token)
    return token


def scan_update_fields(tokens: list[str]) -> OrderDelta | None:
    """Scan ``field-keyword [value]`` pairs into an OrderDelta.

    Unknown tokens are skipped, as are keywords whose value is missing or
    malformed. Returns None when no field was recognised.
    """
    values: dict[str, Any] = {}
    pay_full = False
    i = 0
    while i < len(tokens):
        spec = _UPDATE_FIELDS.get(tokens[i].casefold())
        i += 1
        if spec is None:
            continue
        attr, arity = spec

        if arity is _Arity.FLAG:
            pay_full = True
            continue

        if arity is _Arity.REST:
            if i < len(tokens):
                text = " ".join(tokens[i:])
                values[attr] = CLEAR if text.casefold() in CLEAR_WORDS else text
                i = len(tokens)
            continue

        if i >= len(tokens):
            continue
        token = tokens[i]
        if token.casefold() in CLEAR_WORDS:
            values[attr] = CLEAR
            i += 1
            continue

        if arity is _Arity.NUMBER:
            value = to_number(token)
        else:
            value = _convert_token(attr, token)
        if value is None:
            continue
        values[attr] = value
        i += 1

    if not values and not pay_full:
        return None
    return OrderDelta(pay_full=pay_full, **values)


# ------------------------------------------------------------------ #
#  Rules                                                               #
# ------------------------------------------------------------------ #


class ParserRule(Protocol):
    def try_match(self, text: str, tokens: list[str]) -> Intent | None:
        """Return an Intent if this rule accepts the message, else None."""
        ...


class HelpRule:
    def __init__(self, keywords: frozenset[str] = HELP_KEYWORDS):
        self._keywords = {k.casefold() for k in keywords}

    def try_match(self, text, tokens):
        if text.strip().casefold() in self._keywords:
            return Help()
        return None


class UpdateOrderRule:
    """``改 <short-id> <field> <value> [<field> <value> ...]``

    Once the keyword matches, the message is never handed to later rules.
    """

    def try_match(self, text, tokens):
        if tokens[0].casefold() not in UPDATE_KEYWORDS:
            return None
        malformed = Malformed(text, command="update")
        if len(tokens) < 3:
            return malformed
        short_id = short_id_digits(tokens[1])
        if short_id is None:
            return malformed
        delta = scan_update_fields(tokens[2:])
        if delta is None:
            return malformed
        return UpdateOrder(short_id=short_id, delta=delta)


class PayByCustomerRule:
    """``付款 <customer> <product> <amount | 付清 | status label>``"""

    def try_match(self, text, tokens):
        if tokens[0].casefold() not in PAY_KEYWORDS:
            return None
        if len(tokens) < 4:
            return Malformed(text, command="pay")
        customer, product = tokens[1], tokens[2]
        value = " ".join(tokens[3:])

        amount = to_number(value)
        if amount is not None:
            delta = OrderDelta(paid_amount=amount)
        elif value.casefold() in PAY_FULL_WORDS:
            delta = OrderDelta(pay_full=True)
        else:
            status = PaymentStatus.from_label(value)
            if status is None:
                return Malformed(text, command="pay")
            if status is PaymentStatus.PAID:
                delta = OrderDelta(pay_full=True)
            elif status is PaymentStatus.UNPAID:
                delta = OrderDelta(paid_amount=0)
            else:
                delta = OrderDelta(payment_status=status)
        return PayByCustomer(customer=customer, product=product, delta=delta)


class StatusKeywordRule:
    """Whole-message logistics labels and reserved aggregate keywords."""

    def __init__(self, logistics_statuses: tuple[str, ...]):
        self._labels = set(logistics_statuses)

    def try_match(self, text, tokens):
        if text in self._labels:
            return Query(QueryKind.LOGISTICS, text)
        return _RESERVED_QUERIES.get(text.casefold())


class KeywordQueryRule:
    """``查 <short-id>`` for a detail view, ``查 <keyword>`` for a search."""

    def try_match(self, text, tokens):
        if len(tokens) < 2 or tokens[0].casefold() not in QUERY_KEYWORDS:
            return None
        term = " ".join(tokens[1:])
        candidate = term.lstrip("#")
        if is_integer_token(candidate):
            return Query(QueryKind.SHORT_ID, int(candidate))
        return Query(QueryKind.KEYWORD, term)


class QuickOrderRule:
    """``<quick keyword> [qty] <amount> [memo]`` for canned products."""

    def __init__(
        self,
        products: dict[str, str],
        customer: str,
        initial_status: str,
    ):
        self._products = dict(products)
        self._customer = customer
        self._initial_status = initial_status

    def try_match(self, text, tokens):
        product = self._products.get(tokens[0])
        if product is None:
            return None
        rest = tokens[1:]
        numeric = [i for i, tok in enumerate(rest) if is_integer_token(tok)]
        if len(numeric) >= 2:
            used = numeric[:2]
            quantity, amount = int(rest[used[0]]), int(rest[used[1]])
        elif len(numeric) == 1:
            used = numeric
            quantity, amount = 1, int(rest[used[0]])
        else:
            return None
        if quantity <= 0 or amount <= 0:
            return None
        memo = " ".join(tok for i, tok in enumerate(rest) if i not in used)
        order = Order(
            customer=self._customer,
            product=product,
            quantity=quantity,
            amount=amount,
            logistics_status=self._initial_status,
            memo=memo,
        )
        return QuickOrder(order=order, keyword=tokens[0])


class NewOrderRule:
    """``<customer> <product...> <qty> <amount> [memo...]``

    The product name may itself contain digits inside a token (sizes, model
    numbers); only whole numeric tokens count. The first numeric token is
    the quantity and the second is the amount. Tokens between them are
    dropped.
    """

    def __init__(self, initial_status: str):
        self._initial_status = initial_status

    def try_match(self, text, tokens):
        numeric = [i for i in range(1, len(tokens)) if is_integer_token(tokens[i])]
        if len(numeric) < 2:
            return None
        qty_at, amount_at = numeric[0], numeric[1]
        product = " ".join(tokens[1:qty_at])
        quantity, amount = int(tokens[qty_at]), int(tokens[amount_at])
        if not product or quantity <= 0 or amount <= 0:
            return None
        order = Order(
            customer=tokens[0],
            product=product,
            quantity=quantity,
            amount=amount,
            logistics_status=self._initial_status,
            memo=" ".join(tokens[amount_at + 1:]),
        )
        return NewOrder(order=order)


# ------------------------------------------------------------------ #
#  Parser                                                              #
# ------------------------------------------------------------------ #


class CommandParser:
    """Evaluates rules in priority order; the first match wins."""

    def __init__(self, rules: list[ParserRule]):
        self._rules = list(rules)

    @classmethod
    def default(
        cls,
        logistics_statuses: tuple[str, ...] = DEFAULT_LOGISTICS_STATUSES,
        quick_products: dict[str, str] | None = None,
        quick_customer: str = DEFAULT_QUICK_CUSTOMER,
    ) -> "CommandParser":
        """Build the standard rule chain.

        The first logistics status is the initial label for new orders.
        """
        if not logistics_statuses:
            raise ValueError("At least one logistics status is required")
        initial = logistics_statuses[0]
        products = DEFAULT_QUICK_PRODUCTS if quick_products is None else quick_products
        return cls([
            HelpRule(),
            UpdateOrderRule(),
            PayByCustomerRule(),
            StatusKeywordRule(tuple(logistics_statuses)),
            KeywordQueryRule(),
            QuickOrderRule(products, quick_customer, initial),
            NewOrderRule(initial),
        ])

    @property
    def rules(self) -> list[ParserRule]:
        return list(self._rules)

    def parse(self, text: str) -> Intent:
        text = (text or "").strip()
        tokens = text.split()
        if not tokens:
            return Unrecognized(text)
        for rule in self._rules:
            intent = rule.try_match(text, tokens)
            if intent is not None:
                return intent
        return Unrecognized(text)
