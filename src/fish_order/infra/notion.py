"""Notion database adapter implementing OrderRepository.

Maps Notion page property bags to typed ``Order`` objects and filter trees
to Notion's compound filter syntax. Property names come from the FieldMap,
so a database whose columns are named differently only needs overrides.

Both payment and logistics status are single-choice ``select`` properties.
The short id is the database's auto-increment ``unique_id`` property.
"""

import logging
import unicodedata
from typing import Any

from ..domain.filters import AllOf, AnyOf, Condition, Filter, equals
from ..domain.models import (
    CLEAR,
    FieldMap,
    Order,
    OrderDelta,
    OrderField,
    PaymentStatus,
    PropertyKind,
)
from ..domain.parser import DEFAULT_LOGISTICS_STATUSES, short_id_digits
from ..domain.reconcile import derive_payment_status
from ..errors import HttpStatusError, OrderNotFound, StoreError, StoreValidationError
from .http_client import HttpClient

logger = logging.getLogger(__name__)

NOTION_BASE_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
PAGE_SIZE = 100
# Notion caps a single rich-text object at 2000 characters.
TEXT_CHUNK = 2000

_SORT_LAST_EDITED = [{"timestamp": "last_edited_time", "direction": "descending"}]

# Secondary numeric fields written as 0 when an order is created without them.
_ZERO_ON_CREATE = {OrderField.COST, OrderField.WEIGHT, OrderField.SHIPPING_FEE}


# ------------------------------------------------------------------ #
#  Property encoding                                                   #
# ------------------------------------------------------------------ #


def encode_property(kind: PropertyKind, value: Any) -> dict:
    """Encode one value as a Notion property payload.

    ``CLEAR`` and empty values become explicit empties: an empty rich-text
    array for text, null for everything else.
    """
    if isinstance(value, PaymentStatus):
        value = value.value
    empty = value is CLEAR or value is None or value == ""

    if kind in (PropertyKind.RICH_TEXT, PropertyKind.TITLE):
        if empty:
            return {kind.value: []}
        text = str(value)
        chunks = [text[i:i + TEXT_CHUNK] for i in range(0, len(text), TEXT_CHUNK)]
        return {kind.value: [{"text": {"content": c}} for c in chunks]}
    if kind is PropertyKind.NUMBER:
        return {"number": None if empty else value}
    if kind is PropertyKind.SELECT:
        return {"select": None if empty else {"name": str(value)}}
    if kind is PropertyKind.URL:
        return {"url": None if empty else str(value)}
    if kind is PropertyKind.DATE:
        return {"date": None if empty else {"start": str(value)}}
    if kind is PropertyKind.CHECKBOX:
        return {"checkbox": False if value is CLEAR else bool(value)}
    raise ValueError(f"Property kind {kind.value!r} is read-only")


def decode_property(kind: PropertyKind, prop: dict | None) -> Any:
    """Decode a Notion property payload. Missing properties decode to None."""
    if not prop:
        return None
    if kind in (PropertyKind.RICH_TEXT, PropertyKind.TITLE):
        parts = prop.get(kind.value) or prop.get("rich_text") or prop.get("title") or []
        return "".join(
            p.get("plain_text") or p.get("text", {}).get("content", "")
            for p in parts
        )
    if kind is PropertyKind.NUMBER:
        return prop.get("number")
    if kind is PropertyKind.SELECT:
        selected = prop.get("select")
        return selected.get("name") if selected else None
    if kind is PropertyKind.URL:
        return prop.get("url")
    if kind is PropertyKind.DATE:
        value = prop.get("date")
        return value.get("start") if value else None
    if kind is PropertyKind.CHECKBOX:
        return bool(prop.get("checkbox"))
    if kind is PropertyKind.UNIQUE_ID:
        value = prop.get("unique_id")
        return value.get("number") if value else None
    return None


# ------------------------------------------------------------------ #
#  Repository                                                          #
# ------------------------------------------------------------------ #


class NotionOrderRepository:
    """Order store backed by one Notion database.

    Implements the ``OrderRepository`` protocol.
    """

    def __init__(
        self,
        api_key: str,
        database_id: str,
        field_map: FieldMap | None = None,
        initial_status: str = DEFAULT_LOGISTICS_STATUSES[0],
        timeout: float | None = None,
    ):
        self.database_id = database_id
        self.field_map = field_map or FieldMap()
        self.initial_status = initial_status
        self._http = HttpClient(
            headers={
                "Authorization": f"Bearer {api_key}",
                "Notion-Version": NOTION_VERSION,
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    # ------------------------------------------------------------------ #
    #  Public: OrderRepository                                            #
    # ------------------------------------------------------------------ #

    def create(self, order: Order) -> Order:
        properties = self._order_properties(order)
        page = self._call("POST", "/pages", {
            "parent": {"database_id": self.database_id},
            "properties": properties,
        })
        created = self._to_order(page)
        logger.info(
            "Created order #%s for %s (%s)",
            created.short_id, created.customer, created.product,
        )
        return created

    def find_id_by_short_id(self, short_id: int | str) -> str | None:
        number = short_id_digits(str(short_id))
        if number is None:
            return None
        pages = self._query_pages(equals(OrderField.SHORT_ID, number), limit=1)
        if not pages:
            return None
        return pages[0]["id"]

    def retrieve(self, page_id: str) -> Order:
        page = self._call("GET", f"/pages/{page_id}", not_found=page_id)
        return self._to_order(page)

    def update(self, page_id: str, delta: OrderDelta) -> Order:
        properties = self._delta_properties(delta)
        page = self._call(
            "PATCH", f"/pages/{page_id}", {"properties": properties},
            not_found=page_id,
        )
        updated = self._to_order(page)
        logger.info(
            "Updated order #%s: %s",
            updated.short_id, ", ".join(f.value for f in delta.provided()),
        )
        return updated

    def query(self, filter: Filter | None = None) -> list[Order]:
        return [self._to_order(page) for page in self._query_pages(filter)]

    def fetch_schema(self) -> dict:
        """Raw database object, including its property definitions."""
        return self._call("GET", f"/databases/{self.database_id}")

    # ------------------------------------------------------------------ #
    #  Internal: API helpers                                              #
    # ------------------------------------------------------------------ #

    def _call(
        self,
        method: str,
        path: str,
        body: dict | None = None,
        not_found: str | None = None,
    ) -> dict:
        try:
            return self._http.request(method, f"{NOTION_BASE_URL}{path}", json=body)
        except HttpStatusError as exc:
            if exc.status_code == 404 and not_found is not None:
                raise OrderNotFound(not_found) from exc
            raise self._store_error(exc) from exc

    def _store_error(self, exc: HttpStatusError) -> StoreError:
        payload = exc.payload if isinstance(exc.payload, dict) else {}
        code = payload.get("code", "")
        message = payload.get("message") or str(exc.payload)
        if exc.status_code == 400 and code == "validation_error":
            name = self._detect_property(message)
            logger.warning("Notion validation error (property=%s): %s", name, message)
            return StoreValidationError(message, property_name=name)
        logger.error("Notion API error %s %s: %s", exc.status_code, code, message)
        return StoreError(f"Notion API error {exc.status_code}: {message}")

    def _detect_property(self, message: str) -> str | None:
        names = sorted(self.field_map.names().values(), key=len, reverse=True)
        for name in names:
            if name in message:
                return name
        return None

    def _query_pages(self, filter: Filter | None, limit: int | None = None) -> list[dict]:
        """Run a database query, following pagination cursors."""
        body: dict[str, Any] = {
            "sorts": _SORT_LAST_EDITED,
            "page_size": min(limit, PAGE_SIZE) if limit else PAGE_SIZE,
        }
        if filter is not None:
            body["filter"] = self._translate_filter(filter)

        pages: list[dict] = []
        while True:
            data = self._call("POST", f"/databases/{self.database_id}/query", body)
            pages.extend(data.get("results", []))
            if limit and len(pages) >= limit:
                return pages[:limit]
            if not data.get("has_more") or not data.get("next_cursor"):
                break
            body["start_cursor"] = data["next_cursor"]

        logger.debug("Query returned %d pages", len(pages))
        return pages

    def _translate_filter(self, node: Filter) -> dict:
        if isinstance(node, AllOf):
            return {"and": [self._translate_filter(c) for c in node.children]}
        if isinstance(node, AnyOf):
            return {"or": [self._translate_filter(c) for c in node.children]}
        if isinstance(node, Condition):
            return self._translate_condition(node)
        raise TypeError(f"Cannot translate filter node {type(node).__name__}")

    def _translate_condition(self, cond: Condition) -> dict:
        kind = cond.field.kind
        value = cond.value.value if isinstance(cond.value, PaymentStatus) else cond.value
        if kind in (PropertyKind.SELECT, PropertyKind.DATE):
            predicate = {"equals": str(value)}
        elif kind in (PropertyKind.NUMBER, PropertyKind.UNIQUE_ID):
            predicate = {"equals": value}
        elif kind is PropertyKind.CHECKBOX:
            predicate = {"equals": bool(value)}
        else:
            predicate = {cond.op.value: str(value)}
        return {"property": self.field_map.name(cond.field), kind.value: predicate}

    # ------------------------------------------------------------------ #
    #  Internal: mapping                                                  #
    # ------------------------------------------------------------------ #

    def _order_properties(self, order: Order) -> dict:
        """Full property set for a new order, with the forced initial state."""
        values = {f: getattr(order, f.value) for f in OrderField if f.writable}
        values[OrderField.PAID_AMOUNT] = 0
        values[OrderField.PAYMENT_STATUS] = PaymentStatus.UNPAID
        values[OrderField.LOGISTICS_STATUS] = self.initial_status
        for f in _ZERO_ON_CREATE:
            if values[f] is None:
                values[f] = 0
        return {
            self.field_map.name(f): encode_property(f.kind, value)
            for f, value in values.items()
        }

    def _delta_properties(self, delta: OrderDelta) -> dict:
        return {
            self.field_map.name(f): encode_property(f.kind, value)
            for f, value in delta.provided().items()
        }

    def _to_order(self, page: dict) -> Order:
        props = page.get("properties", {})

        def value(f: OrderField) -> Any:
            return decode_property(f.kind, props.get(self.field_map.name(f)))

        amount = value(OrderField.AMOUNT) or 0
        paid = value(OrderField.PAID_AMOUNT) or 0
        status = PaymentStatus.from_label(value(OrderField.PAYMENT_STATUS) or "")
        return Order(
            customer=value(OrderField.CUSTOMER) or "",
            product=value(OrderField.PRODUCT) or "",
            quantity=int(value(OrderField.QUANTITY) or 0),
            amount=amount,
            paid_amount=paid,
            payment_status=status or derive_payment_status(amount, paid),
            logistics_status=value(OrderField.LOGISTICS_STATUS) or "",
            memo=value(OrderField.MEMO) or "",
            style=value(OrderField.STYLE) or "",
            cost=value(OrderField.COST),
            weight=value(OrderField.WEIGHT),
            shipping_fee=value(OrderField.SHIPPING_FEE),
            url=value(OrderField.URL),
            ship_date=value(OrderField.SHIP_DATE),
            member_id=value(OrderField.MEMBER_ID) or "",
            intl_shipping=bool(value(OrderField.INTL_SHIPPING)),
            page_id=page.get("id"),
            short_id=value(OrderField.SHORT_ID),
            last_edited=page.get("last_edited_time"),
        )


# ------------------------------------------------------------------ #
#  Schema check                                                        #
# ------------------------------------------------------------------ #


def _width_folded(text: str) -> str:
    return unicodedata.normalize("NFKC", text).strip()


def _near_miss(expected: str, candidates) -> str | None:
    """A candidate equal to ``expected`` once half/full width is folded."""
    folded = _width_folded(expected)
    for candidate in candidates:
        if candidate != expected and _width_folded(candidate) == folded:
            return candidate
    return None


def find_schema_problems(
    schema: dict,
    field_map: FieldMap,
    logistics_statuses: tuple[str, ...] = DEFAULT_LOGISTICS_STATUSES,
) -> list[str]:
    """Compare a Notion database schema with what the service writes.

    Select option names must match exactly; names that only differ in
    half-width/full-width characters are reported as near misses.
    """
    props: dict = schema.get("properties", {})
    problems: list[str] = []
    expected_options = {
        OrderField.PAYMENT_STATUS: [s.value for s in PaymentStatus],
        OrderField.LOGISTICS_STATUS: list(logistics_statuses),
    }

    for f in OrderField:
        name = field_map.name(f)
        prop = props.get(name)
        if prop is None:
            near = _near_miss(name, props)
            if near:
                problems.append(
                    f"{f.value}: property {name!r} not found; "
                    f"{near!r} differs only in character width"
                )
            else:
                problems.append(f"{f.value}: property {name!r} not found")
            continue

        actual = prop.get("type")
        if actual != f.kind.value:
            problems.append(
                f"{f.value}: property {name!r} is {actual!r}, expected {f.kind.value!r}"
            )
            continue

        if f in expected_options:
            options = [o.get("name", "") for o in prop.get("select", {}).get("options", [])]
            for option in expected_options[f]:
                if option in options:
                    continue
                near = _near_miss(option, options)
                if near:
                    problems.append(
                        f"{f.value}: option {option!r} missing; "
                        f"{near!r} differs only in character width"
                    )
                else:
                    problems.append(f"{f.value}: option {option!r} missing")

    return problems
