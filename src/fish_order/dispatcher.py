"""Webhook event dispatcher.

Each inbound text message is parsed, executed against the order store and
answered with exactly one reply. Messages are independent: nothing is
kept between them, and a batch is processed concurrently with no ordering
guarantee.

Updates read the current totals and then write the reconciled ones. Two
concurrent updates to the same order race; the last write wins.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from .domain.commands import (
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
from .domain.filters import all_of, any_of, contains, equals
from .domain.models import OrderDelta, OrderField, PaymentStatus
from .domain.parser import DEFAULT_READY_STATUS, CommandParser
from .domain.ports import OrderRepository, ReplySender
from .domain.reconcile import reconcile
from .errors import (
    DeliveryError,
    OrderNotFound,
    StoreError,
    StoreValidationError,
    TransportError,
)
from .render import OrderRenderer

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Routes chat events to the parser, the store and the reply sender.

    Args:
        parser: Command grammar.
        repository: Order store.
        sender: Chat reply channel.
        renderer: Reply formatter.
        ready_status: Logistics label that, with full payment, makes an
            order ready to close.
    """

    def __init__(
        self,
        parser: CommandParser,
        repository: OrderRepository,
        sender: ReplySender,
        renderer: OrderRenderer | None = None,
        ready_status: str = DEFAULT_READY_STATUS,
    ):
        self.parser = parser
        self.repository = repository
        self.sender = sender
        self.renderer = renderer or OrderRenderer()
        self.ready_status = ready_status

    def close(self):
        for collaborator in (self.repository, self.sender):
            close = getattr(collaborator, "close", None)
            if close is not None:
                close()

    # ------------------------------------------------------------------ #
    #  Public: event handling                                             #
    # ------------------------------------------------------------------ #

    async def handle_batch(self, events: list[dict]) -> list[dict | None]:
        """Handle every event of one webhook delivery concurrently."""
        tasks = [asyncio.to_thread(self.handle_event, event) for event in events]
        return list(await asyncio.gather(*tasks))

    def handle_event(self, event: dict) -> dict | None:
        """Handle one event.

        Returns the reply that was sent, or None when the event is not a
        text message or the reply could not be delivered.
        """
        if event.get("type") != "message":
            return None
        message = event.get("message") or {}
        if message.get("type") != "text":
            return None

        reply_token = event.get("replyToken", "")
        user_id = (event.get("source") or {}).get("userId")
        text = message.get("text", "")
        logger.info("Message from %s: %r", user_id, text)

        reply = self.respond(text)
        try:
            self.sender.reply(reply_token, reply)
        except DeliveryError:
            logger.exception("Reply to %s failed", user_id)
            return None
        return {"replyToken": reply_token, "text": reply}

    def respond(self, text: str) -> str:
        """Reply text for one message. Store failures become error replies."""
        intent = self.parser.parse(text)
        try:
            return self.execute(intent)
        except OrderNotFound as exc:
            return self.renderer.not_found(exc.short_id)
        except StoreValidationError as exc:
            logger.error("Store rejected %r: %s", text, exc)
            return self.renderer.validation_error(exc.property_name, str(exc))
        except (StoreError, TransportError) as exc:
            logger.error("Store request for %r failed: %s", text, exc)
            return self.renderer.store_error(str(exc))
        except Exception:
            logger.exception("Unexpected failure handling %r", text)
            return self.renderer.failure()

    def execute(self, intent: Intent) -> str:
        handlers = {
            Help: self._help,
            NewOrder: self._create,
            QuickOrder: self._create,
            UpdateOrder: self._update,
            PayByCustomer: self._pay,
            Query: self._query,
            StatusSummary: self._status_summary,
            Unrecognized: self._unrecognized,
            Malformed: self._malformed,
        }
        handler = handlers[type(intent)]
        return handler(intent)

    # ------------------------------------------------------------------ #
    #  Handlers                                                           #
    # ------------------------------------------------------------------ #

    def _help(self, intent: Help) -> str:
        return self.renderer.help()

    def _unrecognized(self, intent: Unrecognized) -> str:
        logger.info("Unrecognized command: %r", intent.text)
        return self.renderer.unrecognized()

    def _malformed(self, intent: Malformed) -> str:
        logger.info("Malformed %s command: %r", intent.command, intent.text)
        return self.renderer.usage(intent.command)

    def _create(self, intent: NewOrder) -> str:
        created = self.repository.create(intent.order)
        return self.renderer.card(created)

    def _update(self, intent: UpdateOrder) -> str:
        page_id = self.repository.find_id_by_short_id(intent.short_id)
        if page_id is None:
            raise OrderNotFound(intent.short_id)
        return self._apply(page_id, intent.delta)

    def _pay(self, intent: PayByCustomer) -> str:
        matches = self.repository.query(all_of(
            equals(OrderField.CUSTOMER, intent.customer),
            contains(OrderField.PRODUCT, intent.product),
        ))
        if not matches:
            raise OrderNotFound(f"{intent.customer} / {intent.product}")
        return self._apply(matches[0].page_id, intent.delta)

    def _apply(self, page_id: str, delta: OrderDelta) -> str:
        current = self.repository.retrieve(page_id)
        result = reconcile(current.amount, current.paid_amount, delta)
        delta = replace(
            delta,
            paid_amount=result.paid_amount,
            payment_status=result.payment_status,
            pay_full=False,
        )
        updated = self.repository.update(page_id, delta)
        return self.renderer.updated(updated)

    def _query(self, intent: Query) -> str:
        kind, value = intent.kind, intent.value

        if kind is QueryKind.SHORT_ID:
            page_id = self.repository.find_id_by_short_id(value)
            if page_id is None:
                raise OrderNotFound(value)
            return self.renderer.detail(self.repository.retrieve(page_id))

        if kind is QueryKind.CUSTOMERS:
            return self.renderer.aggregate(self.repository.query())

        if kind is QueryKind.ALL:
            flt, title = None, "📋 全部訂單"
        elif kind is QueryKind.LOGISTICS:
            flt, title = equals(OrderField.LOGISTICS_STATUS, value), f"🚚 {value}"
        elif kind is QueryKind.PAYMENT:
            flt, title = equals(OrderField.PAYMENT_STATUS, value), f"💰 {value.value}"
        elif kind is QueryKind.READY_TO_CLOSE:
            flt = all_of(
                equals(OrderField.PAYMENT_STATUS, PaymentStatus.PAID),
                equals(OrderField.LOGISTICS_STATUS, self.ready_status),
            )
            title = "✅ 可結單"
        elif kind is QueryKind.KEYWORD:
            flt = any_of(
                contains(OrderField.CUSTOMER, value),
                contains(OrderField.PRODUCT, value),
                contains(OrderField.MEMO, value),
                contains(OrderField.STYLE, value),
            )
            title = f"🔍 搜尋「{value}」"
        else:
            raise ValueError(f"Unsupported query kind: {kind!r}")

        return self.renderer.order_list(self.repository.query(flt), title)

    def _status_summary(self, intent: StatusSummary) -> str:
        return self.renderer.status_totals(self.repository.query())
