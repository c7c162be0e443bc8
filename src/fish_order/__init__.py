"""fish_order: chat-driven order entry on top of a Notion database.

Usage:
    from fish_order import Settings, create_dispatcher

    dispatcher = create_dispatcher(Settings.from_env())
    dispatcher.respond("魚魚 相卡 2 350 宅配")
"""

from .config import Settings
from .domain.models import FieldMap, Order, OrderDelta, OrderField, PaymentStatus
from .domain.parser import CommandParser


def create_dispatcher(settings: Settings):
    """Wire the Notion repository, LINE reply client, parser and renderer.

    Clients are created once here and shared by every message.

    Raises:
        ValueError: If the settings hold an unknown field-map key.
    """
    from .dispatcher import EventDispatcher
    from .infra.line import LineReplyClient
    from .infra.notion import NotionOrderRepository
    from .render import OrderRenderer

    field_map = FieldMap(settings.field_map)
    parser = CommandParser.default(
        logistics_statuses=settings.logistics_statuses,
        quick_products=settings.quick_products,
        quick_customer=settings.quick_customer,
    )
    repository = NotionOrderRepository(
        settings.notion_api_key,
        settings.notion_database_id,
        field_map=field_map,
        initial_status=settings.logistics_statuses[0],
    )
    sender = LineReplyClient(settings.line_channel_access_token)
    renderer = OrderRenderer(
        field_map,
        logistics_statuses=settings.logistics_statuses,
        quick_products=settings.quick_products,
    )
    return EventDispatcher(
        parser, repository, sender, renderer, ready_status=settings.ready_status,
    )


__all__ = [
    "CommandParser",
    "FieldMap",
    "Order",
    "OrderDelta",
    "OrderField",
    "PaymentStatus",
    "Settings",
    "create_dispatcher",
]
