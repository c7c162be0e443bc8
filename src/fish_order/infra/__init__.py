"""Infra layer: adapters for the Notion order store and LINE replies."""

from .http_client import HttpClient
from .line import LineReplyClient
from .notion import NotionOrderRepository, find_schema_problems

__all__ = ["HttpClient", "LineReplyClient", "NotionOrderRepository", "find_schema_problems"]
