"""Service settings read from the environment.

Entry points load a ``.env`` file (python-dotenv) before calling
``Settings.from_env``; this module only reads variables.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .domain.parser import (
    DEFAULT_LOGISTICS_STATUSES,
    DEFAULT_QUICK_CUSTOMER,
    DEFAULT_QUICK_PRODUCTS,
    DEFAULT_READY_STATUS,
)

DEFAULT_PORT = 3000


@dataclass
class Settings:
    notion_api_key: str
    notion_database_id: str
    line_channel_access_token: str
    # Carried for completeness; inbound signatures are not verified.
    line_channel_secret: str = ""
    field_map: dict[str, str] = field(default_factory=dict)
    logistics_statuses: tuple[str, ...] = DEFAULT_LOGISTICS_STATUSES
    ready_status: str = DEFAULT_READY_STATUS
    quick_products: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_QUICK_PRODUCTS))
    quick_customer: str = DEFAULT_QUICK_CUSTOMER
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ValueError: If a required variable is missing or a value is
                malformed.
        """
        env = os.environ if environ is None else environ

        def required(name: str) -> str:
            value = env.get(name, "").strip()
            if not value:
                raise ValueError(f"Missing required environment variable: {name}")
            return value

        statuses = tuple(
            s.strip()
            for s in env.get("FISH_ORDER_LOGISTICS_STATUSES", "").split(",")
            if s.strip()
        ) or DEFAULT_LOGISTICS_STATUSES

        port_text = env.get("PORT", str(DEFAULT_PORT))
        try:
            port = int(port_text)
        except ValueError:
            raise ValueError(f"PORT must be an integer, got {port_text!r}") from None

        return cls(
            notion_api_key=required("NOTION_API_KEY"),
            notion_database_id=required("NOTION_DATABASE_ID"),
            line_channel_access_token=required("LINE_CHANNEL_ACCESS_TOKEN"),
            line_channel_secret=env.get("LINE_CHANNEL_SECRET", ""),
            field_map=_json_mapping(env, "FISH_ORDER_FIELD_MAP", {}),
            logistics_statuses=statuses,
            ready_status=env.get("FISH_ORDER_READY_STATUS", DEFAULT_READY_STATUS),
            quick_products=_json_mapping(
                env, "FISH_ORDER_QUICK_PRODUCTS", DEFAULT_QUICK_PRODUCTS,
            ),
            quick_customer=env.get("FISH_ORDER_QUICK_CUSTOMER", DEFAULT_QUICK_CUSTOMER),
            port=port,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


def _json_mapping(env: Mapping[str, str], name: str, default: dict[str, str]) -> dict[str, str]:
    raw = env.get(name, "").strip()
    if not raw:
        return dict(default)
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{name} is not valid JSON: {exc}") from exc
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ValueError(f"{name} must be a JSON object of strings")
    return value
