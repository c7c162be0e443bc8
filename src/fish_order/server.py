"""HTTP surface: the chat platform's webhook endpoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from pydantic import BaseModel

from .dispatcher import EventDispatcher

logger = logging.getLogger(__name__)


class WebhookBody(BaseModel):
    destination: str | None = None
    events: list[dict[str, Any]]


def create_app(dispatcher: EventDispatcher) -> FastAPI:
    """FastAPI app exposing ``POST /webhook``.

    Per-message failures are answered in chat and never change the HTTP
    status; only a batch that cannot be processed at all yields a 500.
    The dispatcher's HTTP sessions are closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        dispatcher.close()

    app = FastAPI(lifespan=lifespan)

    @app.get("/")
    async def health():
        return {"status": "ok"}

    @app.post("/webhook")
    async def webhook(request: Request):
        try:
            body = WebhookBody.model_validate(await request.json())
            logger.debug("Webhook delivered %d events", len(body.events))
            return await dispatcher.handle_batch(body.events)
        except Exception:
            logger.exception("Webhook batch failed")
            return Response(status_code=500)

    return app
