"""LINE Messaging API reply client implementing ReplySender."""

import logging

from ..errors import DeliveryError, TransportError
from .http_client import HttpClient

logger = logging.getLogger(__name__)

LINE_API_BASE_URL = "https://api.line.me/v2/bot"
# LINE rejects text messages longer than this.
MAX_TEXT_LENGTH = 5000


class LineReplyClient:
    """Sends one text reply per reply token.

    Reply tokens are single-use and expire shortly after the webhook is
    delivered; an expired token surfaces as a ``DeliveryError``.
    """

    def __init__(self, channel_access_token: str, timeout: float | None = None):
        self._http = HttpClient(
            headers={
                "Authorization": f"Bearer {channel_access_token}",
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

    def reply(self, reply_token: str, text: str) -> None:
        if len(text) > MAX_TEXT_LENGTH:
            text = text[:MAX_TEXT_LENGTH - 1] + "…"
        try:
            self._http.post(f"{LINE_API_BASE_URL}/message/reply", {
                "replyToken": reply_token,
                "messages": [{"type": "text", "text": text}],
            })
        except TransportError as exc:
            raise DeliveryError(f"LINE reply failed: {exc}") from exc
        logger.debug("Replied to %s (%d chars)", reply_token, len(text))
