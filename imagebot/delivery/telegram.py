"""Delivery transports for the Telegram Bot API.

Processing flow (`TelegramBotTransport`):
    1. Choose `sendPhoto` (multipart upload) when the reply carries an image,
       otherwise `sendMessage`.
    2. Post through the shared `httpx.AsyncClient`.
    3. Raise when the HTTP status or the Bot API `ok` flag reports failure.

Size validation:
    - Photo captions are clipped to 1024 characters and message text to 4096,
      the Bot API limits.

Security considerations:
    - The bot token is part of the request URL and is never logged.
"""

import logging

import httpx

from imagebot.core.errors import ExternalServiceError, HttpError
from imagebot.core.results import preview
from imagebot.delivery.dispatcher import ReplyPayload
from imagebot.llm.provider_config import TELEGRAM_API_URL


logger = logging.getLogger(__name__)

CAPTION_LIMIT = 1024
MESSAGE_LIMIT = 4096

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


class TelegramBotTransport:
    def __init__(
        self,
        token: str,
        http_client: httpx.AsyncClient,
        api_url: str = TELEGRAM_API_URL,
    ):
        if not token:
            raise RuntimeError("TELEGRAM_BOT_TOKEN not configured")
        self.http_client = http_client
        self._base_url = f"{api_url.rstrip('/')}/bot{token}"

    async def send(self, destination: str, payload: ReplyPayload) -> None:
        if payload.has_image:
            mime_type = payload.mime_type or "image/jpeg"
            filename = f"image.{_EXTENSIONS.get(mime_type, 'jpg')}"
            data = {"chat_id": destination, "caption": payload.text[:CAPTION_LIMIT]}
            if payload.parse_mode:
                data["parse_mode"] = payload.parse_mode
            await self._post(
                "sendPhoto",
                data=data,
                files={"photo": (filename, payload.image_bytes, mime_type)},
            )
            return

        body = {"chat_id": destination, "text": payload.text[:MESSAGE_LIMIT]}
        if payload.parse_mode:
            body["parse_mode"] = payload.parse_mode
        await self._post("sendMessage", json=body)

    async def _post(self, method: str, **kwargs) -> dict:
        try:
            response = await self.http_client.post(f"{self._base_url}/{method}", **kwargs)
        except httpx.RequestError as err:
            raise ExternalServiceError(f"Telegram {method} failed: {type(err).__name__}") from err

        if not response.is_success:
            raise HttpError(response.status_code, f"from Telegram {method}")

        try:
            data = response.json()
        except ValueError as err:
            raise ExternalServiceError(f"Telegram {method} returned invalid JSON") from err

        if not data.get("ok"):
            raise ExternalServiceError(
                f"Telegram {method} rejected: {data.get('description', 'unknown error')}"
            )
        return data


class LoggingTransport:
    """Transport that only logs replies; used without a bot token and by the CLI."""

    async def send(self, destination: str, payload: ReplyPayload) -> None:
        logger.info(
            "Reply prepared destination=%s has_image=%s text=%r",
            destination,
            payload.has_image,
            preview(payload.text),
        )
