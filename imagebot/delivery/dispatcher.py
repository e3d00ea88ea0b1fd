"""Reply dispatch boundary.

Architectural role:
    Hands the final reply of a pipeline run to a delivery transport and
    records the attempt as a `DeliveryOutcome`.

Transport contract:
    `DeliveryTransport.send` either completes or raises. The dispatcher never
    raises; transport failures become `delivered=False` outcomes so the
    orchestrator always reaches its terminal state.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from imagebot.core.results import DeliveryOutcome, preview, utc_timestamp


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplyPayload:
    """Final reply for one request.

    Attributes:
        text: Message text, or photo caption when an image is attached.
        image_bytes: Raw image data for image replies.
        mime_type: MIME type of `image_bytes`.
        parse_mode: Optional transport formatting hint (`HTML`).
    """

    text: str
    image_bytes: bytes | None = None
    mime_type: str | None = None
    parse_mode: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_bytes)


class DeliveryTransport(Protocol):
    """Minimal async interface required from a messaging transport."""

    async def send(self, destination: str, payload: ReplyPayload) -> None:
        """Deliver `payload` to `destination` or raise on failure."""
        ...


class ReplyDispatcher:
    def __init__(self, transport: DeliveryTransport):
        self.transport = transport

    async def dispatch(self, destination: str, payload: ReplyPayload) -> DeliveryOutcome:
        """Send one reply and describe the result.

        Args:
            destination: Chat identifier.
            payload: Reply text and optional image.

        Returns:
            `DeliveryOutcome`; `delivered` is False when the transport raised.
        """
        logger.info(
            "Dispatching reply destination=%s chars=%d has_image=%s",
            destination,
            len(payload.text),
            payload.has_image,
        )

        delivered = True
        try:
            await self.transport.send(destination, payload)
        except Exception:
            logger.exception("Reply delivery failed for destination=%s", destination)
            delivered = False

        return DeliveryOutcome(
            delivered=delivered,
            destination=destination,
            payload_preview=preview(payload.text),
            timestamp=utc_timestamp(),
            has_image=payload.has_image,
        )
