"""Request and stage-result data contracts for `imagebot.core.engine`.

Architectural role:
    Defines the immutable records that flow between pipeline stages. Each
    record is produced by exactly one stage and owned by the orchestrator for
    the lifetime of a single request.

Control-flow interaction:
    `engine.ImagePipeline` inspects only the `succeeded` flags to decide
    transitions. `failure_reason` is machine-readable, `diagnostic` is
    human-readable; neither is interpreted for routing.

Tool contracts:
    `to_payload()` renders each record in the camelCase shape exchanged with
    tool callers (`enhance-prompt`, `generate-image`, `ascii-art-fallback`,
    `telegram-reply`).

Determinism:
    The data classes are purely structural and frozen after construction.
"""

import base64
from dataclasses import dataclass
from datetime import datetime, timezone

DEFAULT_STYLE = "realistic"
DEFAULT_DIMENSION = 1024


@dataclass(frozen=True)
class Request:
    """One inbound image request, created once per chat message.

    Attributes:
        original_prompt: User text after command stripping (may be blank).
        style: Artistic style hint forwarded to prompt enhancement.
        width: Requested image width before clamping.
        height: Requested image height before clamping.
        destination: Chat identifier replies are delivered to.
        thread_id: Conversation identifier from the envelope, if any.
    """

    original_prompt: str
    style: str = DEFAULT_STYLE
    width: int = DEFAULT_DIMENSION
    height: int = DEFAULT_DIMENSION
    destination: str = "unknown"
    thread_id: str | None = None


@dataclass(frozen=True)
class EnhancementResult:
    succeeded: bool
    enhanced_prompt: str
    original_prompt: str
    style: str
    diagnostic: str
    failure_reason: str | None = None

    def to_payload(self) -> dict:
        payload = {
            "success": self.succeeded,
            "enhancedPrompt": self.enhanced_prompt,
            "originalPrompt": self.original_prompt,
            "style": self.style,
            "message": self.diagnostic,
        }
        if self.failure_reason:
            payload["error"] = self.failure_reason
        return payload


@dataclass(frozen=True)
class ImageResult:
    """Outcome of one image synthesis attempt.

    Invariant:
        `succeeded` implies `image_bytes` and `mime_type` are present and the
        MIME type starts with `image/`. Violations raise `ValueError` at
        construction time.
    """

    succeeded: bool
    source_prompt: str
    diagnostic: str
    image_bytes: bytes | None = None
    mime_type: str | None = None
    source_url: str | None = None
    failure_reason: str | None = None

    def __post_init__(self):
        if self.succeeded:
            if not self.image_bytes:
                raise ValueError("Successful ImageResult requires image bytes")
            if not self.mime_type or not self.mime_type.startswith("image/"):
                raise ValueError(f"Successful ImageResult requires an image MIME type, got {self.mime_type!r}")

    @property
    def image_base64(self) -> str | None:
        if self.image_bytes is None:
            return None
        return base64.b64encode(self.image_bytes).decode("ascii")

    def to_payload(self) -> dict:
        payload = {
            "success": self.succeeded,
            "imageBase64": self.image_base64,
            "mimeType": self.mime_type,
            "message": self.diagnostic,
            "originalPrompt": self.source_prompt,
        }
        if self.source_url:
            payload["imageUrl"] = self.source_url
        if self.failure_reason:
            payload["error"] = self.failure_reason
        return payload


@dataclass(frozen=True)
class AsciiArtResult:
    succeeded: bool
    art: str
    caption: str
    source_prompt: str
    diagnostic: str
    failure_reason: str | None = None

    def to_payload(self) -> dict:
        payload = {
            "success": self.succeeded,
            "asciiArt": self.art,
            "description": self.caption,
            "originalPrompt": self.source_prompt,
            "message": self.diagnostic,
        }
        if self.failure_reason:
            payload["error"] = self.failure_reason
        return payload


@dataclass(frozen=True)
class DeliveryOutcome:
    delivered: bool
    destination: str
    payload_preview: str
    timestamp: str
    has_image: bool = False

    def to_payload(self) -> dict:
        return {
            "success": self.delivered,
            "chatId": self.destination,
            "messagePreview": self.payload_preview,
            "sentAt": self.timestamp,
            "hasImage": self.has_image,
        }


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def preview(text: str, limit: int = 100) -> str:
    """Shorten `text` for logs and delivery previews."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
