"""Inbound envelope parsing.

Architectural role:
    Converts an opaque chat-platform update into an immutable `Request`.
    This is the only place that knows the nested Telegram message shape
    (`message.chat.id`, `message.text`).

Malformed input:
    Parsing never raises. Unparsable JSON, non-object payloads and missing
    text all produce a `Request` with an empty prompt, which orchestration
    then rejects through prompt validation.

Hard trigger handling:
    - `/image <prompt>` and `/imagine <prompt>` (optionally `@botname`) are
      stripped to the prompt.
    - `/style <name> <prompt>` sets the style hint.
    - `/start` and `/help` carry no prompt.
"""

import json
import logging
from typing import Any

from imagebot.core.results import Request
from imagebot.llm import provider_config


logger = logging.getLogger(__name__)

IMAGE_COMMANDS = ("/image", "/imagine")
STYLE_COMMAND = "/style"
PROMPTLESS_COMMANDS = ("/start", "/help")


def _load(raw: Any) -> dict:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Discarding unparsable envelope (%d chars)", len(raw))
        return {}
    return data if isinstance(data, dict) else {}


def _command_name(token: str) -> str:
    """Return `/cmd` for `/cmd` or `/cmd@botname`."""
    return token.split("@", 1)[0].lower()


def split_command(text: str) -> tuple[str, str | None]:
    """Strip bot commands from message text.

    Args:
        text: Raw message text.

    Returns:
        `(prompt, style)` where `style` is None unless `/style` was used.
    """
    stripped = text.strip()
    if not stripped.startswith("/"):
        return stripped, None

    head, _, rest = stripped.partition(" ")
    command = _command_name(head)

    if command in IMAGE_COMMANDS:
        return rest.strip(), None

    if command == STYLE_COMMAND:
        style, _, prompt = rest.strip().partition(" ")
        return prompt.strip(), (style.strip().lower() or None)

    if command in PROMPTLESS_COMMANDS:
        return "", None

    return stripped, None


def parse_envelope(
    raw: Any,
    thread_id: str | None = None,
    style: str = provider_config.DEFAULT_STYLE,
    width: int = provider_config.DEFAULT_WIDTH,
    height: int = provider_config.DEFAULT_HEIGHT,
) -> Request:
    """Build a `Request` from a raw chat update.

    Args:
        raw: JSON text, bytes or an already decoded dict.
        thread_id: Conversation identifier supplied alongside the update.
        style: Default style when the message does not choose one.
        width: Requested width.
        height: Requested height.

    Returns:
        Immutable `Request`. Destination is `"unknown"` when no chat id exists.
    """
    data = _load(raw)

    message = data.get("message") or data.get("edited_message") or {}
    if not isinstance(message, dict):
        message = {}

    chat = message.get("chat") or {}
    chat_id = chat.get("id") if isinstance(chat, dict) else None
    destination = str(chat_id) if chat_id is not None else "unknown"

    text = message.get("text")
    if not isinstance(text, str):
        text = ""

    prompt, chosen_style = split_command(text)

    return Request(
        original_prompt=prompt,
        style=chosen_style or style,
        width=width,
        height=height,
        destination=destination,
        thread_id=thread_id,
    )
