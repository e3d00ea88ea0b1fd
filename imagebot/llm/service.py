"""Async adapter between pipeline stages and the blocking text client.

Architectural role:
    Provides the single text-generation entrypoint used by PromptEnhancer and
    AsciiArtFallback. It moves the blocking provider call to a worker thread
    and bounds it with a wall-clock timeout.

Model call flow:
    stage -> `generate_text(client, prompt)` -> `asyncio.to_thread(client.generate, ...)`.

Timeout behavior:
    `asyncio.wait_for` stops awaiting after `timeout` seconds and raises
    `TimeoutExceeded`. The worker thread is not interruptible, but the
    client's own socket timeout (same value by default) ends it shortly after.

Determinism:
    Generated output remains non-deterministic because inference runs remotely.
"""

import asyncio
from typing import Protocol

from imagebot.core.errors import ExternalServiceError, TimeoutExceeded
from imagebot.llm.provider_config import TEXT_TIMEOUT_SECONDS


class TextGenerator(Protocol):
    """Minimal blocking interface required from a text-generation client."""

    def generate(self, prompt: str, max_tokens: int = 512, temperature: float = 0.7) -> str:
        ...


async def generate_text(
    client: TextGenerator,
    prompt: str,
    max_tokens: int = 512,
    temperature: float = 0.7,
    timeout: float = TEXT_TIMEOUT_SECONDS,
) -> str:
    """Run one text-generation call under a timeout.

    Args:
        client: Injected text-generation client.
        prompt: Complete instruction text.
        max_tokens: Output token cap.
        temperature: Sampling temperature.
        timeout: Wall-clock ceiling in seconds.

    Returns:
        Generated text, guaranteed not blank and otherwise unmodified.

    Raises:
        TimeoutExceeded: The call did not finish in time.
        ExternalServiceError: Any client failure, including empty output.
    """
    try:
        text = await asyncio.wait_for(
            asyncio.to_thread(client.generate, prompt, max_tokens, temperature),
            timeout=timeout,
        )
    except asyncio.TimeoutError as err:
        raise TimeoutExceeded(timeout) from err

    if not isinstance(text, str) or not text.strip():
        raise ExternalServiceError("Text provider returned no content")
    return text
