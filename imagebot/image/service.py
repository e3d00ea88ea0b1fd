"""Image synthesis stage.

Role in pipeline:
    - Receives the (possibly enhanced) prompt from orchestration.
    - Validates and clamps inputs, then fetches one image from the provider.
    - Returns an `ImageResult`; failures are reported, never raised.

Size validation:
    - Prompts are stripped, then truncated to `MAX_PROMPT_CHARS` (logged
      warning).
    - Width and height are independently clamped into
      `[MIN_DIMENSION, MAX_DIMENSION]`.

Timeout and cancellation:
    The whole provider call runs under `asyncio.wait_for`. When the budget
    expires the in-flight request task is cancelled and the result carries
    `TimeoutExceeded`.

Concurrency:
    The injected `httpx.AsyncClient` is the only shared resource; it is
    connection-pooled and safe for concurrent requests. Without one, a client
    is opened per call and closed afterwards.
"""

import asyncio
import logging
from dataclasses import dataclass

import httpx

from imagebot.core.errors import ImageBotError, TimeoutExceeded, validate_prompt
from imagebot.core.results import DEFAULT_DIMENSION, ImageResult, preview
from imagebot.image.client import build_image_url, fetch_image
from imagebot.llm import provider_config


logger = logging.getLogger(__name__)

MAX_PROMPT_CHARS = 500
MIN_DIMENSION = 256
MAX_DIMENSION = 1024


@dataclass(frozen=True)
class ImageSynthesisConfig:
    """Runtime configuration for `ImageSynthesizer`.

    Defaults come from `imagebot.llm.provider_config`, which reads:
        - `IMAGE_BASE_URL`
        - `IMAGE_TIMEOUT_SECONDS`
        - `IMAGE_USER_AGENT`
        - `IMAGE_MODEL`
        - `IMAGE_NOLOGO`
    """

    base_url: str = provider_config.IMAGE_BASE_URL
    timeout_seconds: float = provider_config.IMAGE_TIMEOUT_SECONDS
    user_agent: str = provider_config.IMAGE_USER_AGENT
    model: str = provider_config.IMAGE_MODEL
    nologo: bool = provider_config.IMAGE_NOLOGO


def clamp_dimension(value, default: int = DEFAULT_DIMENSION) -> int:
    """Clamp one requested dimension into the supported range.

    Non-numeric input falls back to `default` before clamping.
    """
    try:
        number = int(value)
    except (TypeError, ValueError):
        number = default
    return min(max(number, MIN_DIMENSION), MAX_DIMENSION)


def truncate_prompt(prompt: str) -> str:
    if len(prompt) <= MAX_PROMPT_CHARS:
        return prompt
    logger.warning(
        "Image prompt too long, truncating: %d -> %d chars",
        len(prompt),
        MAX_PROMPT_CHARS,
    )
    return prompt[:MAX_PROMPT_CHARS]


class ImageSynthesizer:
    """Generate images through the configured HTTP image provider."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        config: ImageSynthesisConfig | None = None,
    ):
        self.http_client = http_client
        self.config = config or ImageSynthesisConfig()

    async def synthesize(
        self,
        prompt: str,
        width: int = DEFAULT_DIMENSION,
        height: int = DEFAULT_DIMENSION,
    ) -> ImageResult:
        """Generate one image for `prompt`.

        Args:
            prompt: Image description (enhanced or original).
            width: Requested width in pixels.
            height: Requested height in pixels.

        Returns:
            `ImageResult`; on success it carries bytes, MIME type and the
            resolved request URL.
        """
        prompt = prompt or ""

        try:
            stripped = validate_prompt(prompt)
        except ImageBotError as err:
            logger.warning("Image synthesis rejected: %s", err.reason)
            return self._failure(prompt, err.reason, str(err))

        prompt = truncate_prompt(stripped)
        width = clamp_dimension(width)
        height = clamp_dimension(height)

        url = build_image_url(
            self.config.base_url,
            prompt,
            width,
            height,
            model=self.config.model,
            nologo=self.config.nologo,
        )

        logger.info(
            "Generating image prompt=%r width=%d height=%d",
            preview(prompt),
            width,
            height,
        )

        try:
            image_bytes, mime_type = await asyncio.wait_for(
                self._fetch(url),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            err = TimeoutExceeded(self.config.timeout_seconds)
            logger.error("Image generation timed out after %gs", self.config.timeout_seconds)
            return self._failure(prompt, err.reason, str(err), url)
        except ImageBotError as err:
            logger.error("Image generation failed: %s", err.reason)
            return self._failure(prompt, err.reason, str(err), url)
        except Exception as err:
            logger.exception("Unexpected image generation failure")
            return self._failure(prompt, f"{type(err).__name__}({err})", str(err), url)

        logger.info(
            "Image generated: %d bytes mime=%s",
            len(image_bytes),
            mime_type,
        )
        return ImageResult(
            succeeded=True,
            source_prompt=prompt,
            diagnostic=f'Successfully generated image for: "{preview(prompt)}"',
            image_bytes=image_bytes,
            mime_type=mime_type,
            source_url=url,
        )

    async def _fetch(self, url: str) -> tuple[bytes, str]:
        if self.http_client is not None:
            return await fetch_image(
                self.http_client, url, self.config.user_agent, self.config.timeout_seconds
            )

        async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
            return await fetch_image(
                client, url, self.config.user_agent, self.config.timeout_seconds
            )

    @staticmethod
    def _failure(prompt: str, reason: str, detail: str, url: str | None = None) -> ImageResult:
        return ImageResult(
            succeeded=False,
            source_prompt=prompt,
            diagnostic=f"Image generation failed: {detail}. Will try ASCII art fallback.",
            source_url=url,
            failure_reason=reason,
        )
