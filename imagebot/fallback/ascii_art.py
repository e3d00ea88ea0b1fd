"""ASCII-art fallback stage.

Role in pipeline:
    Invoked by orchestration only after image synthesis reports failure.
    Issues two text-generation calls (art, then caption) for the user's
    original prompt.

Atomicity:
    Both values come from the provider or both are placeholders. If either
    call fails, any partial output is discarded. The caption call is skipped
    once the art call has failed.

Output shaping:
    Art is cleaned of code fences and clipped to the advertised grid
    (`ASCII_ART_MAX_LINES` x `ASCII_ART_MAX_COLUMNS`).
"""

import logging

from imagebot.core.errors import EmptyResponseError, ImageBotError, validate_prompt
from imagebot.core.results import AsciiArtResult, preview
from imagebot.llm.provider_config import TEXT_TIMEOUT_SECONDS
from imagebot.llm.service import TextGenerator, generate_text
from imagebot.prompting.prompt_builder import (
    ASCII_ART_MAX_COLUMNS,
    ASCII_ART_MAX_LINES,
    build_ascii_art_prompt,
    build_description_prompt,
)


logger = logging.getLogger(__name__)

PLACEHOLDER_ART = (
    "    ¯\\_(ツ)_/¯\n"
    "  Image generation\n"
    "   failed, but I\n"
    "    tried my best!"
)


def placeholder_caption(prompt: str) -> str:
    return (
        f'I wanted to create something for "{prompt}" but encountered an error. '
        "Here's a friendly ASCII instead!"
    )


def placeholder_ascii_art(prompt: str, reason: str, detail: str = "") -> AsciiArtResult:
    """Placeholder result used whenever generated art cannot be delivered."""
    return AsciiArtResult(
        succeeded=False,
        art=PLACEHOLDER_ART,
        caption=placeholder_caption(prompt),
        source_prompt=prompt,
        diagnostic=f"ASCII art generation failed: {detail or reason}",
        failure_reason=reason,
    )


def clean_ascii_art(text: str) -> str:
    """Remove markdown fences and clip the art to the supported grid."""
    lines = text.replace("\r\n", "\n").split("\n")
    lines = [line for line in lines if not line.strip().startswith("```")]

    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()

    clipped = [line.rstrip()[:ASCII_ART_MAX_COLUMNS] for line in lines[:ASCII_ART_MAX_LINES]]
    return "\n".join(clipped)


class AsciiArtFallback:
    """Describe a prompt as ASCII art plus caption via an injected text client."""

    def __init__(self, client: TextGenerator, timeout: float = TEXT_TIMEOUT_SECONDS):
        self.client = client
        self.timeout = timeout

    async def describe(self, prompt: str) -> AsciiArtResult:
        prompt = prompt or ""
        logger.info("Creating ASCII art fallback prompt=%r", preview(prompt))

        try:
            validate_prompt(prompt)

            art = clean_ascii_art(await generate_text(
                self.client,
                build_ascii_art_prompt(prompt),
                max_tokens=512,
                temperature=0.8,
                timeout=self.timeout,
            ))
            if not art.strip():
                raise EmptyResponseError("ASCII art response contained no art")

            caption = (await generate_text(
                self.client,
                build_description_prompt(prompt),
                max_tokens=256,
                timeout=self.timeout,
            )).strip()
        except ImageBotError as err:
            return self._placeholder(prompt, err.reason, str(err))
        except Exception as err:
            logger.exception("Unexpected ASCII art failure")
            return self._placeholder(prompt, f"{type(err).__name__}({err})", str(err))

        logger.info(
            "ASCII art created: art=%d chars caption=%d chars",
            len(art),
            len(caption),
        )
        return AsciiArtResult(
            succeeded=True,
            art=art,
            caption=caption,
            source_prompt=prompt,
            diagnostic="Created ASCII art representation",
        )

    @staticmethod
    def _placeholder(prompt: str, reason: str, detail: str) -> AsciiArtResult:
        logger.error("ASCII art generation failed (%s); using placeholder", reason)
        return placeholder_ascii_art(prompt, reason, detail)
