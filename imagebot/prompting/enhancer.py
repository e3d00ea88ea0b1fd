"""Prompt enhancement stage.

Role in pipeline:
    First stage of the fallback chain. Rewrites the user's prompt into a more
    descriptive image prompt using one text-generation call.

Degradation:
    Enhancement never blocks the pipeline. Any failure yields the
    deterministic template from `prompt_builder.build_fallback_prompt`, which
    is always valid input for image synthesis.

Error handling strategy:
    Errors are caught at the stage boundary and reported through
    `EnhancementResult.failure_reason`; nothing is raised to callers.
"""

import logging

from imagebot.core.errors import EmptyResponseError, ImageBotError, validate_prompt
from imagebot.core.results import DEFAULT_STYLE, EnhancementResult, preview
from imagebot.llm.provider_config import TEXT_TIMEOUT_SECONDS
from imagebot.llm.service import TextGenerator, generate_text
from imagebot.prompting.prompt_builder import (
    ENHANCED_PROMPT_MAX_CHARS,
    build_enhancement_prompt,
    build_fallback_prompt,
)


logger = logging.getLogger(__name__)

_QUOTE_CHARS = "\"'`"


def _clean_enhanced_text(text: str) -> str:
    """Strip wrapping quotes and cap the model output length."""
    cleaned = text.strip().strip(_QUOTE_CHARS).strip()
    if cleaned.lower().startswith("enhanced prompt:"):
        cleaned = cleaned[len("enhanced prompt:"):].strip()
    if len(cleaned) > ENHANCED_PROMPT_MAX_CHARS:
        cleaned = cleaned[:ENHANCED_PROMPT_MAX_CHARS].rstrip()
    return cleaned


class PromptEnhancer:
    """Improve image prompts through an injected text-generation client."""

    def __init__(self, client: TextGenerator, timeout: float = TEXT_TIMEOUT_SECONDS):
        self.client = client
        self.timeout = timeout

    async def enhance(self, original_prompt: str, style: str = DEFAULT_STYLE) -> EnhancementResult:
        """Enhance `original_prompt` for the given style.

        Args:
            original_prompt: Raw user prompt.
            style: Style hint; blank values fall back to `realistic`.

        Returns:
            `EnhancementResult` whose `enhanced_prompt` is never empty.
        """
        original_prompt = original_prompt or ""
        style = (style or "").strip() or DEFAULT_STYLE

        logger.info("Enhancing prompt=%r style=%s", preview(original_prompt), style)

        try:
            validate_prompt(original_prompt)
            raw = await generate_text(
                self.client,
                build_enhancement_prompt(original_prompt, style),
                max_tokens=256,
                timeout=self.timeout,
            )
            enhanced = _clean_enhanced_text(raw)
            if not enhanced:
                raise EmptyResponseError("Enhancement produced no usable text")
        except ImageBotError as err:
            return self._fallback(original_prompt, style, err.reason, str(err))
        except Exception as err:
            logger.exception("Unexpected prompt enhancement failure")
            return self._fallback(original_prompt, style, f"{type(err).__name__}({err})", str(err))

        logger.info(
            "Prompt enhanced: %d -> %d chars",
            len(original_prompt),
            len(enhanced),
        )
        return EnhancementResult(
            succeeded=True,
            enhanced_prompt=enhanced,
            original_prompt=original_prompt,
            style=style,
            diagnostic="Successfully enhanced prompt",
        )

    def _fallback(self, original_prompt: str, style: str, reason: str, detail: str) -> EnhancementResult:
        logger.warning("Prompt enhancement failed (%s); using template fallback", reason)
        return EnhancementResult(
            succeeded=False,
            enhanced_prompt=build_fallback_prompt(original_prompt, style),
            original_prompt=original_prompt,
            style=style,
            diagnostic=f"Prompt enhancement failed, using fallback: {detail}",
            failure_reason=reason,
        )
