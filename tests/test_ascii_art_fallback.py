"""AsciiArtFallback stage tests."""

import pytest

from imagebot.core.errors import ExternalServiceError, HttpError
from imagebot.fallback.ascii_art import (
    PLACEHOLDER_ART,
    AsciiArtFallback,
    clean_ascii_art,
    placeholder_caption,
)

CAT_ART = " /\\_/\\\n( o.o )\n > ^ <"
CAPTION = "A ginger cat naps among roses. Warm afternoon light fills the garden."


@pytest.mark.unit
class TestAsciiArtFallback:

    @pytest.mark.asyncio
    async def test_success_returns_art_and_caption(self, text_client_factory):
        client = text_client_factory([CAT_ART, CAPTION])
        result = await AsciiArtFallback(client).describe("a cat in a garden")

        assert result.succeeded is True
        assert result.art == CAT_ART
        assert result.caption == CAPTION
        assert result.source_prompt == "a cat in a garden"
        assert len(client.prompts) == 2
        assert "ASCII art" in client.prompts[0]
        assert "2-3 sentences" in client.prompts[1]

    @pytest.mark.asyncio
    async def test_first_call_failure_gives_placeholders(self, text_client_factory):
        client = text_client_factory([HttpError(500), CAPTION])
        result = await AsciiArtFallback(client).describe("a cat")

        assert result.succeeded is False
        assert result.art == PLACEHOLDER_ART
        assert result.caption == placeholder_caption("a cat")
        assert result.failure_reason == "HttpError(status=500)"
        assert len(client.prompts) == 1

    @pytest.mark.asyncio
    async def test_second_call_failure_discards_art(self, text_client_factory):
        client = text_client_factory([CAT_ART, ExternalServiceError("quota exhausted")])
        result = await AsciiArtFallback(client).describe("a cat")

        assert result.succeeded is False
        assert result.art == PLACEHOLDER_ART
        assert result.caption == placeholder_caption("a cat")
        assert CAT_ART not in result.art
        assert result.failure_reason == "ExternalServiceError(quota exhausted)"

    @pytest.mark.asyncio
    async def test_blank_prompt_makes_no_calls(self, text_client_factory):
        client = text_client_factory()
        result = await AsciiArtFallback(client).describe("   ")

        assert result.succeeded is False
        assert result.failure_reason == "EmptyPrompt"
        assert result.art
        assert result.caption
        assert client.prompts == []

    @pytest.mark.asyncio
    async def test_timeout_gives_placeholders(self, text_client_factory):
        client = text_client_factory([CAT_ART, CAPTION], delay=0.3)
        result = await AsciiArtFallback(client, timeout=0.05).describe("a cat")

        assert result.succeeded is False
        assert result.failure_reason == "TimeoutExceeded(0.05s)"
        assert result.art == PLACEHOLDER_ART

    @pytest.mark.asyncio
    async def test_fence_only_art_is_a_failure(self, text_client_factory):
        client = text_client_factory(["```\n```", CAPTION])
        result = await AsciiArtFallback(client).describe("a cat")

        assert result.succeeded is False
        assert result.failure_reason.startswith("EmptyResponseError")
        assert result.art == PLACEHOLDER_ART


@pytest.mark.unit
class TestCleanAsciiArt:

    def test_strips_code_fences(self):
        assert clean_ascii_art("```text\n/\\_/\\\n```") == "/\\_/\\"

    def test_clips_to_grid(self):
        raw = "\n".join("#" * 60 for _ in range(30))
        lines = clean_ascii_art(raw).split("\n")
        assert len(lines) == 15
        assert all(len(line) == 40 for line in lines)

    def test_keeps_leading_indentation(self):
        assert clean_ascii_art("\n\n   /\\\n  /  \\\n\n") == "   /\\\n  /  \\"
