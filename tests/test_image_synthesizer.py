"""ImageSynthesizer stage tests: validation, clamping, HTTP handling, timeout."""

import time

import httpx
import pytest

from imagebot.image.client import build_image_url
from imagebot.image.service import (
    MAX_PROMPT_CHARS,
    ImageSynthesisConfig,
    ImageSynthesizer,
    clamp_dimension,
)


@pytest.mark.unit
class TestClamping:

    @pytest.mark.parametrize("value, expected", [
        (-10, 256),
        (0, 256),
        (255, 256),
        (256, 256),
        (512, 512),
        (1024, 1024),
        (1025, 1024),
        (10_000, 1024),
        ("640", 640),
        ("wide", 1024),
        (None, 1024),
    ])
    def test_clamp_dimension(self, value, expected):
        assert clamp_dimension(value) == expected

    def test_clamp_is_monotonic(self):
        values = list(range(-100, 2000, 37))
        clamped = [clamp_dimension(v) for v in values]
        assert clamped == sorted(clamped)
        assert all(256 <= c <= 1024 for c in clamped)


@pytest.mark.unit
def test_build_image_url_encodes_prompt():
    url = build_image_url("https://image.pollinations.ai/prompt/", "a cat/dog & more", 512, 768)
    assert url == (
        "https://image.pollinations.ai/prompt/a%20cat%2Fdog%20%26%20more"
        "?width=512&height=768&seed=random"
    )


@pytest.mark.unit
def test_build_image_url_optional_params():
    url = build_image_url("https://x.test/prompt", "cat", 256, 256, model="flux", nologo=True)
    assert url.endswith("?width=256&height=256&seed=random&model=flux&nologo=true")


@pytest.mark.unit
class TestImageSynthesizer:

    @pytest.mark.asyncio
    async def test_success_returns_image(self, make_synthesizer, image_endpoint_factory):
        endpoint = image_endpoint_factory(content_type="image/jpeg; charset=binary")
        result = await make_synthesizer(endpoint).synthesize("a cat in a garden", 800, 600)

        assert result.succeeded is True
        assert result.mime_type == "image/jpeg"
        assert result.image_bytes == endpoint.content
        assert result.image_base64
        assert result.source_url.startswith("https://image.example.test/prompt/a%20cat%20in%20a%20garden?")

        request = endpoint.requests[0]
        assert request.method == "GET"
        assert request.headers["User-Agent"] == "TelegramBot/1.0"
        assert request.url.params["width"] == "800"
        assert request.url.params["height"] == "600"
        assert request.url.params["seed"] == "random"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("width, height", [(10, 5000), (-1, 0), (2048, 300), (1024, 256)])
    async def test_dimensions_are_clamped(self, make_synthesizer, image_endpoint_factory, width, height):
        endpoint = image_endpoint_factory()
        await make_synthesizer(endpoint).synthesize("a cat", width, height)

        params = endpoint.requests[0].url.params
        assert 256 <= int(params["width"]) <= 1024
        assert 256 <= int(params["height"]) <= 1024
        assert int(params["width"]) == clamp_dimension(width)
        assert int(params["height"]) == clamp_dimension(height)

    @pytest.mark.asyncio
    async def test_long_prompt_is_truncated(self, make_synthesizer, image_endpoint_factory):
        endpoint = image_endpoint_factory()
        prompt = "abcdefghij" * 60
        result = await make_synthesizer(endpoint).synthesize(prompt)

        assert result.succeeded is True
        assert len(result.source_prompt) == MAX_PROMPT_CHARS
        assert result.source_prompt == prompt[:MAX_PROMPT_CHARS]
        assert endpoint.requests[0].url.path.endswith(prompt[:MAX_PROMPT_CHARS])

    @pytest.mark.asyncio
    async def test_padded_prompt_is_stripped_before_truncation(self, make_synthesizer, image_endpoint_factory):
        endpoint = image_endpoint_factory()
        result = await make_synthesizer(endpoint).synthesize("  " + "a" * 600 + "\n")

        assert result.source_prompt == "a" * MAX_PROMPT_CHARS
        segment = endpoint.requests[0].url.path.rsplit("/", 1)[1]
        assert segment == "a" * MAX_PROMPT_CHARS

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prompt", ["", "    ", None])
    async def test_blank_prompt_makes_no_request(self, make_synthesizer, image_endpoint_factory, prompt):
        endpoint = image_endpoint_factory()
        result = await make_synthesizer(endpoint).synthesize(prompt)

        assert result.succeeded is False
        assert result.failure_reason == "EmptyPrompt"
        assert endpoint.requests == []

    @pytest.mark.asyncio
    async def test_http_error_status(self, make_synthesizer, image_endpoint_factory):
        endpoint = image_endpoint_factory(status=503, content=b"busy", content_type="text/plain")
        result = await make_synthesizer(endpoint).synthesize("a cat")

        assert result.succeeded is False
        assert result.failure_reason == "HttpError(status=503)"
        assert result.image_bytes is None
        assert result.mime_type is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content_type", ["text/html; charset=utf-8", "application/json", None])
    async def test_non_image_content_type(self, make_synthesizer, image_endpoint_factory, content_type):
        endpoint = image_endpoint_factory(content=b"<html></html>", content_type=content_type)
        result = await make_synthesizer(endpoint).synthesize("a cat")

        assert result.succeeded is False
        assert result.failure_reason.startswith("InvalidContentType(")
        assert result.image_bytes is None

    @pytest.mark.asyncio
    async def test_timeout_cancels_request(self, make_synthesizer, image_endpoint_factory):
        endpoint = image_endpoint_factory(delay=5)
        synthesizer = make_synthesizer(endpoint, timeout_seconds=0.1)

        started = time.monotonic()
        result = await synthesizer.synthesize("a cat")
        elapsed = time.monotonic() - started

        assert result.succeeded is False
        assert result.failure_reason == "TimeoutExceeded(0.1s)"
        assert 0.09 <= elapsed < 2

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        synthesizer = ImageSynthesizer(
            httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            ImageSynthesisConfig(base_url="https://image.example.test/prompt"),
        )
        result = await synthesizer.synthesize("a cat")

        assert result.succeeded is False
        assert result.failure_reason.startswith("ExternalServiceError(")

    @pytest.mark.asyncio
    async def test_client_timeout_reports_timeout_exceeded(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        synthesizer = ImageSynthesizer(
            httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            ImageSynthesisConfig(base_url="https://image.example.test/prompt", timeout_seconds=30.0),
        )
        result = await synthesizer.synthesize("a cat")

        assert result.succeeded is False
        assert result.failure_reason == "TimeoutExceeded(30s)"

    @pytest.mark.asyncio
    async def test_empty_image_body(self, make_synthesizer, image_endpoint_factory):
        endpoint = image_endpoint_factory(content=b"", content_type="image/png")
        result = await make_synthesizer(endpoint).synthesize("a cat")

        assert result.succeeded is False
        assert result.failure_reason == "EmptyResponseError(Image provider returned an empty body)"
        assert result.image_bytes is None
