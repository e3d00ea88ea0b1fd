"""
Shared fixtures for the imagebot test suite.

All external services are faked:
- text generation through `FakeTextClient` (scripted responses/errors),
- image HTTP through `httpx.MockTransport`,
- reply delivery through `RecordingTransport`.
"""

import asyncio
import time

import httpx
import pytest

from imagebot.core.engine import ImagePipeline
from imagebot.delivery.dispatcher import ReplyDispatcher
from imagebot.fallback.ascii_art import AsciiArtFallback
from imagebot.image.service import ImageSynthesisConfig, ImageSynthesizer
from imagebot.prompting.enhancer import PromptEnhancer

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class FakeTextClient:
    """Scripted stand-in for `TextGenerationClient`.

    Each call pops the next scripted item: strings are returned, exceptions
    raised. When the script is exhausted `default` is returned.
    """

    def __init__(self, responses=None, default="generated text", delay: float = 0.0):
        self.responses = list(responses or [])
        self.default = default
        self.delay = delay
        self.prompts = []

    def generate(self, prompt, max_tokens=512, temperature=0.7):
        self.prompts.append(prompt)
        if self.delay:
            time.sleep(self.delay)
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, Exception):
            raise item
        return item


class ImageEndpoint:
    """Callable `MockTransport` handler recording every image request."""

    def __init__(self, status=200, content=PNG_BYTES, content_type="image/png", delay: float = 0.0):
        self.status = status
        self.content = content
        self.content_type = content_type
        self.delay = delay
        self.requests = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        headers = {"content-type": self.content_type} if self.content_type else {}
        return httpx.Response(self.status, content=self.content, headers=headers)


class RecordingTransport:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.sent = []

    async def send(self, destination, payload):
        if self.error is not None:
            raise self.error
        self.sent.append((destination, payload))


@pytest.fixture
def text_client_factory():
    return FakeTextClient


@pytest.fixture
def image_endpoint_factory():
    return ImageEndpoint


@pytest.fixture
def recording_transport():
    return RecordingTransport()


@pytest.fixture
def make_synthesizer():
    """Build an `ImageSynthesizer` backed by an `ImageEndpoint`."""

    def _make(endpoint: ImageEndpoint, timeout_seconds: float = 30.0) -> ImageSynthesizer:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(endpoint))
        config = ImageSynthesisConfig(
            base_url="https://image.example.test/prompt",
            timeout_seconds=timeout_seconds,
            user_agent="TelegramBot/1.0",
            model="",
            nologo=False,
        )
        return ImageSynthesizer(http_client, config)

    return _make


@pytest.fixture
def make_pipeline(make_synthesizer):
    """Wire a full pipeline around fake collaborators."""

    def _make(text_client, endpoint, transport, timeout_seconds: float = 30.0, **kwargs) -> ImagePipeline:
        return ImagePipeline(
            enhancer=PromptEnhancer(text_client, timeout=timeout_seconds),
            synthesizer=make_synthesizer(endpoint, timeout_seconds),
            fallback=AsciiArtFallback(text_client, timeout=timeout_seconds),
            dispatcher=ReplyDispatcher(transport),
            **kwargs,
        )

    return _make


@pytest.fixture
def transport_factory():
    return RecordingTransport
