"""
HTTP API adapter for the imagebot pipeline.

Architectural role:
- Expose the workflow entrypoint and a Telegram webhook.
- Own the lifetime of the shared `httpx.AsyncClient`.
- Delegate all request handling to `imagebot.core.engine.ImagePipeline`.

Endpoint responsibilities:
- `POST /v1/workflows/telegram-image-bot`: body `{"message": <update JSON text
  or object>, "threadId": "..."}`; returns `{"sent": bool, "chatId": str}`.
- `POST /telegram/webhook`: raw Telegram update; same response shape.
- `GET /health`: liveness probe.

Input validation behavior:
- Malformed bodies never fail the request. Unparsable JSON or a missing
  `message` is processed as an empty prompt, which the pipeline answers with
  a re-prompt message.
- A non-string `threadId` is coerced to text rather than discarding the
  message.

Side effects:
- Opens one pooled `httpx.AsyncClient` at startup and closes it at shutdown.
- Sends replies through Telegram when `TELEGRAM_BOT_TOKEN` is set; otherwise
  replies are only logged.
- Loads environment variables at import time via `load_dotenv()`.
"""

from dotenv import load_dotenv

load_dotenv()

import json
import logging
import os
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from pydantic import BaseModel, ValidationError, field_validator

from imagebot.core.engine import ImagePipeline, PipelineRun, build_pipeline
from imagebot.delivery.telegram import LoggingTransport, TelegramBotTransport
from imagebot.llm import provider_config


logger = logging.getLogger(__name__)
# Verbose request logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"


# ============================================================
# Request Schema
# ============================================================

class WorkflowRequest(BaseModel):
    """Workflow trigger payload: one raw chat update plus thread id."""
    message: str | dict = ""
    threadId: str | None = None

    @field_validator("threadId", mode="before")
    @classmethod
    def coerce_thread_id(cls, value):
        # Numeric thread ids are accepted as text.
        return None if value is None else str(value)


# ============================================================
# Helpers
# ============================================================

def _decode_body(body: bytes) -> dict:
    """Decode a JSON object body; anything else becomes `{}`."""
    try:
        data = json.loads(body or b"{}")
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _workflow_response(run: PipelineRun) -> dict:
    return {
        "sent": run.outcome.delivered,
        "chatId": run.outcome.destination,
    }


def _build_transport(http_client: httpx.AsyncClient):
    if provider_config.TELEGRAM_BOT_TOKEN:
        return TelegramBotTransport(provider_config.TELEGRAM_BOT_TOKEN, http_client)
    logger.warning("TELEGRAM_BOT_TOKEN not set; replies will only be logged")
    return LoggingTransport()


# ============================================================
# Application
# ============================================================

def create_app(pipeline: ImagePipeline | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        pipeline: Prebuilt pipeline (tests). When omitted, one is wired in the
            lifespan around a shared HTTP client.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if pipeline is not None:
            app.state.pipeline = pipeline
            yield
            return

        async with httpx.AsyncClient(
            timeout=provider_config.IMAGE_TIMEOUT_SECONDS,
            limits=httpx.Limits(max_connections=50, max_keepalive_connections=10),
        ) as http_client:
            app.state.pipeline = build_pipeline(http_client, _build_transport(http_client))
            yield

    app = FastAPI(title="imagebot", lifespan=lifespan)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/v1/workflows/telegram-image-bot")
    async def run_workflow(request: Request):
        """
        Workflow entrypoint.

        The `message` field carries the raw chat update, either as JSON text
        or as an object. Validation failures degrade to an empty update.
        """
        body = _decode_body(await request.body())

        try:
            payload = WorkflowRequest.model_validate(body)
        except ValidationError:
            logger.warning("Workflow payload failed validation; processing as empty")
            payload = WorkflowRequest()

        if DEBUG:
            logger.info("Workflow request threadId=%s", payload.threadId)

        run = await request.app.state.pipeline.handle_envelope(payload.message, thread_id=payload.threadId)
        return _workflow_response(run)

    @app.post("/telegram/webhook")
    async def telegram_webhook(request: Request):
        """Telegram webhook; the body is the update itself."""
        raw = await request.body()

        if DEBUG:
            logger.info("Webhook update received (%d bytes)", len(raw))

        run = await request.app.state.pipeline.handle_envelope(raw)
        return _workflow_response(run)

    return app


app = create_app()
