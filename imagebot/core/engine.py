"""Core request orchestration for the image fallback chain.

Architectural role:
    Provides the pipeline used by API/CLI layers to transform one chat
    message into a delivered reply: an image when synthesis works, ASCII art
    plus caption when it does not.

Control-flow model:
    START -> ENHANCING -> SYNTHESIZING -> DELIVERING -> DONE
                                  \\-> FALLING_BACK -> DELIVERING -> DONE

    1. Validate the prompt. A blank prompt short-circuits to DELIVERING with
       a re-prompt message; no stage is invoked.
    2. Enhance the prompt. Failure degrades to the template prompt.
    3. Synthesize an image from the enhanced prompt.
    4. On synthesis failure, describe the original prompt as ASCII art.
    5. Dispatch the composed reply and record the `DeliveryOutcome`.

Routing behavior:
    Transitions depend only on `succeeded` flags. Failure reasons are logged
    and kept on the run record but never inspected for routing.

Invocation budget:
    Each run may call enhancement once, synthesis once and the fallback's two
    text calls once. Stages are never retried; a failed call is resolved by
    the stage's own local fallback. A stage that would exceed its budget is
    not invoked; the run delivers placeholder art instead.

Concurrency:
    An `ImagePipeline` holds only stateless collaborators. Every `run` keeps
    its state in a fresh `PipelineRun`, so concurrent runs share nothing
    mutable.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from html import escape
from typing import Any

import httpx

from imagebot.core.envelope import parse_envelope
from imagebot.core.errors import InvocationBudgetExceeded, ValidationError, validate_prompt
from imagebot.core.results import (
    AsciiArtResult,
    DeliveryOutcome,
    EnhancementResult,
    ImageResult,
    Request,
    preview,
)
from imagebot.delivery.dispatcher import DeliveryTransport, ReplyDispatcher, ReplyPayload
from imagebot.fallback.ascii_art import AsciiArtFallback, placeholder_ascii_art
from imagebot.image.service import ImageSynthesisConfig, ImageSynthesizer
from imagebot.llm import provider_config
from imagebot.llm.client import TextGenerationClient
from imagebot.llm.service import TextGenerator
from imagebot.prompting.enhancer import PromptEnhancer


logger = logging.getLogger(__name__)

REPROMPT_MESSAGE = "Please send me a description of the image you'd like me to create."
FALLBACK_INTRO = "Image generation had issues, but here's some ASCII art instead!"

# External calls allowed per run, keyed by stage.
STAGE_BUDGET = {
    "enhance": 1,
    "synthesize": 1,
    "fallback": 2,
}


class PipelineState(str, Enum):
    START = "start"
    ENHANCING = "enhancing"
    SYNTHESIZING = "synthesizing"
    FALLING_BACK = "falling_back"
    DELIVERING = "delivering"
    DONE = "done"


class InvocationBudget:
    """Per-run counter of external tool invocations."""

    def __init__(self, limits: dict[str, int] | None = None):
        self.limits = dict(STAGE_BUDGET if limits is None else limits)
        self.used = {stage: 0 for stage in self.limits}

    def charge(self, stage: str, calls: int = 1) -> None:
        limit = self.limits.get(stage, 0)
        used = self.used.get(stage, 0)
        if used + calls > limit:
            raise InvocationBudgetExceeded(
                f"Stage '{stage}' would use {used + calls} calls (limit {limit})"
            )
        self.used[stage] = used + calls

    @property
    def total(self) -> int:
        return sum(self.used.values())


@dataclass
class PipelineRun:
    """Record of one orchestration run.

    Attributes:
        request: Immutable inbound request.
        states: Visited states in order; the last entry is the current state.
        enhancement: Result of PromptEnhancer, if invoked.
        image: Result of ImageSynthesizer, if invoked.
        ascii_art: Result of AsciiArtFallback, if invoked.
        reply: Payload handed to the dispatcher.
        outcome: Delivery outcome once DONE.
        validation_error: Set when the prompt was rejected before any stage.
        budget_error: Set when a stage would have exceeded its call budget.
        invocations: External calls charged per stage.
    """

    request: Request
    states: list[PipelineState] = field(default_factory=list)
    enhancement: EnhancementResult | None = None
    image: ImageResult | None = None
    ascii_art: AsciiArtResult | None = None
    reply: ReplyPayload | None = None
    outcome: DeliveryOutcome | None = None
    validation_error: ValidationError | None = None
    budget_error: InvocationBudgetExceeded | None = None
    invocations: dict[str, int] = field(default_factory=dict)

    @property
    def state(self) -> PipelineState | None:
        return self.states[-1] if self.states else None

    @property
    def fell_back(self) -> bool:
        return PipelineState.FALLING_BACK in self.states

    def enter(self, state: PipelineState) -> None:
        logger.debug("Pipeline %s -> %s", self.state, state)
        self.states.append(state)


def compose_image_reply(request: Request, image: ImageResult) -> ReplyPayload:
    return ReplyPayload(
        text=f'Here\'s your image for "{request.original_prompt}"!',
        image_bytes=image.image_bytes,
        mime_type=image.mime_type,
    )


def compose_fallback_reply(ascii_art: AsciiArtResult) -> ReplyPayload:
    """Render art in a monospace block followed by the caption."""
    text = (
        f"{escape(FALLBACK_INTRO)}\n\n"
        f"<pre>{escape(ascii_art.art)}</pre>\n\n"
        f"{escape(ascii_art.caption)}"
    )
    return ReplyPayload(text=text, parse_mode="HTML")


def compose_reprompt_reply() -> ReplyPayload:
    return ReplyPayload(text=REPROMPT_MESSAGE)


class ImagePipeline:
    """Finite-state orchestrator over the enhancement/synthesis/fallback stages.

    Args:
        enhancer: PromptEnhancer stage.
        synthesizer: ImageSynthesizer stage.
        fallback: AsciiArtFallback stage.
        dispatcher: ReplyDispatcher wrapping the delivery transport.
        enhance_prompts: When False, the original prompt feeds synthesis
            directly and ENHANCING is skipped.
        budget_limits: Override for `STAGE_BUDGET`.
    """

    def __init__(
        self,
        enhancer: PromptEnhancer,
        synthesizer: ImageSynthesizer,
        fallback: AsciiArtFallback,
        dispatcher: ReplyDispatcher,
        enhance_prompts: bool = True,
        budget_limits: dict[str, int] | None = None,
    ):
        self.enhancer = enhancer
        self.synthesizer = synthesizer
        self.fallback = fallback
        self.dispatcher = dispatcher
        self.enhance_prompts = enhance_prompts
        self.budget_limits = budget_limits

    async def run(self, request: Request) -> PipelineRun:
        """Drive one request from START to DONE.

        Returns:
            The completed `PipelineRun`. Every run ends in DONE with an
            outcome. A stage that would exceed its call budget is not
            invoked; the run delivers the placeholder art instead.
        """
        run = PipelineRun(request=request)
        budget = InvocationBudget(self.budget_limits)
        run.enter(PipelineState.START)

        logger.info(
            "Pipeline started destination=%s prompt=%r",
            request.destination,
            preview(request.original_prompt),
        )

        try:
            validate_prompt(request.original_prompt)
        except ValidationError as err:
            logger.info("Prompt rejected before any stage: %s", err.reason)
            run.validation_error = err
            return await self._deliver(run, budget, compose_reprompt_reply())

        try:
            reply = await self._run_stages(run, budget)
        except InvocationBudgetExceeded as err:
            logger.error("Invocation budget exceeded: %s", err)
            run.budget_error = err
            reply = compose_fallback_reply(placeholder_ascii_art(request.original_prompt, err.reason))

        return await self._deliver(run, budget, reply)

    async def _run_stages(self, run: PipelineRun, budget: InvocationBudget) -> ReplyPayload:
        request = run.request
        prompt = request.original_prompt

        if self.enhance_prompts:
            run.enter(PipelineState.ENHANCING)
            budget.charge("enhance")
            run.enhancement = await self.enhancer.enhance(request.original_prompt, request.style)
            prompt = run.enhancement.enhanced_prompt
            if not run.enhancement.succeeded:
                logger.info("Continuing with fallback prompt (%s)", run.enhancement.failure_reason)

        run.enter(PipelineState.SYNTHESIZING)
        budget.charge("synthesize")
        run.image = await self.synthesizer.synthesize(prompt, request.width, request.height)

        if run.image.succeeded:
            reply = compose_image_reply(request, run.image)
        else:
            logger.info("Image synthesis failed (%s); falling back", run.image.failure_reason)
            run.enter(PipelineState.FALLING_BACK)
            budget.charge("fallback", 2)
            run.ascii_art = await self.fallback.describe(request.original_prompt)
            reply = compose_fallback_reply(run.ascii_art)

        return reply

    async def _deliver(self, run: PipelineRun, budget: InvocationBudget, reply: ReplyPayload) -> PipelineRun:
        run.enter(PipelineState.DELIVERING)
        run.reply = reply
        run.outcome = await self.dispatcher.dispatch(run.request.destination, reply)
        run.invocations = dict(budget.used)
        run.enter(PipelineState.DONE)

        logger.info(
            "Pipeline done destination=%s delivered=%s image=%s calls=%d",
            run.request.destination,
            run.outcome.delivered,
            run.outcome.has_image,
            budget.total,
        )
        return run

    async def handle_envelope(self, raw: Any, thread_id: str | None = None) -> PipelineRun:
        """Parse a raw chat update and run it through the pipeline."""
        return await self.run(parse_envelope(raw, thread_id=thread_id))


def build_pipeline(
    http_client: httpx.AsyncClient | None,
    transport: DeliveryTransport,
    text_client: TextGenerator | None = None,
    image_config: ImageSynthesisConfig | None = None,
    enhance_prompts: bool = provider_config.ENHANCE_PROMPTS,
) -> ImagePipeline:
    """Wire the default stages around shared clients.

    Args:
        http_client: Shared async client for image downloads.
        transport: Delivery transport for replies.
        text_client: Text-generation client; defaults to the configured provider.
        image_config: Image endpoint configuration.
        enhance_prompts: Whether to run the enhancement stage.
    """
    text_client = text_client or TextGenerationClient()
    return ImagePipeline(
        enhancer=PromptEnhancer(text_client),
        synthesizer=ImageSynthesizer(http_client, image_config),
        fallback=AsciiArtFallback(text_client),
        dispatcher=ReplyDispatcher(transport),
        enhance_prompts=enhance_prompts,
    )
