"""
Minimal interactive CLI entrypoint for imagebot.

Architectural role:
- Provides a terminal-only interface over the image pipeline.
- Replies are delivered through `LoggingTransport` and rendered locally.

Request lifecycle (per user turn, CLI):
1. Read a single line from stdin.
2. Handle local control commands (`exit`/`quit`).
3. Wrap the text in a chat envelope and run it through the pipeline.
4. Print ASCII art and caption, or save the generated image to `OUTPUT_DIR`.

Input validation behavior:
- Empty input is ignored and does not call the pipeline.
- Bot commands (`/image`, `/style <name>`) behave as in chat.

Error handling strategy:
- Handles EOF and keyboard interrupts without traceback output.
"""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
import os
import sys
import uuid

import httpx

from imagebot.core.engine import PipelineRun, build_pipeline
from imagebot.delivery.telegram import LoggingTransport
from imagebot.llm import provider_config

OUTPUT_DIR = os.getenv("OUTPUT_DIR", "generated")
CLI_DESTINATION = "cli"


# =========================================================
# UTF-8 SAFE STDOUT
# Configures best-effort UTF-8 console output without failing startup.
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except (AttributeError, ValueError):
        pass


def save_image(run: PipelineRun, output_dir: str = OUTPUT_DIR) -> str:
    """Write the generated image of `run` to disk and return its path."""
    os.makedirs(output_dir, exist_ok=True)
    extension = run.image.mime_type.split("/", 1)[1].split("+", 1)[0]
    path = os.path.join(output_dir, f"{uuid.uuid4().hex[:12]}.{extension}")
    with open(path, "wb") as f:
        f.write(run.image.image_bytes)
    return path


def render_run(run: PipelineRun, output_dir: str = OUTPUT_DIR) -> str:
    """Return the terminal rendering of a finished run."""
    if run.validation_error is not None:
        return run.reply.text

    if run.image is not None and run.image.succeeded:
        return f"Image saved to {save_image(run, output_dir)}"

    art = run.ascii_art
    return f"{art.art}\n\n{art.caption}"


async def run_prompt(text: str, http_client: httpx.AsyncClient) -> PipelineRun:
    pipeline = build_pipeline(http_client, LoggingTransport())
    envelope = {"message": {"chat": {"id": CLI_DESTINATION}, "text": text}}
    return await pipeline.handle_envelope(envelope)


async def _run_once(text: str) -> PipelineRun:
    async with httpx.AsyncClient(timeout=provider_config.IMAGE_TIMEOUT_SECONDS) as http_client:
        return await run_prompt(text, http_client)


# =========================================================
# MAIN APPLICATION LOOP
# =========================================================

def main():
    """
    Run the interactive terminal session.

    Error handling strategy:
    - EOF and keyboard interrupts are handled gracefully.
    """
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    print("imagebot started. Describe an image (Type 'exit' to quit)\n")
    print("-" * 60)

    while True:

        try:
            prompt = input("Prompt: ").strip()

        except EOFError:
            print()
            break

        except KeyboardInterrupt:
            print("\nInterrupted.")
            break

        if not prompt:
            continue

        if prompt.lower() in ("exit", "quit"):
            print("Shutting down.")
            break

        print("\nWorking...\n")

        run = asyncio.run(_run_once(prompt))
        print(render_run(run))

        print("\n" + "-" * 60 + "\n")


if __name__ == "__main__":
    main()
