"""Provider/runtime configuration for the text-generation and image layers.

Architectural role:
    Centralizes model/provider selection, timeouts and credential lookup for
    `imagebot.llm.client`, `imagebot.image.service` and the API adapters.

Model call flow integration:
    - `client.TextGenerationClient` consumes `PROVIDER`, `MODEL_NAME`,
      provider endpoint maps and key resolution.
    - `service.generate_text` consumes `TEXT_TIMEOUT_SECONDS`.
    - `image.service.ImageSynthesisConfig` reads the `IMAGE_*` variables.

Determinism:
    Deterministic for a fixed process environment and key files. Values are resolved
    at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None`; `client` turns it into an
    `ExternalServiceError` at call time.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Primary model routing controls.
PROVIDER = os.getenv("PROVIDER", "gemini")
MODEL_NAME = os.getenv("MODEL_NAME", "gemini-1.5-flash")

# Applied to every text-generation call (enhancement, ASCII art, caption).
TEXT_TIMEOUT_SECONDS = float(os.getenv("TEXT_TIMEOUT_SECONDS", "30"))

# OpenAI-compatible endpoint map.
PROVIDERS = {

    "local": {
        "url": "http://127.0.0.1:8080/v1/chat/completions",
        "key_file": None
    },

    "openai": {
        "url": "https://api.openai.com/v1/chat/completions",
        "key_file": "config/openai.key"
    },

    "groq": {
        "url": "https://api.groq.com/openai/v1/chat/completions",
        "key_file": "config/groq.key"
    },

    "openrouter": {
        "url": "https://openrouter.ai/api/v1/chat/completions",
        "key_file": "config/openrouter.key"
    },

    "mistral": {
        "url": "https://api.mistral.ai/v1/chat/completions",
        "key_file": "config/mistral.key"
    },

    "anthropic": {
        "url": "https://api.anthropic.com/v1/messages",
        "key_file": "config/anthropic.key"
    },

    "gemini": {
        "url": "https://generativelanguage.googleapis.com/v1beta/models",
        "key_file": "config/gemini.key"
    },

}


ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"

GEMINI_URL_TEMPLATE = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "{model}:generateContent"
)


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/gemini.key` -> `GEMINI_API_KEY`).
        2. Raw file contents at `path`.

    Args:
        path: Configured key file path or `None`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip()


# Image generation endpoint settings consumed by `imagebot.image` modules.
IMAGE_BASE_URL = os.getenv("IMAGE_BASE_URL", "https://image.pollinations.ai/prompt")
IMAGE_TIMEOUT_SECONDS = float(os.getenv("IMAGE_TIMEOUT_SECONDS", "30"))
IMAGE_USER_AGENT = os.getenv("IMAGE_USER_AGENT", "TelegramBot/1.0")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "").strip()
IMAGE_NOLOGO = os.getenv("IMAGE_NOLOGO", "false").lower() == "true"

# Request defaults applied by envelope parsing.
DEFAULT_STYLE = os.getenv("DEFAULT_STYLE", "realistic")
DEFAULT_WIDTH = int(os.getenv("DEFAULT_WIDTH", "1024"))
DEFAULT_HEIGHT = int(os.getenv("DEFAULT_HEIGHT", "1024"))
ENHANCE_PROMPTS = os.getenv("ENHANCE_PROMPTS", "true").lower() != "false"

# Delivery credentials; without a token replies are only logged.
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "").strip()
TELEGRAM_API_URL = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
