"""Provider-specific transport client for text-generation requests.

Architectural role:
    Executes blocking HTTP requests against the configured model provider and
    returns the generated text. Stages receive an instance by injection and
    call it through `imagebot.llm.service.generate_text`.

Model invocation flow:
    stage -> `service.generate_text` -> `TextGenerationClient.generate` ->
    provider branch (OpenAI-compatible / Anthropic / Gemini) -> response text.

Retry behavior:
    No retry loop is implemented. Each HTTP call is attempted once with the
    configured timeout.

Thread safety:
    Instances hold configuration only. Every call issues an independent
    `requests.post`, so one client can serve concurrent requests from worker
    threads.

Failure handling model:
    All failures raise `ExternalServiceError` subclasses with sanitized
    messages. Provider response bodies are never included.
"""

import requests

from imagebot.core.errors import EmptyResponseError, ExternalServiceError, HttpError
from imagebot.llm.provider_config import (
    ANTHROPIC_URL,
    GEMINI_URL_TEMPLATE,
    MODEL_NAME,
    PROVIDER,
    PROVIDERS,
    TEXT_TIMEOUT_SECONDS,
    load_key,
)


def _build_sanitized_http_error(provider_name: str, err: requests.exceptions.RequestException) -> ExternalServiceError:
    """Build a provider-labeled error without exposing raw internals."""
    status_code = None
    if getattr(err, "response", None) is not None:
        status_code = getattr(err.response, "status_code", None)

    label = str(provider_name or "provider").upper()
    if status_code:
        return HttpError(status_code, f"from {label}")
    return ExternalServiceError(f"{label} request failed: {type(err).__name__}")


class TextGenerationClient:
    """Blocking text-generation client for one provider/model pair.

    Args:
        provider: Key into `PROVIDERS`.
        model: Provider model name.
        timeout: Per-request socket timeout in seconds.
        api_key: Explicit key; when omitted the provider key file is used.
    """

    def __init__(
        self,
        provider: str = PROVIDER,
        model: str = MODEL_NAME,
        timeout: float = TEXT_TIMEOUT_SECONDS,
        api_key: str | None = None,
    ):
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown text provider: {provider}")
        self.provider = provider
        self.model = model
        self.timeout = timeout
        self._api_key = api_key

    def _resolve_key(self) -> str | None:
        if self._api_key:
            return self._api_key
        return load_key(PROVIDERS[self.provider]["key_file"])

    def generate(self, prompt: str, max_tokens: int = 512, temperature: float = 0.7) -> str:
        """Send one prompt and return the generated text.

        Args:
            prompt: Complete instruction text.
            max_tokens: Output token cap forwarded to the provider.
            temperature: Sampling temperature.

        Returns:
            Response text (never blank). Leading whitespace is preserved
            for layout-sensitive output such as ASCII art.

        Raises:
            HttpError: Provider answered with a non-2xx status.
            EmptyResponseError: Response parsed but carried no text.
            ExternalServiceError: Missing key, transport failure or
                malformed response body.
        """
        try:
            if self.provider == "anthropic":
                text = self._send_anthropic(prompt, max_tokens, temperature)
            elif self.provider == "gemini":
                text = self._send_gemini(prompt, max_tokens, temperature)
            else:
                text = self._send_openai_compatible(prompt, max_tokens, temperature)
        except requests.exceptions.RequestException as err:
            raise _build_sanitized_http_error(self.provider, err) from err
        except (KeyError, IndexError, TypeError, ValueError) as err:
            raise ExternalServiceError(
                f"{self.provider.upper()} returned a malformed response"
            ) from err

        text = text or ""
        if not text.strip():
            raise EmptyResponseError(f"{self.provider.upper()} returned an empty response")
        return text

    def _require_key(self) -> str:
        api_key = self._resolve_key()
        if not api_key:
            raise ExternalServiceError(f"{self.provider.upper()} API key not configured")
        return api_key

    def _send_openai_compatible(self, prompt: str, max_tokens: int, temperature: float) -> str:
        config = PROVIDERS[self.provider]
        headers = {
            "Content-Type": "application/json"
        }

        if config["key_file"]:
            headers["Authorization"] = f"Bearer {self._require_key()}"

        payload = {
            "model": self.model,
            "messages": [
                {"role": "user", "content": prompt}
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": False,
        }

        response = requests.post(
            config["url"],
            headers=headers,
            json=payload,
            timeout=self.timeout,
        )

        response.raise_for_status()
        data = response.json()

        return data["choices"][0]["message"]["content"]

    def _send_anthropic(self, prompt: str, max_tokens: int, temperature: float) -> str:
        headers = {
            "x-api-key": self._require_key(),
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json",
        }

        anthropic_payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {"role": "user", "content": prompt}
            ],
        }

        response = requests.post(
            ANTHROPIC_URL,
            headers=headers,
            json=anthropic_payload,
            timeout=self.timeout,
        )

        response.raise_for_status()
        data = response.json()

        return data["content"][0]["text"]

    def _send_gemini(self, prompt: str, max_tokens: int, temperature: float) -> str:
        url = GEMINI_URL_TEMPLATE.format(model=self.model)

        headers = {
            "x-goog-api-key": self._require_key(),
            "Content-Type": "application/json",
        }

        gemini_payload = {
            "contents": [
                {"role": "user", "parts": [{"text": prompt}]}
            ],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }

        response = requests.post(
            url,
            headers=headers,
            json=gemini_payload,
            timeout=self.timeout,
        )

        response.raise_for_status()
        data = response.json()

        return data["candidates"][0]["content"]["parts"][0]["text"]
