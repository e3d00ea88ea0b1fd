"""Image-provider HTTP client.

Processing flow:
    1. Build the provider URL from an already validated prompt and clamped
       dimensions (`build_image_url`).
    2. Issue one GET through the caller's `httpx.AsyncClient`.
    3. Check status and declared content type.
    4. Return the full binary payload plus the bare MIME type.

Size validation:
    - No prompt or dimension validation is performed here; see
      `imagebot.image.service`.

Error handling strategy:
    - Non-2xx status -> `HttpError`.
    - Missing or non-`image/` content type -> `InvalidContentType`.
    - Empty body -> `EmptyResponseError`.
    - Client-side timeouts -> `TimeoutExceeded`.
    - Other transport failures -> `ExternalServiceError`.

Determinism:
    - URL assembly is deterministic for fixed inputs/configuration.
    - `seed=random` makes the provider output intentionally non-deterministic.
"""

from urllib.parse import quote, urlencode

import httpx

from imagebot.core.errors import (
    EmptyResponseError,
    ExternalServiceError,
    HttpError,
    InvalidContentType,
    TimeoutExceeded,
)


def build_image_url(
    base_url: str,
    prompt: str,
    width: int,
    height: int,
    model: str = "",
    nologo: bool = False,
) -> str:
    """Return the GET URL for one generation request.

    The prompt is percent-encoded as a single path segment.
    """
    params = {"width": width, "height": height, "seed": "random"}
    if model:
        params["model"] = model
    if nologo:
        params["nologo"] = "true"
    encoded_prompt = quote(prompt.strip(), safe="")
    return f"{base_url.rstrip('/')}/{encoded_prompt}?{urlencode(params)}"


async def fetch_image(
    http_client: httpx.AsyncClient,
    url: str,
    user_agent: str,
    timeout_seconds: float,
) -> tuple[bytes, str]:
    """Download one generated image.

    Args:
        http_client: Shared async client (connection-pooled).
        url: Fully built provider URL.
        user_agent: Value for the `User-Agent` header.
        timeout_seconds: Budget reported when the client itself times out.

    Returns:
        `(image_bytes, mime_type)` with parameters stripped from the MIME type.
    """
    try:
        response = await http_client.get(
            url,
            headers={"User-Agent": user_agent},
            follow_redirects=True,
        )
    except httpx.TimeoutException as err:
        raise TimeoutExceeded(timeout_seconds) from err
    except httpx.RequestError as err:
        raise ExternalServiceError(f"Image provider request failed: {type(err).__name__}") from err

    if not response.is_success:
        raise HttpError(response.status_code, response.reason_phrase or "")

    content_type = response.headers.get("content-type")
    if not content_type or not content_type.strip().lower().startswith("image/"):
        raise InvalidContentType(content_type)

    if not response.content:
        raise EmptyResponseError("Image provider returned an empty body")

    mime_type = content_type.split(";", 1)[0].strip().lower()
    return response.content, mime_type
