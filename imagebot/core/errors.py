"""Error taxonomy shared by pipeline stages and the orchestrator.

Architectural role:
    Stages raise these exceptions internally and convert them into typed
    results at their boundary. Only `ValidationError` and
    `InvocationBudgetExceeded` are ever seen by the orchestrator.

Failure reasons:
    Every error exposes a machine-readable `reason` string that stages copy
    into `failure_reason` (for example `HttpError(status=503)`).
"""


class ImageBotError(Exception):
    """Base class for all pipeline errors."""

    @property
    def reason(self) -> str:
        return f"{type(self).__name__}({self})"


class ValidationError(ImageBotError):
    """Raised for blank prompts before any external call is made."""

    def __init__(self, message: str = "Prompt cannot be empty"):
        super().__init__(message)

    @property
    def reason(self) -> str:
        return "EmptyPrompt"


class ExternalServiceError(ImageBotError):
    """Network failure, unexpected status or unusable provider response."""


class TimeoutExceeded(ExternalServiceError):
    """External call did not finish within its time budget."""

    def __init__(self, seconds: float):
        self.seconds = seconds
        super().__init__(f"External call exceeded {seconds:g}s")

    @property
    def reason(self) -> str:
        return f"TimeoutExceeded({self.seconds:g}s)"


class HttpError(ExternalServiceError):
    """Non-2xx HTTP status from an external service."""

    def __init__(self, status: int, detail: str = ""):
        self.status = status
        message = f"HTTP {status}"
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)

    @property
    def reason(self) -> str:
        return f"HttpError(status={self.status})"


class ContractViolationError(ExternalServiceError):
    """Response arrived but its shape is not what the contract promises."""


class InvalidContentType(ContractViolationError):
    def __init__(self, content_type: str | None):
        self.content_type = content_type
        super().__init__(f"Invalid content type received: {content_type}")

    @property
    def reason(self) -> str:
        return f"InvalidContentType(type={self.content_type})"


class EmptyResponseError(ContractViolationError):
    """Provider answered successfully but produced no usable text."""


class InvocationBudgetExceeded(ImageBotError):
    """A run tried to call a stage more often than its budget allows."""


def validate_prompt(prompt: str | None) -> str:
    """Return the stripped prompt or raise `ValidationError` when blank."""
    stripped = (prompt or "").strip()
    if not stripped:
        raise ValidationError()
    return stripped
