"""Custom exceptions for DSO."""


class DSOError(Exception):
    """Base exception class for DSO."""

    pass


class ConfigurationError(DSOError):
    """Configuration error (missing credentials, failed validation, bad settings)."""

    pass


class DatasetError(DSOError):
    """Dataset could not be imported or exported."""

    pass


class PipelineStateError(DSOError):
    """Operation not allowed in the current pipeline phase."""

    pass


class ProviderError(DSOError):
    """Error raised by an inference provider.

    The string form of every provider error is the human-readable message
    stored on a failed work item.
    """

    def __init__(self, message: str = "Unknown Provider Error") -> None:
        super().__init__(message or "Unknown Provider Error")


class RateLimitError(ProviderError):
    """Provider signalled quota exhaustion (HTTP 429)."""

    def __init__(self, retry_after: int | None = None) -> None:
        self.retry_after = retry_after
        message = "Rate Limit (429): Quota exceeded. Increase delay or reduce concurrency."
        if retry_after:
            message = f"{message} Retry after {retry_after}s."
        super().__init__(message)


class AuthError(ProviderError):
    """Invalid credential or model not authorized (HTTP 401/403)."""

    def __init__(self) -> None:
        super().__init__("Auth Error (403): API Key invalid or unauthorized for this model.")


class BadRequestError(ProviderError):
    """Malformed prompt or generation config (HTTP 400)."""

    def __init__(self) -> None:
        super().__init__("Bad Request (400): Invalid input or model configuration.")


class ProviderInternalError(ProviderError):
    """Transient vendor-side fault (HTTP 5xx)."""

    def __init__(self, provider: str = "Provider") -> None:
        self.provider = provider
        super().__init__(f"Server Error (500): {provider} service is experiencing issues.")


class ProviderTimeoutError(ProviderError):
    """The hard request deadline elapsed before the provider answered."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Request timed out after {timeout:g}s")


class NotInitializedError(ProviderError):
    """Provider invoked without credentials configured."""

    def __init__(self) -> None:
        super().__init__("Provider not initialized. Please check API Key.")
