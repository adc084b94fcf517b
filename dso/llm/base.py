"""Base class for inference providers.

The batch engine depends only on this contract:

- ``validate(model)`` confirms credentials and model reachability and never raises.
- ``transform(text, config)`` returns a :class:`TransformResult` or raises a
  :class:`~dso.exceptions.ProviderError` subclass.

Vendor adapters implement ``_generate`` and ``_ping``; prompt rendering,
the hard timeout, error classification and response parsing live here.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from dso.config.constants import REQUEST_TIMEOUT_SECONDS
from dso.exceptions import (
    AuthError,
    BadRequestError,
    NotInitializedError,
    ProviderError,
    ProviderInternalError,
    ProviderTimeoutError,
    RateLimitError,
)
from dso.llm.parser import TransformResult, parse_response
from dso.utils.logging import generate_request_id, get_logger

if TYPE_CHECKING:
    from dso.config.settings import PipelineConfig

log = get_logger(__name__)

# Substrings of vendor error text, checked in this order
_RATE_LIMIT_MARKERS = ("429", "too many requests", "rate_limit", "rate limit", "resource_exhausted")
_AUTH_MARKERS = (
    "401",
    "403",
    "permission_denied",
    "unauthenticated",
    "invalid api key",
    "api key not valid",
    "authentication",
)
_BAD_REQUEST_MARKERS = ("400", "invalid_argument", "bad request")
_INTERNAL_MARKERS = ("500", "502", "503", "internal", "unavailable", "overloaded")


class BaseProvider(ABC):
    """Abstract base class for inference providers."""

    name: str = "base"
    display_name: str = "Provider"

    def __init__(self, model: str, request_timeout: float = REQUEST_TIMEOUT_SECONDS) -> None:
        self.model = model
        self.request_timeout = request_timeout
        self.client: Any = None

    @property
    def is_initialized(self) -> bool:
        """Whether credentials are configured and a client exists."""
        return self.client is not None

    async def validate(self, model: str | None = None) -> bool:
        """Make a minimal-cost call to confirm the credential and model are usable.

        Returns:
            True if the call succeeded; False on any failure (logged, never raised)
        """
        model_name = model or self.model
        if not self.is_initialized:
            log.error("Connection validation failed", provider=self.name, error="not initialized")
            return False

        try:
            await asyncio.wait_for(self._ping(model_name), timeout=self.request_timeout)
        except Exception as e:
            log.error(
                "Connection validation failed",
                provider=self.name,
                model=model_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        log.info("Connection validated", provider=self.name, model=model_name)
        return True

    async def transform(self, text: str, config: "PipelineConfig") -> TransformResult:
        """Rewrite one input string.

        Args:
            text: Original text substituted into ``config.prompt_template``
            config: Generation parameters for this run

        Returns:
            Parsed reasoning and rewritten output

        Raises:
            NotInitializedError: No credentials configured
            ProviderTimeoutError: The request did not settle within ``request_timeout``
            ProviderError: Any other classified provider failure
        """
        if not self.is_initialized:
            raise NotInitializedError()

        prompt = config.render_prompt(text)
        request_id = generate_request_id()
        start_time = time.perf_counter()

        log.debug(
            "Sending transform request",
            provider=self.name,
            model=self.model,
            request_id=request_id,
            native_thinking=config.use_native_thinking,
        )

        try:
            raw = await asyncio.wait_for(
                self._generate(prompt, config), timeout=self.request_timeout
            )
        except asyncio.TimeoutError as e:
            log.warning(
                "Transform request timed out",
                provider=self.name,
                request_id=request_id,
                timeout=self.request_timeout,
            )
            raise ProviderTimeoutError(self.request_timeout) from e
        except ProviderError:
            raise
        except Exception as e:
            log.warning(
                "Transform request failed",
                provider=self.name,
                model=self.model,
                request_id=request_id,
                duration_ms=int((time.perf_counter() - start_time) * 1000),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise self._classify_error(e) from e

        log.debug(
            "Transform response received",
            provider=self.name,
            request_id=request_id,
            duration_ms=int((time.perf_counter() - start_time) * 1000),
            chars=len(raw),
        )
        return parse_response(raw, native_thinking=config.use_native_thinking)

    def _classify_error(self, error: Exception) -> ProviderError:
        """Map a raw vendor exception onto the provider error taxonomy."""
        message = str(error)
        lowered = message.lower()
        status = getattr(error, "status_code", None) or getattr(error, "code", None)
        if status is not None:
            lowered = f"{status} {lowered}"

        if any(marker in lowered for marker in _RATE_LIMIT_MARKERS):
            return RateLimitError()
        if any(marker in lowered for marker in _AUTH_MARKERS):
            return AuthError()
        if any(marker in lowered for marker in _BAD_REQUEST_MARKERS):
            return BadRequestError()
        if any(marker in lowered for marker in _INTERNAL_MARKERS):
            return ProviderInternalError(self.display_name)
        return ProviderError(message)

    @abstractmethod
    async def _generate(self, prompt: str, config: "PipelineConfig") -> str:
        """Send one generation request and return the raw response text."""
        ...

    @abstractmethod
    async def _ping(self, model: str) -> None:
        """Perform the cheapest request that proves the credential and model work."""
        ...
