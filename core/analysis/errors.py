"""Exception hierarchy for the analysis layer.

Only ``InvalidInputError`` reaches callers of the orchestrator. Every other error is recovered
inside the fallback walk or the offline handler and reported through result diagnostics.
"""

from __future__ import annotations

__all__: list[str] = [
    "AllProvidersExhaustedError",
    "AnalysisError",
    "InvalidInputError",
    "OfflineUnavailableError",
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderResponseError",
    "ProviderTimeoutError",
    "ProviderTransportError",
    "ProviderUnavailableError",
    "RateLimitExceededError",
]


class AnalysisError(Exception):
    """Base class for analysis layer errors."""


class InvalidInputError(AnalysisError):
    """The request failed validation before any cache or provider interaction."""


class ProviderError(AnalysisError):
    """A provider could not produce a result. Recovered by trying the next provider."""


class ProviderUnavailableError(ProviderError):
    """The provider is disabled, lacks credentials or failed to initialize."""


class RateLimitExceededError(ProviderError):
    """The local rate limiter refused to admit a call to the provider."""


class ProviderTimeoutError(ProviderError):
    """The provider call exceeded its timeout."""


class ProviderTransportError(ProviderError):
    """The provider call failed at the transport or API level."""


class ProviderRateLimitError(ProviderTransportError):
    """The provider itself reported rate limiting (HTTP 429 or an SDK equivalent)."""


class ProviderResponseError(ProviderTransportError):
    """The provider answered with a payload that could not be interpreted."""


class AllProvidersExhaustedError(AnalysisError):
    """No provider produced a result. Triggers offline degradation."""


class OfflineUnavailableError(AnalysisError):
    """Neither stale cache nor a local heuristic could produce a result."""
