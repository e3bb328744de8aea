"""Multi-provider text analysis.

This package provides provider fallback, rate limiting, offline degradation and request
coordination for translation and emotion analysis, plus language detection, exposed through
``AnalysisService``.
"""

from core.analysis.coordinator import CoordinationPattern, RequestCoordinator
from core.analysis.errors import (
    AllProvidersExhaustedError,
    AnalysisError,
    InvalidInputError,
    OfflineUnavailableError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderTransportError,
    ProviderUnavailableError,
    RateLimitExceededError,
)
from core.analysis.interface import ProviderAttributes, ProviderInterface
from core.analysis.language import LanguageDetector
from core.analysis.offline import OfflineDegradationHandler
from core.analysis.orchestrator import ConnectivityMonitor, ConnectivityState, FallbackOrchestrator
from core.analysis.rate_limiter import RateLimiter
from core.analysis.registry import ProviderRegistry
from core.analysis.service import AnalysisService

__all__: list[str] = [
    "AllProvidersExhaustedError",
    "AnalysisError",
    "AnalysisService",
    "ConnectivityMonitor",
    "ConnectivityState",
    "CoordinationPattern",
    "FallbackOrchestrator",
    "InvalidInputError",
    "LanguageDetector",
    "OfflineDegradationHandler",
    "OfflineUnavailableError",
    "ProviderAttributes",
    "ProviderError",
    "ProviderInterface",
    "ProviderRateLimitError",
    "ProviderRegistry",
    "ProviderResponseError",
    "ProviderTimeoutError",
    "ProviderTransportError",
    "ProviderUnavailableError",
    "RateLimitExceededError",
    "RateLimiter",
    "RequestCoordinator",
]
