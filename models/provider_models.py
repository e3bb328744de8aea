"""Models describing analysis providers and their rate-limit windows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.analysis_models import Operation, Sentiment

__all__: list[str] = ["ProviderParams", "ProviderSpec", "RateLimitWindow", "RawProviderResult"]


@dataclass
class ProviderSpec:
    """Registry entry for one provider.

    Only ``enabled`` changes at runtime.

    Attributes:
        provider_id (str): Registered provider name.
        supported_operations (frozenset[Operation]): Operations the provider can perform.
        priority (int): Position in the fallback chain, lower runs first.
        credentials_present (bool): Whether an API key or endpoint is configured.
        cost_hint (float): Relative cost per call, informational.
        enabled (bool): Feature flag for the provider.
    """

    provider_id: str
    supported_operations: frozenset[Operation]
    priority: int
    credentials_present: bool = False
    cost_hint: float = 0.0
    enabled: bool = True

    @property
    def is_available(self) -> bool:
        return self.enabled and self.credentials_present


@dataclass
class RateLimitWindow:
    """Fixed counting window for one provider.

    Attributes:
        provider_id (str): Provider name.
        window_started_at (float): Monotonic start time of the window, in seconds.
        request_count (int): Calls admitted in the current window.
        limit (int): Maximum admitted calls per window.
        window_duration_ms (int): Window length in milliseconds.
    """

    provider_id: str
    window_started_at: float
    request_count: int
    limit: int
    window_duration_ms: int


@dataclass(frozen=True)
class ProviderParams:
    """Request parameters passed to provider adapters.

    Attributes:
        source_language (str | None): Source language, or the text language for emotion analysis.
        target_language (str | None): Target language for translation.
        cultural_context (str): Cultural context hint.
    """

    source_language: str | None = None
    target_language: str | None = None
    cultural_context: str = "western"


@dataclass
class RawProviderResult:
    """Uniform adapter output before it is turned into an ``AnalysisResult``.

    Attributes:
        confidence (float): Provider or estimated confidence in [0, 1].
        text (str | None): Translated text.
        detected_language (str | None): Source language reported by the provider.
        emotions (dict[str, float] | None): Raw emotion scores.
        sentiment (Sentiment | None): Provider-reported sentiment.
        intensity (float | None): Provider-reported intensity.
        metadata (dict[str, str]): Provider-specific extras.
    """

    confidence: float
    text: str | None = None
    detected_language: str | None = None
    emotions: dict[str, float] | None = None
    sentiment: Sentiment | None = None
    intensity: float | None = None
    metadata: dict[str, str] = field(default_factory=dict)
