"""Request and result models for translation and emotion analysis.

``AnalysisRequest`` is immutable and created once per logical UI action. ``AnalysisResult`` and its
payloads are JSON-serializable through dataclasses-json so they can be stored in the result cache.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from dataclasses_json import DataClassJsonMixin, dataclass_json

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__: list[str] = [
    "BASIC_EMOTIONS",
    "NEUTRAL_EMOTION",
    "PROVIDER_LOCAL",
    "PROVIDER_NONE",
    "WARNING_BELOW_THRESHOLD",
    "WARNING_STALE",
    "WARNING_UNAVAILABLE",
    "AnalysisOptions",
    "AnalysisRequest",
    "AnalysisResult",
    "BatchItemOutcome",
    "EmotionPayload",
    "LanguageDetection",
    "Operation",
    "Sentiment",
    "TranslationPayload",
    "UsageStats",
]

BASIC_EMOTIONS: Final[tuple[str, ...]] = (
    "joy",
    "sadness",
    "anger",
    "fear",
    "surprise",
    "disgust",
    "trust",
    "anticipation",
)
NEUTRAL_EMOTION: Final[str] = "neutral"
POSITIVE_EMOTIONS: Final[frozenset[str]] = frozenset({"joy", "surprise", "trust"})
NEGATIVE_EMOTIONS: Final[frozenset[str]] = frozenset({"sadness", "anger", "fear", "disgust"})
POLARITY_MARGIN: Final[float] = 0.1

WARNING_BELOW_THRESHOLD: Final[str] = "below-threshold"
WARNING_STALE: Final[str] = "stale"
WARNING_UNAVAILABLE: Final[str] = "unavailable"

PROVIDER_NONE: Final[str] = "none"
PROVIDER_LOCAL: Final[str] = "local"


class Operation(StrEnum):
    """Kind of analysis performed on the input text."""

    TRANSLATE = "translate"
    EMOTION_ANALYZE = "emotion"


@dataclass(frozen=True)
class AnalysisOptions:
    """Per-call options accepted by the service entry points.

    Attributes:
        force_refresh (bool): Bypass the fresh cache lookup.
        timeout_ms (int | None): Per-provider timeout. None uses the configured default.
        confidence_threshold (float | None): Acceptance threshold override. None uses the configured default.
    """

    force_refresh: bool = False
    timeout_ms: int | None = None
    confidence_threshold: float | None = None


@dataclass(frozen=True)
class AnalysisRequest:
    """A single analysis request.

    Attributes:
        operation (Operation): Translation or emotion analysis.
        input_text (str): Text to analyze.
        subject_id (str): Logical subject (user or conversation) used for ordering and debouncing.
        source_language (str | None): Source language code. For emotion analysis, the text language.
        target_language (str | None): Target language code. Required for translation.
        cultural_context (str): Cultural context hint for emotion providers.
        force_refresh (bool): Bypass the fresh cache lookup.
        timeout_ms (int): Per-provider call timeout in milliseconds.
        confidence_threshold (float | None): Acceptance threshold override.
    """

    operation: Operation
    input_text: str
    subject_id: str = ""
    source_language: str | None = None
    target_language: str | None = None
    cultural_context: str = "western"
    force_refresh: bool = False
    timeout_ms: int = 5000
    confidence_threshold: float | None = None

    @property
    def language_pair(self) -> tuple[str, str]:
        """Lowercased ``(source, target)`` pair, empty strings for missing codes."""
        return ((self.source_language or "").lower(), (self.target_language or "").lower())


@dataclass_json
@dataclass
class Sentiment(DataClassJsonMixin):
    """Overall sentiment.

    Attributes:
        polarity (str): 'positive', 'negative' or 'neutral'.
        score (float): Signed score in [-1, 1].
    """

    polarity: str = "neutral"
    score: float = 0.0


@dataclass_json
@dataclass
class TranslationPayload(DataClassJsonMixin):
    """Translated text and language information.

    Attributes:
        text (str): Translated text, or the original text when translation is pending.
        source_language (str | None): Requested source language.
        target_language (str | None): Requested target language.
        detected_language (str | None): Source language reported by the provider.
        pending (bool): True when the text is the untranslated original.
        marker (str): Marker shown next to pending text.
    """

    text: str
    source_language: str | None = None
    target_language: str | None = None
    detected_language: str | None = None
    pending: bool = False
    marker: str = ""


@dataclass_json
@dataclass
class EmotionPayload(DataClassJsonMixin):
    """Emotion distribution with its dominant label and sentiment.

    Attributes:
        emotions (dict[str, float]): Normalized scores per basic emotion (sum to 1 when non-empty).
        dominant_emotion (str): Highest-scoring label, or 'neutral' when nothing was detected.
        sentiment (Sentiment): Overall sentiment.
        intensity (float): Strength of the dominant emotion in [0, 1].
        cultural_context (str): Cultural context the analysis was run with.
        language (str | None): Language of the analyzed text.
    """

    emotions: dict[str, float] = field(default_factory=dict)
    dominant_emotion: str = NEUTRAL_EMOTION
    sentiment: Sentiment = field(default_factory=Sentiment)
    intensity: float = 0.0
    cultural_context: str = "western"
    language: str | None = None

    @classmethod
    def from_scores(
        cls,
        scores: Mapping[str, float],
        *,
        cultural_context: str = "western",
        language: str | None = None,
        sentiment: Sentiment | None = None,
        intensity: float | None = None,
    ) -> EmotionPayload:
        """Build a payload from raw, unnormalized emotion scores.

        Unknown labels and non-positive scores are dropped. The remaining scores are normalized to
        sum to 1. Sentiment and intensity are derived from the distribution unless given.

        Args:
            scores (Mapping[str, float]): Raw scores keyed by emotion label.
            cultural_context (str): Cultural context of the analysis.
            language (str | None): Language of the analyzed text.
            sentiment (Sentiment | None): Provider-reported sentiment.
            intensity (float | None): Provider-reported intensity.

        Returns:
            EmotionPayload: The normalized payload.
        """
        valid: dict[str, float] = {
            label: float(score) for label, score in scores.items() if label in BASIC_EMOTIONS and float(score) > 0
        }
        total: float = sum(valid.values())
        emotions: dict[str, float] = {label: min(score / total, 1.0) for label, score in valid.items()} if total else {}

        dominant: str = max(emotions, key=lambda label: emotions[label]) if emotions else NEUTRAL_EMOTION

        if sentiment is None:
            positive: float = sum(v for k, v in emotions.items() if k in POSITIVE_EMOTIONS)
            negative: float = sum(v for k, v in emotions.items() if k in NEGATIVE_EMOTIONS)
            score: float = max(-1.0, min(1.0, positive - negative))
            polarity: str = "neutral"
            if score > POLARITY_MARGIN:
                polarity = "positive"
            elif score < -POLARITY_MARGIN:
                polarity = "negative"
            sentiment = Sentiment(polarity=polarity, score=score)

        if intensity is None:
            intensity = max(emotions.values()) if emotions else 0.0

        return cls(
            emotions=emotions,
            dominant_emotion=dominant,
            sentiment=sentiment,
            intensity=max(0.0, min(1.0, intensity)),
            cultural_context=cultural_context,
            language=language,
        )


@dataclass_json
@dataclass
class AnalysisResult(DataClassJsonMixin):
    """Outcome of an analysis. Never None; missing answers are low-confidence results with warnings.

    Attributes:
        confidence (float): Confidence in [0, 1].
        provider_id (str): Producing provider, 'local' for heuristics or 'none' when nothing was called.
        translation (TranslationPayload | None): Set for translation requests.
        emotion (EmotionPayload | None): Set for emotion requests.
        from_cache (bool): Served from the result cache.
        offline (bool): Produced without a live provider answer.
        warnings (list[str]): Caller-facing warnings such as 'below-threshold', 'stale' or 'unavailable'.
        diagnostics (dict[str, str]): Provider failures recorded during the fallback walk.
    """

    confidence: float = 0.0
    provider_id: str = PROVIDER_NONE
    translation: TranslationPayload | None = None
    emotion: EmotionPayload | None = None
    from_cache: bool = False
    offline: bool = False
    warnings: list[str] = field(default_factory=list)
    diagnostics: dict[str, str] = field(default_factory=dict)

    @property
    def payload(self) -> TranslationPayload | EmotionPayload | None:
        """The translation or emotion payload, whichever is present."""
        return self.translation if self.translation is not None else self.emotion


@dataclass_json
@dataclass
class UsageStats(DataClassJsonMixin):
    """Snapshot of service usage.

    Attributes:
        cache_size (int): Number of entries currently held by the result cache.
        per_provider_request_counts (dict[str, int]): Admitted calls per provider in the current window.
        available_providers (list[str]): Providers that are enabled and have credentials.
    """

    cache_size: int = 0
    per_provider_request_counts: dict[str, int] = field(default_factory=dict)
    available_providers: list[str] = field(default_factory=list)


@dataclass
class BatchItemOutcome:
    """Settled outcome of one item in a batch.

    Attributes:
        index (int): Position of the item in the caller's original list.
        input_text (str): The item's original input, echoed back.
        result (AnalysisResult | None): Result when the item succeeded.
        error (Exception | None): Error when the item failed.
    """

    index: int
    input_text: str
    result: AnalysisResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None


@dataclass_json
@dataclass
class LanguageDetection(DataClassJsonMixin):
    """Detected language of a text.

    Attributes:
        language (str): Detected language code.
        confidence (float): Detection confidence in [0, 1].
        is_reliable (bool): True when the confidence clears the reliability threshold of its source.
        provider_id (str): Provider that detected the language, or 'local' for the word-pattern fallback.
    """

    language: str
    confidence: float = 0.0
    is_reliable: bool = False
    provider_id: str = PROVIDER_LOCAL
