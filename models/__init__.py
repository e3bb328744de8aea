"""Data models for the analysis layer.

This package contains dataclass definitions for configuration, analysis requests and results,
provider descriptions and cache entries.
"""

from __future__ import annotations

from models.analysis_models import (
    AnalysisOptions,
    AnalysisRequest,
    AnalysisResult,
    BatchItemOutcome,
    EmotionPayload,
    LanguageDetection,
    Operation,
    Sentiment,
    TranslationPayload,
    UsageStats,
)
from models.cache_models import CacheEntry
from models.config_models import Config
from models.provider_models import ProviderParams, ProviderSpec, RateLimitWindow, RawProviderResult

__all__: list[str] = [
    "AnalysisOptions",
    "AnalysisRequest",
    "AnalysisResult",
    "BatchItemOutcome",
    "CacheEntry",
    "Config",
    "EmotionPayload",
    "LanguageDetection",
    "Operation",
    "ProviderParams",
    "ProviderSpec",
    "RateLimitWindow",
    "RawProviderResult",
    "Sentiment",
    "TranslationPayload",
    "UsageStats",
]
