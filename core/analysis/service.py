"""Outbound API of the analysis layer.

``AnalysisService`` owns one instance of every component, so all state lives in one explicitly
constructed object rather than in module globals.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Self

from core.analysis.coordinator import CoordinationPattern, RequestCoordinator
from core.analysis.language import LanguageDetector
from core.analysis.offline import OfflineDegradationHandler
from core.analysis.orchestrator import ConnectivityState, FallbackOrchestrator
from core.analysis.rate_limiter import RateLimiter
from core.analysis.registry import ProviderRegistry
from core.cache.inflight_manager import InFlightManager
from core.cache.kv_store import MemoryKeyValueStore, SQLiteKeyValueStore
from core.cache.manager import ResultCache
from models.analysis_models import AnalysisOptions, AnalysisRequest, Operation, UsageStats
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Mapping, Sequence

    from config.loader import Config
    from core.analysis.interface import ProviderInterface
    from core.analysis.orchestrator import ConnectivityMonitor
    from core.cache.kv_store import KeyValueStore
    from models.analysis_models import AnalysisResult, BatchItemOutcome, LanguageDetection

__all__: list[str] = ["AnalysisService"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

type BatchItem = str | tuple[str, str | None, str]


class AnalysisService:
    """Translation and emotion analysis with provider fallback, caching and offline degradation.

    Args:
        config (Config): Application configuration.
        store (KeyValueStore | None): Backing store for the result cache. Defaults to an SQLite store
            when ``CACHE.DB_PATH`` is set, an in-process store otherwise.
        connectivity (ConnectivityMonitor | None): Online check. Defaults to a settable flag.
        provider_classes (Mapping[str, type[ProviderInterface]] | None): Adapter classes by name.
            Defaults to every registered adapter.
    """

    def __init__(
        self,
        config: Config,
        *,
        store: KeyValueStore | None = None,
        connectivity: ConnectivityMonitor | None = None,
        provider_classes: Mapping[str, type[ProviderInterface]] | None = None,
    ) -> None:
        self.config: Config = config
        if store is None:
            store = SQLiteKeyValueStore(config.CACHE.DB_PATH) if config.CACHE.DB_PATH else MemoryKeyValueStore()
        self.store: KeyValueStore = store
        self.connectivity: ConnectivityMonitor = connectivity or ConnectivityState()

        self.cache: ResultCache = ResultCache(config, store)
        self.rate_limiter: RateLimiter = RateLimiter(
            config.RATE_LIMIT.LIMITS,
            config.RATE_LIMIT.WINDOW_MS,
            adaptive_cooldown=config.RATE_LIMIT.ADAPTIVE_COOLDOWN,
            base_cooldown_sec=config.RATE_LIMIT.BASE_COOLDOWN_SEC,
            max_cooldown_sec=config.RATE_LIMIT.MAX_COOLDOWN_SEC,
            cooldown_reset_sec=config.RATE_LIMIT.COOLDOWN_RESET_SEC,
        )
        self.registry: ProviderRegistry = ProviderRegistry(config, provider_classes)
        self.inflight: InFlightManager = InFlightManager()
        self.offline: OfflineDegradationHandler = OfflineDegradationHandler(config, self.cache)
        self.orchestrator: FallbackOrchestrator = FallbackOrchestrator(
            config,
            self.registry,
            self.rate_limiter,
            self.cache,
            self.offline,
            connectivity=self.connectivity,
            inflight=self.inflight,
        )
        self.coordinator: RequestCoordinator = RequestCoordinator(config, self.orchestrator)
        self.language_detector: LanguageDetector = LanguageDetector(
            config, self.registry, self.rate_limiter, self.connectivity
        )
        self._is_initialized: bool = False

    async def __aenter__(self) -> Self:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        await self.shutdown()

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    async def initialize(self) -> None:
        """Open the store, reload the cache index and initialize the providers."""
        if self._is_initialized:
            return
        logger.info("AnalysisService initialization started")
        if isinstance(self.store, SQLiteKeyValueStore):
            await self.store.component_load()
        await self.cache.component_load()
        await self.inflight.component_load()
        await self.registry.component_load()
        self._is_initialized = True
        logger.info("AnalysisService initialized (providers: %s)", self.registry.available_providers())

    async def shutdown(self) -> None:
        """Stop coordination, close providers and release the store."""
        if not self._is_initialized:
            return
        await self.coordinator.close()
        await self.registry.component_teardown()
        await self.inflight.component_teardown()
        await self.cache.component_teardown()
        if isinstance(self.store, SQLiteKeyValueStore):
            await self.store.component_teardown()
        self._is_initialized = False
        logger.info("AnalysisService shutdown completed")

    def _build_request(
        self,
        operation: Operation,
        text: str,
        *,
        subject_id: str = "",
        source_language: str | None = None,
        target_language: str | None = None,
        cultural_context: str | None = None,
        options: AnalysisOptions | None = None,
    ) -> AnalysisRequest:
        options = options or AnalysisOptions()
        return AnalysisRequest(
            operation=operation,
            input_text=text,
            subject_id=subject_id,
            source_language=source_language,
            target_language=target_language,
            cultural_context=cultural_context or self.config.ORCHESTRATOR.CULTURAL_CONTEXT,
            force_refresh=options.force_refresh,
            timeout_ms=options.timeout_ms or self.config.ORCHESTRATOR.DEFAULT_TIMEOUT_MS,
            confidence_threshold=options.confidence_threshold,
        )

    async def analyze_translation(
        self,
        text: str,
        source_language: str | None,
        target_language: str,
        options: AnalysisOptions | None = None,
    ) -> AnalysisResult:
        """Translate text.

        Args:
            text (str): Text to translate.
            source_language (str | None): Source language, None to let the provider detect it.
            target_language (str): Target language.
            options (AnalysisOptions | None): Per-call options.

        Returns:
            AnalysisResult: Translation result with a ``translation`` payload.

        Raises:
            InvalidInputError: If the text is too short or the target language is missing.
        """
        request: AnalysisRequest = self._build_request(
            Operation.TRANSLATE,
            text,
            source_language=source_language,
            target_language=target_language,
            options=options,
        )
        return await self.coordinator.submit(request)

    async def analyze_emotion(
        self,
        text: str,
        subject_id: str,
        options: AnalysisOptions | None = None,
        *,
        language: str | None = None,
        cultural_context: str | None = None,
    ) -> AnalysisResult:
        """Analyze the emotions of text, serialized per subject.

        Args:
            text (str): Text to analyze.
            subject_id (str): User or conversation the text belongs to.
            options (AnalysisOptions | None): Per-call options.
            language (str | None): Language of the text. Defaults to the configured language.
            cultural_context (str | None): Cultural context hint.

        Returns:
            AnalysisResult: Result with an ``emotion`` payload.

        Raises:
            InvalidInputError: If the text is too short.
        """
        request: AnalysisRequest = self._build_request(
            Operation.EMOTION_ANALYZE,
            text,
            subject_id=subject_id,
            source_language=language or self.config.ORCHESTRATOR.DEFAULT_LANGUAGE,
            cultural_context=cultural_context,
            options=options,
        )
        return await self.coordinator.submit(request, CoordinationPattern.SERIALIZED)

    async def analyze_draft(
        self,
        text: str,
        subject_id: str,
        options: AnalysisOptions | None = None,
        *,
        language: str | None = None,
    ) -> AnalysisResult | None:
        """Re-analyze the emotions of a draft being typed, debounced per subject.

        Args:
            text (str): Current draft text.
            subject_id (str): Draft owner.
            options (AnalysisOptions | None): Per-call options.
            language (str | None): Language of the draft.

        Returns:
            AnalysisResult | None: The result, or None when a newer draft superseded this call.

        Raises:
            InvalidInputError: If the text is too short.
        """
        request: AnalysisRequest = self._build_request(
            Operation.EMOTION_ANALYZE,
            text,
            subject_id=subject_id,
            source_language=language or self.config.ORCHESTRATOR.DEFAULT_LANGUAGE,
            options=options,
        )
        future: asyncio.Future[AnalysisResult] = self.coordinator.submit_debounced(request)
        await asyncio.wait([future])
        if future.cancelled():
            return None
        return future.result()

    async def translate_batch(
        self,
        items: Sequence[BatchItem],
        source_language: str | None = None,
        target_language: str | None = None,
        options: AnalysisOptions | None = None,
    ) -> list[BatchItemOutcome]:
        """Translate several texts concurrently.

        Args:
            items (Sequence[BatchItem]): Texts, or ``(text, source_language, target_language)`` tuples
                overriding the shared languages.
            source_language (str | None): Shared source language.
            target_language (str | None): Shared target language.
            options (AnalysisOptions | None): Per-call options applied to every item.

        Returns:
            list[BatchItemOutcome]: One outcome per item in the original order. Invalid items carry
            their error instead of a result.
        """
        requests: list[AnalysisRequest] = []
        for item in items:
            text, src, tgt = item if isinstance(item, tuple) else (item, source_language, target_language)
            requests.append(
                self._build_request(
                    Operation.TRANSLATE,
                    text,
                    source_language=src,
                    target_language=tgt,
                    options=options,
                )
            )
        return await self.coordinator.submit_batch(requests)

    async def detect_language(self, text: str, options: AnalysisOptions | None = None) -> LanguageDetection:
        """Detect the language of text.

        Args:
            text (str): Text to inspect.
            options (AnalysisOptions | None): Per-call options. Only ``timeout_ms`` applies.

        Returns:
            LanguageDetection: Provider detection, or the local word-pattern guess when no provider
            answered.

        Raises:
            InvalidInputError: If the text is too short.
        """
        options = options or AnalysisOptions()
        return await self.language_detector.detect(text, options.timeout_ms)

    async def clear_cache(self) -> int:
        """Remove every cached result.

        Returns:
            int: Number of removed entries.
        """
        return await self.cache.clear()

    def get_usage_stats(self) -> UsageStats:
        return UsageStats(
            cache_size=self.cache.size,
            per_provider_request_counts=self.rate_limiter.snapshot(),
            available_providers=self.registry.available_providers(),
        )

    def set_provider_enabled(self, provider_id: str, *, enabled: bool) -> bool:
        return self.registry.set_enabled(provider_id, enabled=enabled)
