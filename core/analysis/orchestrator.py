# ruff: noqa: BLE001
"""Fallback orchestration over the provider chain.

A request is answered from the fresh cache when possible, otherwise by walking the provider chain
in priority order until one result meets the confidence threshold. When the chain yields nothing
usable the request is handed to offline degradation. Apart from request validation, no failure
reaches the caller.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from core.analysis.errors import (
    AllProvidersExhaustedError,
    InvalidInputError,
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderTransportError,
    ProviderUnavailableError,
    RateLimitExceededError,
)
from models.analysis_models import (
    PROVIDER_NONE,
    WARNING_BELOW_THRESHOLD,
    AnalysisResult,
    EmotionPayload,
    Operation,
    TranslationPayload,
)
from models.provider_models import ProviderParams
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config
    from core.analysis.interface import ProviderInterface
    from core.analysis.offline import OfflineDegradationHandler
    from core.analysis.rate_limiter import RateLimiter
    from core.analysis.registry import ProviderRegistry
    from core.cache.inflight_manager import InFlightManager
    from core.cache.manager import ResultCache
    from models.analysis_models import AnalysisRequest
    from models.cache_models import CacheEntry
    from models.provider_models import ProviderSpec, RawProviderResult

__all__: list[str] = ["ConnectivityMonitor", "ConnectivityState", "FallbackOrchestrator"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

INFLIGHT_GRACE_SEC: Final[float] = 1.0


@runtime_checkable
class ConnectivityMonitor(Protocol):
    """Reports whether live providers should be attempted at all."""

    def is_online(self) -> bool: ...


class ConnectivityState:
    """Settable connectivity flag, online by default."""

    def __init__(self, *, online: bool = True) -> None:
        self._online: bool = online

    def is_online(self) -> bool:
        return self._online

    def set_online(self, *, online: bool) -> None:
        if online != self._online:
            logger.info("Connectivity changed: %s", "online" if online else "offline")
        self._online = online


class FallbackOrchestrator:
    """Resolves analysis requests against the cache, the provider chain and offline degradation.

    Args:
        config (Config): Application configuration.
        registry (ProviderRegistry): Provider chains and adapter instances.
        rate_limiter (RateLimiter): Per-provider admission control.
        cache (ResultCache): Result cache.
        offline (OfflineDegradationHandler): Fallback used when no provider produced a result.
        connectivity (ConnectivityMonitor | None): Online check. Defaults to always online.
        inflight (InFlightManager | None): Coalesces identical concurrent requests when given.
    """

    def __init__(
        self,
        config: Config,
        registry: ProviderRegistry,
        rate_limiter: RateLimiter,
        cache: ResultCache,
        offline: OfflineDegradationHandler,
        connectivity: ConnectivityMonitor | None = None,
        inflight: InFlightManager | None = None,
    ) -> None:
        self.config: Config = config
        self.registry: ProviderRegistry = registry
        self.rate_limiter: RateLimiter = rate_limiter
        self.cache: ResultCache = cache
        self.offline: OfflineDegradationHandler = offline
        self.connectivity: ConnectivityMonitor = connectivity or ConnectivityState()
        self.inflight: InFlightManager | None = inflight

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Analyze one request.

        Args:
            request (AnalysisRequest): The request.

        Returns:
            AnalysisResult: The result, possibly low-confidence or offline, never None.

        Raises:
            InvalidInputError: If the request fails validation. Nothing else is raised.
        """
        self._validate(request)

        if self._is_identity(request):
            logger.debug("Source and target language are identical (%s), skipping providers", request.source_language)
            return AnalysisResult(
                confidence=1.0,
                provider_id=PROVIDER_NONE,
                translation=TranslationPayload(
                    text=request.input_text,
                    source_language=request.source_language,
                    target_language=request.target_language,
                    detected_language=request.source_language,
                ),
            )

        key: str = StringUtils.generate_hash_key(
            request.operation, request.input_text, request.source_language, request.target_language
        )
        threshold: float = self._threshold(request)

        if not request.force_refresh:
            cached: AnalysisResult | None = await self._lookup_cache(key, threshold)
            if cached is not None:
                return cached

        # Requests with different thresholds may settle on different providers.
        inflight_key: str = f"{key}|{threshold:.4f}"
        is_producer: bool = False
        if self.inflight is not None:
            try:
                shared: AnalysisResult | None = await self.inflight.mark_inflight_start(
                    inflight_key, timeout_sec=self._walk_budget_sec(request)
                )
            except TimeoutError:
                logger.warning("Coalesced request abandoned, running own provider walk for key: %s", key[:16])
            else:
                if shared is not None:
                    return replace(shared, warnings=list(shared.warnings), diagnostics=dict(shared.diagnostics))
                is_producer = True

        result: AnalysisResult | None = None
        try:
            result = await self._resolve(request, key, threshold)
        finally:
            if is_producer and self.inflight is not None:
                if result is None:
                    msg: str = f"Producer abandoned analysis for key: {key[:16]}"
                    await self.inflight.store_inflight_exception(inflight_key, TimeoutError(msg))
                else:
                    await self.inflight.store_inflight_result(inflight_key, result)
        return result

    def _threshold(self, request: AnalysisRequest) -> float:
        if request.confidence_threshold is not None:
            return request.confidence_threshold
        return self.config.ORCHESTRATOR.CONFIDENCE_THRESHOLD

    def _walk_budget_sec(self, request: AnalysisRequest) -> float:
        """Longest time a full provider walk for ``request`` can take."""
        chain_length: int = max(1, len(self.registry.providers_for(request.operation)))
        return request.timeout_ms / 1000 * chain_length + INFLIGHT_GRACE_SEC

    def _validate(self, request: AnalysisRequest) -> None:
        if request.operation not in (Operation.TRANSLATE, Operation.EMOTION_ANALYZE):
            msg: str = f"Unknown operation: '{request.operation}'"
            raise InvalidInputError(msg)

        if not isinstance(request.input_text, str):
            msg = f"Input text must be a string, got {type(request.input_text).__name__}"
            raise InvalidInputError(msg)

        min_length: int = self.config.ORCHESTRATOR.MIN_TEXT_LENGTH
        if len(request.input_text.strip()) < min_length:
            msg = f"Input text is shorter than {min_length} characters"
            raise InvalidInputError(msg)

        if request.operation == Operation.TRANSLATE and not request.target_language:
            msg = "Translation requires a target language"
            raise InvalidInputError(msg)

    @staticmethod
    def _is_identity(request: AnalysisRequest) -> bool:
        if request.operation != Operation.TRANSLATE or not request.source_language:
            return False
        source, target = request.language_pair
        return source == target

    async def _lookup_cache(self, key: str, threshold: float) -> AnalysisResult | None:
        try:
            entry: CacheEntry | None = await self.cache.get(key)
        except Exception as err:  # noqa: BLE001
            logger.error("Cache lookup failed for key %s: %s", key[:16], err)
            return None
        if entry is None:
            return None
        warnings: list[str] = list(entry.result.warnings)
        if entry.result.confidence < threshold and WARNING_BELOW_THRESHOLD not in warnings:
            warnings.append(WARNING_BELOW_THRESHOLD)
        return replace(entry.result, from_cache=True, warnings=warnings, diagnostics={})

    async def _resolve(self, request: AnalysisRequest, key: str, threshold: float) -> AnalysisResult:
        if not self.connectivity.is_online():
            logger.info("Offline, skipping providers for '%s'", request.operation)
            return await self.offline.degrade(request)

        diagnostics: dict[str, str] = {}
        try:
            return await self._walk_providers(request, key, threshold, diagnostics)
        except AllProvidersExhaustedError as err:
            logger.warning("%s", err)
            return await self.offline.degrade(request, diagnostics=diagnostics)

    async def _walk_providers(
        self, request: AnalysisRequest, key: str, threshold: float, diagnostics: dict[str, str]
    ) -> AnalysisResult:
        """Try providers in priority order.

        The first result meeting the confidence threshold wins. Otherwise the most confident result
        is returned with a below-threshold warning.

        Raises:
            AllProvidersExhaustedError: If no provider returned any result.
        """
        best: tuple[str, RawProviderResult] | None = None

        for spec in self.registry.providers_for(request.operation):
            try:
                raw: RawProviderResult = await self._call_provider(spec, request)
            except ProviderError as err:
                diagnostics[spec.provider_id] = f"{type(err).__name__}: {err}"
                logger.warning("Provider '%s' failed: %s", spec.provider_id, err)
                continue

            if raw.confidence >= threshold:
                logger.info("Accepted '%s' result (confidence %.2f)", spec.provider_id, raw.confidence)
                result: AnalysisResult = self._build_result(request, spec.provider_id, raw, diagnostics)
                await self._store(key, result)
                return result

            diagnostics[spec.provider_id] = f"below threshold: {raw.confidence:.2f} < {threshold:.2f}"
            logger.info("Provider '%s' below threshold (%.2f < %.2f)", spec.provider_id, raw.confidence, threshold)
            if best is None or raw.confidence > best[1].confidence:
                best = (spec.provider_id, raw)

        if best is not None:
            result = self._build_result(request, best[0], best[1], diagnostics)
            result.warnings.append(WARNING_BELOW_THRESHOLD)
            await self._store(key, result)
            return result

        msg: str = f"All providers exhausted for '{request.operation}'"
        raise AllProvidersExhaustedError(msg)

    async def _call_provider(self, spec: ProviderSpec, request: AnalysisRequest) -> RawProviderResult:
        """Call one provider under its availability, rate limit and timeout guards.

        Raises:
            ProviderUnavailableError: If the provider is disabled, lacks credentials or failed to load.
            RateLimitExceededError: If the rate limiter refused the call.
            ProviderTimeoutError: If the call exceeded the request timeout.
            ProviderTransportError: If the call failed or returned nothing usable.
        """
        if not spec.enabled:
            msg: str = "provider disabled"
            raise ProviderUnavailableError(msg)
        if not spec.credentials_present:
            msg = "credentials missing"
            raise ProviderUnavailableError(msg)

        instance: ProviderInterface | None = self.registry.get_instance(spec.provider_id)
        if instance is None:
            msg = "provider not initialized"
            raise ProviderUnavailableError(msg)

        if not self.rate_limiter.try_admit(spec.provider_id):
            msg = "rate limit window exhausted"
            raise RateLimitExceededError(msg)

        params = ProviderParams(
            source_language=request.source_language,
            target_language=request.target_language,
            cultural_context=request.cultural_context,
        )
        try:
            raw: RawProviderResult = await asyncio.wait_for(
                instance.call(request.input_text, params, request.timeout_ms),
                timeout=request.timeout_ms / 1000,
            )
        except TimeoutError as err:
            msg = f"no answer within {request.timeout_ms} ms"
            raise ProviderTimeoutError(msg) from err
        except ProviderError as err:
            if instance.is_rate_limit_error(err):
                self.rate_limiter.register_rate_limit(spec.provider_id)
            raise
        except Exception as err:
            logger.exception("Unexpected error from provider '%s'", spec.provider_id)
            msg = f"unexpected error: {err}"
            raise ProviderTransportError(msg) from err

        if request.operation == Operation.TRANSLATE and not raw.text:
            msg = "empty translation"
            raise ProviderResponseError(msg)
        if request.operation == Operation.EMOTION_ANALYZE and raw.emotions is None:
            msg = "no emotion scores"
            raise ProviderResponseError(msg)

        raw.confidence = max(0.0, min(1.0, raw.confidence))
        return raw

    def _build_result(
        self,
        request: AnalysisRequest,
        provider_id: str,
        raw: RawProviderResult,
        diagnostics: dict[str, str],
    ) -> AnalysisResult:
        result = AnalysisResult(confidence=raw.confidence, provider_id=provider_id, diagnostics=dict(diagnostics))
        if request.operation == Operation.TRANSLATE:
            result.translation = TranslationPayload(
                text=raw.text or "",
                source_language=request.source_language,
                target_language=request.target_language,
                detected_language=raw.detected_language,
            )
        else:
            result.emotion = EmotionPayload.from_scores(
                raw.emotions or {},
                cultural_context=request.cultural_context,
                language=request.source_language,
                sentiment=raw.sentiment,
                intensity=raw.intensity,
            )
        return result

    async def _store(self, key: str, result: AnalysisResult) -> None:
        threshold: float = (
            self.config.ORCHESTRATOR.TRANSLATION_CACHE_THRESHOLD
            if result.translation is not None
            else self.config.ORCHESTRATOR.EMOTION_CACHE_THRESHOLD
        )
        if result.confidence < threshold:
            logger.debug("Result not cached (confidence %.2f < %.2f)", result.confidence, threshold)
            return
        try:
            await self.cache.put(key, replace(result, warnings=[], diagnostics={}))
        except Exception as err:
            logger.error("Failed to cache result for key %s: %s", key[:16], err)
