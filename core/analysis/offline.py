from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from core.analysis.errors import OfflineUnavailableError
from core.analysis.heuristics import EmotionHeuristic
from models.analysis_models import (
    PROVIDER_LOCAL,
    PROVIDER_NONE,
    WARNING_STALE,
    WARNING_UNAVAILABLE,
    AnalysisResult,
    EmotionPayload,
    Operation,
    TranslationPayload,
)
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config
    from core.cache.manager import ResultCache
    from models.analysis_models import AnalysisRequest
    from models.cache_models import CacheEntry

__all__: list[str] = ["OfflineDegradationHandler"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class OfflineDegradationHandler:
    """Produces a result when no live provider answered.

    Attempts, in order: a stale cache entry, a local heuristic, and finally a zero-confidence
    placeholder. Every result it returns is marked offline and it never raises.

    Args:
        config (Config): Application configuration.
        cache (ResultCache): Cache searched for stale entries.
        heuristic (EmotionHeuristic | None): Local emotion scorer.
    """

    def __init__(self, config: Config, cache: ResultCache, heuristic: EmotionHeuristic | None = None) -> None:
        self.config: Config = config
        self.cache: ResultCache = cache
        self.heuristic: EmotionHeuristic = heuristic or EmotionHeuristic(config.ORCHESTRATOR.DEFAULT_LANGUAGE)

    async def degrade(self, request: AnalysisRequest, *, diagnostics: dict[str, str] | None = None) -> AnalysisResult:
        """Return the best offline answer for ``request``.

        Args:
            request (AnalysisRequest): The request no provider could answer.
            diagnostics (dict[str, str] | None): Provider failures to carry into the result.

        Returns:
            AnalysisResult: An offline result, never None.
        """
        diagnostics = dict(diagnostics or {})

        stale: AnalysisResult | None = await self._from_stale_cache(request, diagnostics)
        if stale is not None:
            return stale

        try:
            result: AnalysisResult = self._from_heuristic(request)
        except OfflineUnavailableError as err:
            logger.warning("No offline answer for '%s': %s", request.operation, err)
            result = self._unavailable(request)

        result.diagnostics = diagnostics
        return result

    async def _from_stale_cache(self, request: AnalysisRequest, diagnostics: dict[str, str]) -> AnalysisResult | None:
        key: str = StringUtils.generate_hash_key(
            request.operation, request.input_text, request.source_language, request.target_language
        )
        try:
            entry: CacheEntry | None = await self.cache.get_stale(key)
        except Exception as err:  # noqa: BLE001
            logger.error("Stale cache lookup failed for key %s: %s", key[:16], err)
            return None
        if entry is None:
            return None

        logger.info("Serving stale cache entry for key: %s", key[:16])
        cached: AnalysisResult = entry.result
        return replace(
            cached,
            from_cache=True,
            offline=True,
            warnings=[*cached.warnings, WARNING_STALE],
            diagnostics=diagnostics,
        )

    def _from_heuristic(self, request: AnalysisRequest) -> AnalysisResult:
        """Build a local answer.

        Raises:
            OfflineUnavailableError: If the heuristic finds nothing to work with.
        """
        if request.operation == Operation.TRANSLATE:
            logger.info("Translation unavailable, returning original text as pending")
            return AnalysisResult(
                confidence=self.config.OFFLINE.PENDING_CONFIDENCE,
                provider_id=PROVIDER_LOCAL,
                translation=TranslationPayload(
                    text=request.input_text,
                    source_language=request.source_language,
                    target_language=request.target_language,
                    pending=True,
                    marker=self.config.OFFLINE.PENDING_MARKER,
                ),
                offline=True,
                warnings=[WARNING_UNAVAILABLE],
            )

        scores: dict[str, float] = self.heuristic.score(request.input_text, request.source_language)
        if not scores:
            msg: str = "No emotion cue found in text"
            raise OfflineUnavailableError(msg)

        logger.info("Emotion estimated locally from %d cue types", len(scores))
        return AnalysisResult(
            confidence=self.config.OFFLINE.HEURISTIC_CONFIDENCE,
            provider_id=PROVIDER_LOCAL,
            emotion=EmotionPayload.from_scores(
                scores,
                cultural_context=request.cultural_context,
                language=request.source_language,
            ),
            offline=True,
        )

    def _unavailable(self, request: AnalysisRequest) -> AnalysisResult:
        result = AnalysisResult(
            confidence=0.0,
            provider_id=PROVIDER_NONE,
            offline=True,
            warnings=[WARNING_UNAVAILABLE],
        )
        if request.operation == Operation.TRANSLATE:
            result.translation = TranslationPayload(
                text=request.input_text,
                source_language=request.source_language,
                target_language=request.target_language,
                pending=True,
                marker=self.config.OFFLINE.PENDING_MARKER,
            )
        else:
            result.emotion = EmotionPayload(
                cultural_context=request.cultural_context,
                language=request.source_language,
            )
        return result
