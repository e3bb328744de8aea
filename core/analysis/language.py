"""Language detection through the translation providers, with a local word-pattern fallback."""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING, Final

from core.analysis.errors import InvalidInputError, ProviderError
from models.analysis_models import PROVIDER_LOCAL, LanguageDetection, Operation
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config
    from core.analysis.interface import ProviderInterface
    from core.analysis.orchestrator import ConnectivityMonitor
    from core.analysis.rate_limiter import RateLimiter
    from core.analysis.registry import ProviderRegistry
    from models.provider_models import RawProviderResult

__all__: list[str] = ["FUNCTION_WORDS", "LanguageDetector"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# Frequent short words per language. Checked in this order; a later language must score strictly
# higher to replace an earlier one.
FUNCTION_WORDS: Final[dict[str, frozenset[str]]] = {
    "fr": frozenset("le la les de du des et est une dans pour que qui avec sont être avoir".split()),
    "en": frozenset("the and is are was were will would could should have has had do does did".split()),
    "es": frozenset("el la los las de del en es son ser estar con por para que como".split()),
    "it": frozenset("il la lo gli le di del in è sono essere avere con per che come".split()),
    "de": frozenset("der die das den des dem und ist sind war waren haben hat hatte wird".split()),
}

_WORD_PATTERN: Final[re.Pattern[str]] = re.compile(r"\w+")


class LanguageDetector:
    """Detects the language of a text.

    Translation providers that support detection are asked in chain order, under the same
    availability, rate-limit and timeout guards as analysis calls. The first answer wins. When no
    provider answers, or when offline, the language is guessed from function words.

    Args:
        config (Config): Application configuration.
        registry (ProviderRegistry): Provider chains and adapter instances.
        rate_limiter (RateLimiter): Per-provider admission control.
        connectivity (ConnectivityMonitor): Online check.
    """

    def __init__(
        self,
        config: Config,
        registry: ProviderRegistry,
        rate_limiter: RateLimiter,
        connectivity: ConnectivityMonitor,
    ) -> None:
        self.config: Config = config
        self.registry: ProviderRegistry = registry
        self.rate_limiter: RateLimiter = rate_limiter
        self.connectivity: ConnectivityMonitor = connectivity

    async def detect(self, text: str, timeout_ms: int | None = None) -> LanguageDetection:
        """Detect the language of ``text``.

        Args:
            text (str): Text to inspect.
            timeout_ms (int | None): Per-provider timeout. None uses the configured default.

        Returns:
            LanguageDetection: The provider's detection, or the local guess.

        Raises:
            InvalidInputError: If the text is shorter than the configured minimum.
        """
        min_length: int = self.config.ORCHESTRATOR.MIN_TEXT_LENGTH
        if not isinstance(text, str) or len(text.strip()) < min_length:
            msg: str = f"Input text is shorter than {min_length} characters"
            raise InvalidInputError(msg)

        timeout_ms = timeout_ms or self.config.ORCHESTRATOR.DEFAULT_TIMEOUT_MS
        if self.connectivity.is_online():
            detection: LanguageDetection | None = await self._detect_remotely(text, timeout_ms)
            if detection is not None:
                return detection
        else:
            logger.info("Offline, detecting language locally")
        return self.detect_locally(text)

    async def _detect_remotely(self, text: str, timeout_ms: int) -> LanguageDetection | None:
        for spec in self.registry.providers_for(Operation.TRANSLATE):
            instance: ProviderInterface | None = self.registry.get_instance(spec.provider_id)
            if instance is None or not spec.is_available or not instance.supports_detection:
                continue
            if not self.rate_limiter.try_admit(spec.provider_id):
                logger.debug("Skipping '%s' for detection, rate limit window exhausted", spec.provider_id)
                continue

            try:
                raw: RawProviderResult = await asyncio.wait_for(
                    instance.detect_language(text, timeout_ms), timeout=timeout_ms / 1000
                )
            except TimeoutError:
                logger.warning("Language detection by '%s' timed out after %d ms", spec.provider_id, timeout_ms)
                continue
            except ProviderError as err:
                if instance.is_rate_limit_error(err):
                    self.rate_limiter.register_rate_limit(spec.provider_id)
                logger.warning("Language detection by '%s' failed: %s", spec.provider_id, err)
                continue
            except Exception:  # noqa: BLE001
                logger.exception("Unexpected error from provider '%s' during detection", spec.provider_id)
                continue

            if not raw.detected_language:
                logger.warning("Provider '%s' detected no language", spec.provider_id)
                continue

            confidence: float = max(0.0, min(1.0, raw.confidence))
            logger.info("Language detected by '%s': %s (%.2f)", spec.provider_id, raw.detected_language, confidence)
            return LanguageDetection(
                language=raw.detected_language,
                confidence=confidence,
                is_reliable=confidence > self.config.DETECTION.RELIABLE_CONFIDENCE,
                provider_id=spec.provider_id,
            )
        return None

    def detect_locally(self, text: str) -> LanguageDetection:
        """Guess the language from the share of function words.

        A language scores twice its share of function words among all words, capped at 1. Texts
        matching no language better than the fallback confidence get the fallback language.

        Args:
            text (str): Text to inspect.

        Returns:
            LanguageDetection: The local guess, attributed to 'local'.
        """
        detection = self.config.DETECTION
        words: list[str] = _WORD_PATTERN.findall(text.lower())
        word_count: int = len(text.split())

        language: str = detection.FALLBACK_LANGUAGE
        confidence: float = detection.FALLBACK_CONFIDENCE
        if word_count:
            for candidate, function_words in FUNCTION_WORDS.items():
                matches: int = sum(1 for word in words if word in function_words)
                score: float = min(matches / word_count * 2, 1.0)
                if score > confidence:
                    language, confidence = candidate, score

        logger.debug("Local language guess: %s (%.2f)", language, confidence)
        return LanguageDetection(
            language=language,
            confidence=confidence,
            is_reliable=confidence > detection.LOCAL_RELIABLE_CONFIDENCE,
            provider_id=PROVIDER_LOCAL,
        )
