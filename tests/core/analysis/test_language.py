"""Tests for LanguageDetector."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar

import pytest

from config.loader import Config
from core.analysis.errors import InvalidInputError, ProviderRateLimitError
from core.analysis.interface import ProviderAttributes, ProviderInterface
from core.analysis.language import LanguageDetector
from core.analysis.orchestrator import ConnectivityState
from core.analysis.rate_limiter import RateLimiter
from core.analysis.registry import ProviderRegistry
from models.analysis_models import PROVIDER_LOCAL, Operation
from models.provider_models import RawProviderResult

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from models.analysis_models import LanguageDetection
    from models.provider_models import ProviderParams


class _DetectingProvider(ProviderInterface):
    operations: ClassVar[frozenset[Operation]] = frozenset({Operation.TRANSLATE})
    supports_detection: ClassVar[bool] = True
    outcome: ClassVar[RawProviderResult | Exception | None] = None
    delay_sec: ClassVar[float] = 0.0
    calls: ClassVar[list[str]] = []

    @staticmethod
    def fetch_provider_name() -> str:
        return ""

    @classmethod
    def has_credentials(cls, config: Config) -> bool:
        _ = config
        return True

    def initialize(self, config: Config) -> None:
        _ = config
        self.provider_attributes = ProviderAttributes(name=self.fetch_provider_name(), operations=self.operations)

    async def call(self, text: str, params: ProviderParams, timeout_ms: int) -> RawProviderResult:
        raise NotImplementedError

    async def detect_language(self, text: str, timeout_ms: int) -> RawProviderResult:
        _ = timeout_ms
        type(self).calls.append(text)
        if type(self).delay_sec:
            await asyncio.sleep(type(self).delay_sec)
        outcome: RawProviderResult | Exception | None = type(self).outcome
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            msg = "no outcome scripted"
            raise ProviderRateLimitError(msg)
        return outcome

    async def close(self) -> None:
        pass


class LangNoDetection(_DetectingProvider):
    supports_detection: ClassVar[bool] = False

    @staticmethod
    def fetch_provider_name() -> str:
        return "lang_no_detection"


class LangFirst(_DetectingProvider):
    @staticmethod
    def fetch_provider_name() -> str:
        return "lang_first"


class LangSecond(_DetectingProvider):
    @staticmethod
    def fetch_provider_name() -> str:
        return "lang_second"


PROVIDER_CLASSES: dict[str, type[ProviderInterface]] = {
    cls.fetch_provider_name(): cls for cls in (LangNoDetection, LangFirst, LangSecond)
}


@pytest.fixture(autouse=True)
def reset_providers() -> None:
    for cls in (LangNoDetection, LangFirst, LangSecond):
        cls.outcome = None
        cls.delay_sec = 0.0
        cls.calls = []


@pytest.fixture
def config() -> Config:
    config = Config()
    config.PROVIDERS.TRANSLATION = ["lang_no_detection", "lang_first", "lang_second"]
    config.PROVIDERS.EMOTION = []
    config.RATE_LIMIT.LIMITS = {}
    return config


@pytest.fixture
def connectivity() -> ConnectivityState:
    return ConnectivityState()


@pytest.fixture
async def detector(config: Config, connectivity: ConnectivityState) -> AsyncGenerator[LanguageDetector]:
    registry = ProviderRegistry(config, PROVIDER_CLASSES)
    await registry.component_load()
    rate_limiter = RateLimiter(config.RATE_LIMIT.LIMITS, config.RATE_LIMIT.WINDOW_MS)
    yield LanguageDetector(config, registry, rate_limiter, connectivity)
    await registry.component_teardown()


@pytest.mark.parametrize(
    ("text", "language", "confidence"),
    [
        ("Le chat est dans la maison", "fr", 1.0),
        ("The cat is on the table", "en", 1.0),
        ("Der Hund und die Katze", "de", 1.0),
        ("Los perros son como el viento", "es", 1.0),
    ],
)
def test_local_guess_from_function_words(
    detector: LanguageDetector, text: str, language: str, confidence: float
) -> None:
    result: LanguageDetection = detector.detect_locally(text)

    assert result.language == language
    assert result.confidence == pytest.approx(confidence)
    assert result.is_reliable is True
    assert result.provider_id == PROVIDER_LOCAL


def test_local_guess_without_cue_uses_fallback(detector: LanguageDetector) -> None:
    result: LanguageDetection = detector.detect_locally("xyz qwerty")

    assert result.language == "en"
    assert result.confidence == 0.3
    assert result.is_reliable is False


def test_local_guess_with_few_cues_is_unreliable(detector: LanguageDetector) -> None:
    """One function word out of five words scores 0.4, above the fallback but not reliable."""
    result: LanguageDetection = detector.detect_locally("Bonjour Marie, avec plaisir demain")

    assert result.language == "fr"
    assert result.confidence == pytest.approx(0.4)
    assert result.is_reliable is False


@pytest.mark.asyncio
async def test_first_detecting_provider_wins(detector: LanguageDetector) -> None:
    LangFirst.outcome = RawProviderResult(confidence=0.95, detected_language="it")
    LangSecond.outcome = RawProviderResult(confidence=0.99, detected_language="es")

    result: LanguageDetection = await detector.detect("Ciao a tutti")

    assert result.language == "it"
    assert result.confidence == 0.95
    assert result.is_reliable is True
    assert result.provider_id == "lang_first"
    assert LangNoDetection.calls == []
    assert LangSecond.calls == []


@pytest.mark.asyncio
async def test_provider_below_reliable_confidence_is_not_reliable(detector: LanguageDetector) -> None:
    LangFirst.outcome = RawProviderResult(confidence=0.8, detected_language="pt")

    result: LanguageDetection = await detector.detect("Olá a todos")

    assert result.language == "pt"
    assert result.is_reliable is False


@pytest.mark.asyncio
async def test_failing_and_slow_providers_fall_through(detector: LanguageDetector) -> None:
    LangFirst.outcome = RawProviderResult(confidence=0.95, detected_language="it")
    LangFirst.delay_sec = 0.5
    LangSecond.outcome = ProviderRateLimitError("HTTP 429")

    result: LanguageDetection = await detector.detect("Le chat est dans la maison", timeout_ms=50)

    assert result.provider_id == PROVIDER_LOCAL
    assert result.language == "fr"
    assert detector.rate_limiter.try_admit("lang_second") is False


@pytest.mark.asyncio
async def test_offline_detection_is_local(detector: LanguageDetector, connectivity: ConnectivityState) -> None:
    connectivity.set_online(online=False)
    LangFirst.outcome = RawProviderResult(confidence=0.95, detected_language="it")

    result: LanguageDetection = await detector.detect("The cat is on the table")

    assert result.language == "en"
    assert result.provider_id == PROVIDER_LOCAL
    assert LangFirst.calls == []


@pytest.mark.asyncio
async def test_disabled_provider_is_not_asked(detector: LanguageDetector) -> None:
    detector.registry.set_enabled("lang_first", enabled=False)
    LangFirst.outcome = RawProviderResult(confidence=0.95, detected_language="it")
    LangSecond.outcome = RawProviderResult(confidence=0.9, detected_language="es")

    result: LanguageDetection = await detector.detect("Hola a todos")

    assert result.provider_id == "lang_second"
    assert LangFirst.calls == []


@pytest.mark.asyncio
async def test_blank_text_is_invalid(detector: LanguageDetector) -> None:
    with pytest.raises(InvalidInputError):
        await detector.detect(" ")
