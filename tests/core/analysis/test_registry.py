"""Tests for ProviderRegistry."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

import pytest

from config.loader import Config
from core.analysis.errors import ProviderUnavailableError
from core.analysis.interface import ProviderAttributes, ProviderInterface
from core.analysis.registry import ProviderRegistry
from models.analysis_models import Operation

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from models.provider_models import ProviderParams, ProviderSpec, RawProviderResult


class _StubProvider(ProviderInterface):
    operations: ClassVar[frozenset[Operation]] = frozenset({Operation.TRANSLATE})
    credentials: ClassVar[bool] = True
    fail_initialize: ClassVar[bool] = False
    closed: ClassVar[list[str]] = []

    @staticmethod
    def fetch_provider_name() -> str:
        return ""

    @classmethod
    def has_credentials(cls, config: Config) -> bool:
        _ = config
        return cls.credentials

    def initialize(self, config: Config) -> None:
        _ = config
        if self.fail_initialize:
            msg = "cannot reach service"
            raise ProviderUnavailableError(msg)
        self.provider_attributes = ProviderAttributes(name=self.fetch_provider_name(), operations=self.operations)

    async def call(self, text: str, params: ProviderParams, timeout_ms: int) -> RawProviderResult:
        raise NotImplementedError

    async def close(self) -> None:
        _StubProvider.closed.append(self.fetch_provider_name())


class RegTranslateOne(_StubProvider):
    @staticmethod
    def fetch_provider_name() -> str:
        return "reg_translate_one"


class RegTranslateTwo(_StubProvider):
    @staticmethod
    def fetch_provider_name() -> str:
        return "reg_translate_two"


class RegEmotion(_StubProvider):
    operations: ClassVar[frozenset[Operation]] = frozenset({Operation.EMOTION_ANALYZE})

    @staticmethod
    def fetch_provider_name() -> str:
        return "reg_emotion"


class RegBoth(_StubProvider):
    operations: ClassVar[frozenset[Operation]] = frozenset({Operation.TRANSLATE, Operation.EMOTION_ANALYZE})

    @staticmethod
    def fetch_provider_name() -> str:
        return "reg_both"


PROVIDER_CLASSES: dict[str, type[ProviderInterface]] = {
    cls.fetch_provider_name(): cls for cls in (RegTranslateOne, RegTranslateTwo, RegEmotion, RegBoth)
}


@pytest.fixture(autouse=True)
def reset_stubs() -> None:
    for cls in PROVIDER_CLASSES.values():
        cls.credentials = True  # type: ignore[attr-defined]
        cls.fail_initialize = False  # type: ignore[attr-defined]
    _StubProvider.closed = []


@pytest.fixture
def config() -> Config:
    config = Config()
    config.PROVIDERS.TRANSLATION = ["reg_translate_two", "reg_both", "reg_translate_one"]
    config.PROVIDERS.EMOTION = ["reg_emotion", "reg_both"]
    config.PROVIDERS.COST_HINTS = {"reg_both": 2.5}
    return config


@pytest.fixture
async def registry(config: Config) -> AsyncGenerator[ProviderRegistry]:
    provider_registry = ProviderRegistry(config, PROVIDER_CLASSES)
    await provider_registry.component_load()
    yield provider_registry
    await provider_registry.component_teardown()


def test_subclass_registration() -> None:
    assert ProviderInterface.registered["reg_translate_one"] is RegTranslateOne
    assert "" not in ProviderInterface.registered


def test_duplicate_name_is_rejected() -> None:
    with pytest.raises(ValueError, match="already registered"):

        class Duplicate(_StubProvider):
            @staticmethod
            def fetch_provider_name() -> str:
                return "reg_translate_one"


def test_builtin_adapters_are_registered() -> None:
    for name in ("deepl", "google_cloud", "azure_translator", "libre_translate", "azure_text", "google_nl", "openai"):
        assert name in ProviderInterface.registered


@pytest.mark.asyncio
async def test_chains_follow_configured_order(registry: ProviderRegistry) -> None:
    translate: list[ProviderSpec] = registry.providers_for(Operation.TRANSLATE)
    emotion: list[ProviderSpec] = registry.providers_for(Operation.EMOTION_ANALYZE)

    assert [spec.provider_id for spec in translate] == ["reg_translate_two", "reg_both", "reg_translate_one"]
    assert [spec.priority for spec in translate] == [0, 1, 2]
    assert [spec.provider_id for spec in emotion] == ["reg_emotion", "reg_both"]


@pytest.mark.asyncio
async def test_priority_is_per_operation_chain(config: Config) -> None:
    config.PROVIDERS.EMOTION = ["reg_both", "reg_emotion"]
    provider_registry = ProviderRegistry(config, PROVIDER_CLASSES)
    await provider_registry.component_load()

    translate: list[ProviderSpec] = provider_registry.providers_for(Operation.TRANSLATE)
    emotion: list[ProviderSpec] = provider_registry.providers_for(Operation.EMOTION_ANALYZE)

    assert [(spec.provider_id, spec.priority) for spec in translate] == [
        ("reg_translate_two", 0),
        ("reg_both", 1),
        ("reg_translate_one", 2),
    ]
    assert [(spec.provider_id, spec.priority) for spec in emotion] == [("reg_both", 0), ("reg_emotion", 1)]

    both_translate: ProviderSpec | None = provider_registry.get_spec("reg_both", Operation.TRANSLATE)
    both_emotion: ProviderSpec | None = provider_registry.get_spec("reg_both", Operation.EMOTION_ANALYZE)
    assert both_translate is not None
    assert both_emotion is not None
    assert (both_translate.priority, both_emotion.priority) == (1, 0)

    provider_registry.set_enabled("reg_both", enabled=False)
    assert both_translate.enabled is False
    assert both_emotion.enabled is False
    await provider_registry.component_teardown()


@pytest.mark.asyncio
async def test_spec_carries_cost_hint_and_operations(registry: ProviderRegistry) -> None:
    spec: ProviderSpec | None = registry.get_spec("reg_both")

    assert spec is not None
    assert spec.cost_hint == 2.5
    assert spec.supported_operations == frozenset({Operation.TRANSLATE, Operation.EMOTION_ANALYZE})
    assert spec.is_available is True


@pytest.mark.asyncio
async def test_unknown_unsupported_and_duplicate_entries_are_skipped(config: Config) -> None:
    config.PROVIDERS.TRANSLATION = ["missing", "reg_emotion", "reg_translate_one", "reg_translate_one"]
    provider_registry = ProviderRegistry(config, PROVIDER_CLASSES)

    await provider_registry.component_load()

    assert [spec.provider_id for spec in provider_registry.providers_for(Operation.TRANSLATE)] == ["reg_translate_one"]


@pytest.mark.asyncio
async def test_provider_without_credentials_is_listed_but_unavailable(config: Config) -> None:
    RegTranslateTwo.credentials = False
    provider_registry = ProviderRegistry(config, PROVIDER_CLASSES)

    await provider_registry.component_load()

    assert "reg_translate_two" in [spec.provider_id for spec in provider_registry.providers_for(Operation.TRANSLATE)]
    assert provider_registry.get_instance("reg_translate_two") is None
    assert "reg_translate_two" not in provider_registry.available_providers()


@pytest.mark.asyncio
async def test_failed_initialization_leaves_provider_unavailable(config: Config) -> None:
    RegTranslateOne.fail_initialize = True
    provider_registry = ProviderRegistry(config, PROVIDER_CLASSES)

    await provider_registry.component_load()

    assert provider_registry.get_instance("reg_translate_one") is None
    assert "reg_translate_one" not in provider_registry.available_providers()


@pytest.mark.asyncio
async def test_disabled_in_config(config: Config) -> None:
    config.PROVIDERS.DISABLED = ["reg_emotion"]
    provider_registry = ProviderRegistry(config, PROVIDER_CLASSES)

    await provider_registry.component_load()

    spec: ProviderSpec | None = provider_registry.get_spec("reg_emotion")
    assert spec is not None
    assert spec.enabled is False
    assert provider_registry.get_instance("reg_emotion") is None


@pytest.mark.asyncio
async def test_set_enabled_toggles_availability(registry: ProviderRegistry) -> None:
    assert registry.set_enabled("reg_emotion", enabled=False) is True
    assert "reg_emotion" not in registry.available_providers()

    assert registry.set_enabled("reg_emotion", enabled=True) is True
    assert "reg_emotion" in registry.available_providers()

    assert registry.set_enabled("unknown", enabled=True) is False


@pytest.mark.asyncio
async def test_enabling_a_disabled_provider_loads_it(config: Config) -> None:
    config.PROVIDERS.DISABLED = ["reg_emotion"]
    provider_registry = ProviderRegistry(config, PROVIDER_CLASSES)
    await provider_registry.component_load()

    provider_registry.set_enabled("reg_emotion", enabled=True)

    assert provider_registry.get_instance("reg_emotion") is not None


@pytest.mark.asyncio
async def test_teardown_closes_instances(config: Config) -> None:
    provider_registry = ProviderRegistry(config, PROVIDER_CLASSES)
    await provider_registry.component_load()

    await provider_registry.component_teardown()

    assert sorted(_StubProvider.closed) == sorted(PROVIDER_CLASSES)
    assert provider_registry.available_providers() == []
