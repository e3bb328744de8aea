# ruff: noqa: BLE001
from __future__ import annotations

from typing import TYPE_CHECKING

import core.analysis.providers  # noqa: F401
from core.analysis.errors import ProviderUnavailableError
from core.analysis.interface import ProviderInterface
from models.analysis_models import Operation
from models.provider_models import ProviderSpec
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Mapping

    from config.loader import Config


__all__: list[str] = ["ProviderRegistry"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ProviderRegistry:
    """Ordered provider chains per operation, with availability predicates.

    Chains follow the order of the provider lists in the configuration. A provider gets one
    ``ProviderSpec`` per chain it appears in, carrying its priority within that chain. Only the
    ``enabled`` flag changes after start-up, and it is changed on every spec of the provider.

    Args:
        config (Config): Application configuration.
        provider_classes (Mapping[str, type[ProviderInterface]] | None): Adapter classes by name.
            Defaults to every registered adapter.
    """

    def __init__(
        self,
        config: Config,
        provider_classes: Mapping[str, type[ProviderInterface]] | None = None,
    ) -> None:
        self.config: Config = config
        self._classes: Mapping[str, type[ProviderInterface]] = (
            provider_classes if provider_classes is not None else ProviderInterface.registered
        )
        self._specs: dict[str, dict[Operation, ProviderSpec]] = {}
        self._instances: dict[str, ProviderInterface] = {}
        self._chains: dict[Operation, list[str]] = {}
        logger.debug("Registered provider adapters: %s", list(self._classes))

    async def component_load(self) -> None:
        """Build the provider chains and initialize every available adapter."""
        logger.info("ProviderRegistry initialization started")
        chains: tuple[tuple[Operation, list[str]], ...] = (
            (Operation.TRANSLATE, self.config.PROVIDERS.TRANSLATION),
            (Operation.EMOTION_ANALYZE, self.config.PROVIDERS.EMOTION),
        )
        for operation, names in chains:
            chain: list[str] = []
            for name in names:
                _cls: type[ProviderInterface] | None = self._classes.get(name)
                if _cls is None:
                    logger.critical("Provider class not found: '%s'", name)
                    continue
                if operation not in _cls.operations:
                    logger.error("Provider '%s' does not support '%s'", name, operation)
                    continue
                if name in chain:
                    logger.warning("Provider '%s' listed twice for '%s'", name, operation)
                    continue
                # Priority is the position in this operation's chain.
                self._specs.setdefault(name, {})[operation] = ProviderSpec(
                    provider_id=name,
                    supported_operations=_cls.operations,
                    priority=len(chain),
                    credentials_present=_cls.has_credentials(self.config),
                    cost_hint=float(self.config.PROVIDERS.COST_HINTS.get(name, 0.0)),
                    enabled=name not in self.config.PROVIDERS.DISABLED,
                )
                self._load_instance(name)
                chain.append(name)
            self._chains[operation] = chain
            logger.info("Provider chain for '%s': %s", operation, chain)

    async def component_teardown(self) -> None:
        """Close every adapter instance."""
        for name, instance in self._instances.items():
            try:
                await instance.close()
            except Exception as err:
                logger.error("Error closing provider '%s': %s", name, err)
        self._instances.clear()
        logger.info("ProviderRegistry shutdown completed")

    def _load_instance(self, name: str) -> None:
        spec: ProviderSpec = next(iter(self._specs[name].values()))
        if not spec.is_available or name in self._instances:
            if not spec.credentials_present:
                logger.info("Provider '%s' has no credentials configured", name)
            return

        instance: ProviderInterface = self._classes[name]()
        try:
            instance.initialize(self.config)
        except ProviderUnavailableError as err:
            logger.critical("Exception in '%s' provider setup: %s", name, err)
            return
        self._instances[name] = instance
        logger.info("Provider initialized: '%s'", name)

    def providers_for(self, operation: Operation) -> list[ProviderSpec]:
        """Return the provider chain for an operation in priority order.

        Disabled providers and providers without credentials are included so that the orchestrator
        can record why they were skipped.

        Args:
            operation (Operation): Requested operation.

        Returns:
            list[ProviderSpec]: Specs in fallback order.
        """
        return [self._specs[name][operation] for name in self._chains.get(operation, [])]

    def get_instance(self, provider_id: str) -> ProviderInterface | None:
        return self._instances.get(provider_id)

    def get_spec(self, provider_id: str, operation: Operation | None = None) -> ProviderSpec | None:
        """Return a provider's spec, for ``operation`` or for the first chain it was listed in."""
        specs: dict[Operation, ProviderSpec] | None = self._specs.get(provider_id)
        if not specs:
            return None
        if operation is None:
            return next(iter(specs.values()))
        return specs.get(operation)

    def set_enabled(self, provider_id: str, *, enabled: bool) -> bool:
        """Turn a provider on or off at runtime.

        Args:
            provider_id (str): Provider to update.
            enabled (bool): New state.

        Returns:
            bool: False if the provider is not part of any chain.
        """
        specs: dict[Operation, ProviderSpec] | None = self._specs.get(provider_id)
        if not specs:
            logger.warning("Ignoring unknown provider: '%s'", provider_id)
            return False
        for spec in specs.values():
            spec.enabled = enabled
        if enabled:
            self._load_instance(provider_id)
        logger.info("Provider '%s' %s", provider_id, "enabled" if enabled else "disabled")
        return True

    def available_providers(self) -> list[str]:
        """Names of providers that are enabled, have credentials and initialized successfully."""
        return [
            name
            for name, specs in self._specs.items()
            if next(iter(specs.values())).is_available and name in self._instances
        ]
