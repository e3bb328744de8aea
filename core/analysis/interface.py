"""Abstract base class for analysis provider adapters.

Adapters register themselves by name when their class is defined. Adding a backend means adding one
adapter module and naming it in the provider lists of the configuration.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from core.analysis.errors import ProviderRateLimitError, ProviderUnavailableError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config
    from models.analysis_models import Operation
    from models.provider_models import ProviderParams, RawProviderResult

__all__: list[str] = ["ProviderAttributes", "ProviderInterface"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass
class ProviderAttributes:
    """Provider-specific capabilities.

    Attributes:
        name (str): Display name of the provider.
        operations (frozenset[Operation]): Operations the provider can perform.
    """

    name: str
    operations: frozenset[Operation]


class ProviderInterface(ABC):
    """Abstract base class for provider adapters.

    Attributes:
        registered (ClassVar[dict[str, type[ProviderInterface]]]): Registered adapter classes keyed by
            their distinguished names.
        operations (ClassVar[frozenset[Operation]]): Operations the adapter supports, readable before
            the adapter is instantiated.
        supports_detection (ClassVar[bool]): Whether ``detect_language`` is implemented.
    """

    registered: ClassVar[dict[str, type[ProviderInterface]]] = {}
    operations: ClassVar[frozenset[Operation]] = frozenset()
    supports_detection: ClassVar[bool] = False

    def __init_subclass__(cls, **kwargs) -> None:
        """Register the subclass under its distinguished name.

        Subclasses returning an empty name are intermediate bases and are not registered.

        Args:
            **kwargs: Additional keyword arguments passed to parent class.

        Raises:
            ValueError: If another adapter already uses the same name.
        """
        super().__init_subclass__(**kwargs)
        if not isinstance(cls.fetch_provider_name(), str) or cls.fetch_provider_name() == "":
            return

        if cls.fetch_provider_name() in cls.registered:
            msg: str = f"A provider with the name '{cls.fetch_provider_name()}' is already registered."
            raise ValueError(msg)

        cls.registered[cls.fetch_provider_name()] = cls

    def __init__(self) -> None:
        self._provider_attributes: ProviderAttributes | None = None

    @property
    def provider_attributes(self) -> ProviderAttributes:
        if self._provider_attributes is None:
            msg = "Provider attributes have not been set."
            raise RuntimeError(msg)
        return self._provider_attributes

    @provider_attributes.setter
    def provider_attributes(self, attributes: ProviderAttributes) -> None:
        if self._provider_attributes is not None:
            msg = "Provider attributes can only be set once during initialization."
            raise RuntimeError(msg)
        self._provider_attributes = attributes

    @property
    def provider_name(self) -> str:
        return self.fetch_provider_name()

    @classmethod
    def has_credentials(cls, config: Config) -> bool:
        """Check whether the credentials the adapter needs are configured.

        The default requires the API key environment variable. Adapters that can run without a key
        override this.

        Args:
            config (Config): Application configuration.

        Returns:
            bool: True if the adapter can be called.
        """
        _ = config  # Indicate unused.
        return bool(cls.get_authentication_key())

    @classmethod
    def get_authentication_key(cls) -> str:
        """Retrieve the API key from the environment.

        The variable is named after the provider's distinguished name with the suffix "_API_KEY".
        For example, "google_nl" reads "GOOGLE_NL_API_KEY".

        Returns:
            str: The API key, or an empty string if the variable is not set.
        """
        return os.getenv(f"{cls.fetch_provider_name().upper()}_API_KEY", "")

    def is_rate_limit_error(self, err: Exception) -> bool:
        """Check if the given exception indicates upstream rate limiting.

        Args:
            err (Exception): Exception raised by ``call``.

        Returns:
            bool: True if the exception represents rate limiting.
        """
        return isinstance(err, ProviderRateLimitError)

    @staticmethod
    @abstractmethod
    def fetch_provider_name() -> str:
        """Fetch the distinguished name of the provider.

        Called during class registration in __init_subclass__, so the implementation must be
        available at subclass definition time.

        Returns:
            str: The distinguished name, also used as the configuration and rate-limit key.
        """
        raise NotImplementedError

    @abstractmethod
    def initialize(self, config: Config) -> None:
        """Prepare clients and read provider settings.

        Args:
            config (Config): Application configuration.

        Raises:
            ProviderUnavailableError: If the provider cannot be used.
        """
        raise NotImplementedError

    @abstractmethod
    async def call(self, text: str, params: ProviderParams, timeout_ms: int) -> RawProviderResult:
        """Run one analysis.

        Args:
            text (str): Input text.
            params (ProviderParams): Languages and cultural context.
            timeout_ms (int): Call timeout in milliseconds.

        Returns:
            RawProviderResult: Uniform provider output.

        Raises:
            ProviderTimeoutError: If the call timed out.
            ProviderRateLimitError: If the provider reported rate limiting.
            ProviderResponseError: If the payload could not be interpreted.
            ProviderTransportError: If the call failed for any other reason.
        """
        raise NotImplementedError

    async def detect_language(self, text: str, timeout_ms: int) -> RawProviderResult:
        """Detect the language of ``text``.

        Adapters setting ``supports_detection`` override this.

        Args:
            text (str): Input text.
            timeout_ms (int): Call timeout in milliseconds.

        Returns:
            RawProviderResult: ``detected_language`` and ``confidence`` are set.

        Raises:
            ProviderUnavailableError: If the adapter cannot detect languages.
        """
        _ = text, timeout_ms  # Indicate unused.
        msg: str = f"'{self.provider_name}' does not support language detection"
        raise ProviderUnavailableError(msg)

    @abstractmethod
    async def close(self) -> None:
        """Release clients and sessions."""
        raise NotImplementedError
