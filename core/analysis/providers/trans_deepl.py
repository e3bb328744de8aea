from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar

from deepl import DeepLClient, Language, TextResult
from deepl.exceptions import (
    AuthorizationException,
    ConnectionException,
    DeepLException,
    QuotaExceededException,
    TooManyRequestsException,
)

from core.analysis.errors import (
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderTransportError,
    ProviderUnavailableError,
)
from core.analysis.interface import ProviderAttributes, ProviderInterface
from models.analysis_models import Operation
from models.provider_models import RawProviderResult
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config
    from models.provider_models import ProviderParams


__all__: list[str] = ["DeeplProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class DeeplProvider(ProviderInterface):
    """Translation through the DeepL SDK.

    DeepL reports no confidence, so it is estimated from the source and translated lengths.
    """

    operations: ClassVar[frozenset[Operation]] = frozenset({Operation.TRANSLATE})
    _source_codes: ClassVar[dict[str, str]] = {}  # Mapping of source language codes to DeepL's format
    _target_codes: ClassVar[dict[str, str]] = {}  # Mapping of target language codes to DeepL's format

    def __init__(self) -> None:
        super().__init__()
        self.__inst: DeepLClient | None = None
        self._generate_langcode_mappings()

    def _generate_langcode_mappings(self) -> None:
        """Populate the source and target code mappings from the DeepL Language constants.

        Codes are keyed by their lower-case base form, e.g. 'en-US' is reachable as 'en'.
        """
        language_constants: dict[str, str] = {
            name: value for name, value in vars(Language).items() if isinstance(value, str) and name.isupper()
        }

        for code in language_constants.values():
            base_code: str = code.split("-")[0].lower()
            DeeplProvider._source_codes[base_code] = base_code.upper()
            DeeplProvider._target_codes[base_code] = code.upper()

        # DeepL uses a unified 'ZH'.
        for zh_variant in ("zh-cn", "zh-tw"):
            DeeplProvider._source_codes[zh_variant] = "ZH"
            DeeplProvider._target_codes[zh_variant] = "ZH"

        logger.debug("Language code mapping generated for DeepL.")

    @property
    def _inst(self) -> DeepLClient:
        if self.__inst is None:
            msg = "The DeepL instance is not initialised"
            raise ProviderUnavailableError(msg)
        return self.__inst

    @staticmethod
    def fetch_provider_name() -> str:
        return "deepl"

    def initialize(self, config: Config) -> None:
        """Create the DeepL client.

        Authentication happens on the first API call rather than here.

        Args:
            config (Config): Application configuration (unused).

        Raises:
            ProviderUnavailableError: If the client cannot be created.
        """
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        _ = config  # Indicate unused.

        self.provider_attributes = ProviderAttributes(name="DeepL", operations=self.operations)
        try:
            self.__inst = DeepLClient(self.get_authentication_key())
        except (AttributeError, ValueError) as err:
            msg = "An error occurred while creating the DeepL client instance"
            raise ProviderUnavailableError(msg) from err

    async def call(self, text: str, params: ProviderParams, timeout_ms: int) -> RawProviderResult:
        _ = timeout_ms  # Bounded by the orchestrator.
        src_lang: str | None = (params.source_language or "").lower() or None
        tgt_lang: str = (params.target_language or "").lower()
        try:
            _src_lang: str | None = DeeplProvider._source_codes[src_lang] if src_lang else None
            _tgt_lang: str = DeeplProvider._target_codes[tgt_lang]
        except KeyError:
            msg: str = f"Languages not supported by DeepL. Source language: '{src_lang}'. Target language: '{tgt_lang}'."
            raise ProviderTransportError(msg) from None

        try:
            results: TextResult | list[TextResult] = await asyncio.to_thread(
                self._inst.translate_text,
                text,
                source_lang=_src_lang,
                target_lang=_tgt_lang,
            )
        except QuotaExceededException as err:
            msg = "DeepL character quota exceeded"
            raise ProviderUnavailableError(msg) from err
        except AuthorizationException as err:
            msg = "Authorisation failed. Please check your authentication key"
            raise ProviderUnavailableError(msg) from err
        except TooManyRequestsException as err:
            msg = "DeepL rate limit reached"
            raise ProviderRateLimitError(msg) from err
        except ConnectionException as err:
            msg = "An error occurred when connecting to the DeepL server"
            raise ProviderTransportError(msg) from err
        except (DeepLException, ValueError, TypeError) as err:
            msg = "An anomaly occurred during the translation process at DeepL"
            raise ProviderTransportError(msg) from err

        logger.info("translation completed (%s > %s)", _src_lang, _tgt_lang)
        return self._build_result(text, results)

    def _build_result(self, text: str, results: TextResult | list[TextResult]) -> RawProviderResult:
        if isinstance(results, list):
            results = results[0] if results else None
        if not isinstance(results, TextResult):
            msg = "Unexpected result type returned by DeepL"
            raise ProviderResponseError(msg)

        return RawProviderResult(
            confidence=StringUtils.estimate_translation_confidence(text, results.text),
            text=results.text,
            detected_language=results.detected_source_lang.lower() if results.detected_source_lang else None,
            metadata={"engine": "deepl"},
        )

    async def close(self) -> None:
        self.__inst = None
        logger.debug("'%s' process termination", self.__class__.__name__)
