"""LibreTranslate provider.

Public and self-hosted instances share the same API. An API key is optional and read from
LIBRE_TRANSLATE_API_KEY; the endpoint comes from LIBRE_TRANSLATE_API_URL or the configuration.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any, ClassVar, Final

from core.analysis.errors import ProviderResponseError
from core.analysis.interface import ProviderAttributes
from core.analysis.providers.http_base import HttpProvider
from models.analysis_models import Operation
from models.provider_models import RawProviderResult
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config
    from models.provider_models import ProviderParams

__all__: list[str] = ["LibreTranslateProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

LIBRE_TRANSLATE_CONFIDENCE: Final[float] = 0.8


class LibreTranslateProvider(HttpProvider):
    operations: ClassVar[frozenset[Operation]] = frozenset({Operation.TRANSLATE})
    supports_detection: ClassVar[bool] = True

    def __init__(self) -> None:
        super().__init__()
        self._url: str = ""

    @staticmethod
    def fetch_provider_name() -> str:
        return "libre_translate"

    @classmethod
    def has_credentials(cls, config: Config) -> bool:
        return bool(cls._resolve_url(config))

    @staticmethod
    def _resolve_url(config: Config) -> str:
        return os.getenv("LIBRE_TRANSLATE_API_URL", config.PROVIDERS.LIBRE_TRANSLATE_URL)

    def initialize(self, config: Config) -> None:
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.config = config
        self.provider_attributes = ProviderAttributes(name="LibreTranslate", operations=self.operations)
        self._url = self._resolve_url(config)

    async def call(self, text: str, params: ProviderParams, timeout_ms: int) -> RawProviderResult:
        body: dict[str, str] = {
            "q": text,
            "source": params.source_language or "auto",
            "target": params.target_language or "",
            "format": "text",
        }
        api_key: str = self.get_authentication_key()
        if api_key:
            body["api_key"] = api_key

        response: Any = await self._post_json(self._url, data=body, timeout_ms=timeout_ms)
        try:
            translated_text: str = response["translatedText"]
        except (KeyError, TypeError) as err:
            msg = "LibreTranslate response has no translated text"
            raise ProviderResponseError(msg) from err

        detected: Any = response.get("detectedLanguage")
        detected_language: str | None = detected.get("language") if isinstance(detected, dict) else None
        logger.info("translation completed (%s > %s)", params.source_language, params.target_language)
        return RawProviderResult(
            confidence=LIBRE_TRANSLATE_CONFIDENCE,
            text=translated_text,
            detected_language=detected_language,
            metadata={"engine": "libre_translate"},
        )

    async def detect_language(self, text: str, timeout_ms: int) -> RawProviderResult:
        """Detect the language through the ``/detect`` endpoint next to ``/translate``.

        LibreTranslate reports confidence as a percentage.
        """
        body: dict[str, str] = {"q": text}
        api_key: str = self.get_authentication_key()
        if api_key:
            body["api_key"] = api_key

        detect_url: str = f"{self._url.rstrip('/').rsplit('/', 1)[0]}/detect"
        response: Any = await self._post_json(detect_url, data=body, timeout_ms=timeout_ms)
        try:
            best: dict[str, Any] = response[0]
            language: str = best["language"]
            confidence: float = float(best.get("confidence", 0.0)) / 100
        except (KeyError, IndexError, TypeError, ValueError) as err:
            msg = "LibreTranslate detection response has no language"
            raise ProviderResponseError(msg) from err

        return RawProviderResult(
            confidence=max(0.0, min(1.0, confidence)),
            detected_language=language.lower(),
            metadata={"engine": "libre_translate"},
        )
