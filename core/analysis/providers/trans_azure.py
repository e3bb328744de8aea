"""Azure AI Translator (REST v3) provider."""

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

__all__: list[str] = ["AzureTranslatorProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

AZURE_TRANSLATOR_URL: Final[str] = "https://api.cognitive.microsofttranslator.com/translate"
AZURE_DETECT_URL: Final[str] = "https://api.cognitive.microsofttranslator.com/detect"
AZURE_TRANSLATOR_API_VERSION: Final[str] = "3.0"
DEFAULT_DETECTION_CONFIDENCE: Final[float] = 0.9


class AzureTranslatorProvider(HttpProvider):
    """Translation through Azure AI Translator.

    The detection score reported for the source language is used as confidence. When the source
    language is given, Azure reports no detection and a fixed confidence is used.
    """

    operations: ClassVar[frozenset[Operation]] = frozenset({Operation.TRANSLATE})
    supports_detection: ClassVar[bool] = True

    def __init__(self) -> None:
        super().__init__()
        self._region: str = ""

    @staticmethod
    def fetch_provider_name() -> str:
        return "azure_translator"

    def initialize(self, config: Config) -> None:
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.config = config
        self.provider_attributes = ProviderAttributes(name="Azure Translator", operations=self.operations)
        self._region = os.getenv("AZURE_TRANSLATOR_REGION", config.PROVIDERS.AZURE_TRANSLATOR_REGION)

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Ocp-Apim-Subscription-Key": self.get_authentication_key(),
            "Content-Type": "application/json",
        }
        if self._region:
            headers["Ocp-Apim-Subscription-Region"] = self._region
        return headers

    async def call(self, text: str, params: ProviderParams, timeout_ms: int) -> RawProviderResult:
        query: dict[str, str] = {"api-version": AZURE_TRANSLATOR_API_VERSION, "to": params.target_language or ""}
        if params.source_language:
            query["from"] = params.source_language

        response: Any = await self._post_json(
            AZURE_TRANSLATOR_URL,
            params=query,
            headers=self._headers(),
            data=[{"Text": text}],
            timeout_ms=timeout_ms,
        )
        return self._build_result(response)

    async def detect_language(self, text: str, timeout_ms: int) -> RawProviderResult:
        response: Any = await self._post_json(
            AZURE_DETECT_URL,
            params={"api-version": AZURE_TRANSLATOR_API_VERSION},
            headers=self._headers(),
            data=[{"Text": text}],
            timeout_ms=timeout_ms,
        )
        try:
            item: dict[str, Any] = response[0]
            language: str = item["language"]
            score: float = float(item.get("score", 0.0))
        except (KeyError, IndexError, TypeError, ValueError) as err:
            msg = "Azure Translator detection response has no language"
            raise ProviderResponseError(msg) from err

        return RawProviderResult(
            confidence=max(0.0, min(1.0, score)),
            detected_language=language.lower(),
            metadata={"engine": "azure_translator"},
        )

    def _build_result(self, response: Any) -> RawProviderResult:
        try:
            item: dict[str, Any] = response[0]
            translated_text: str = item["translations"][0]["text"]
        except (KeyError, IndexError, TypeError) as err:
            msg = "Azure Translator response has no translated text"
            raise ProviderResponseError(msg) from err

        detected: dict[str, Any] = item.get("detectedLanguage") or {}
        confidence: float = float(detected.get("score", DEFAULT_DETECTION_CONFIDENCE))
        detected_language: str | None = detected.get("language")
        logger.info("translation completed (detected: %s)", detected_language)
        return RawProviderResult(
            confidence=max(0.0, min(1.0, confidence)),
            text=translated_text,
            detected_language=detected_language.lower() if detected_language else None,
            metadata={"engine": "azure_translator"},
        )
