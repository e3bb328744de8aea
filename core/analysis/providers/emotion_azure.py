"""Azure AI Language sentiment provider.

Azure reports three-way sentiment scores rather than emotions. They are mapped onto the basic
emotion labels before the distribution is normalized.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any, ClassVar, Final

from core.analysis.errors import ProviderResponseError
from core.analysis.interface import ProviderAttributes
from core.analysis.providers.http_base import HttpProvider
from models.analysis_models import Operation, Sentiment
from models.provider_models import RawProviderResult
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config
    from models.provider_models import ProviderParams

__all__: list[str] = ["AzureTextProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SENTIMENT_PATH: Final[str] = "/text/analytics/v3.1/sentiment"


class AzureTextProvider(HttpProvider):
    operations: ClassVar[frozenset[Operation]] = frozenset({Operation.EMOTION_ANALYZE})

    def __init__(self) -> None:
        super().__init__()
        self._url: str = ""
        self._default_language: str = "fr"

    @staticmethod
    def fetch_provider_name() -> str:
        return "azure_text"

    @classmethod
    def has_credentials(cls, config: Config) -> bool:
        return bool(cls.get_authentication_key() and cls._resolve_endpoint(config))

    @staticmethod
    def _resolve_endpoint(config: Config) -> str:
        return os.getenv("AZURE_TEXT_ENDPOINT", config.PROVIDERS.AZURE_TEXT_ENDPOINT)

    def initialize(self, config: Config) -> None:
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.config = config
        self.provider_attributes = ProviderAttributes(name="Azure Text Analytics", operations=self.operations)
        endpoint: str = self._resolve_endpoint(config).rstrip("/")
        if endpoint and not endpoint.startswith(("http://", "https://")):
            endpoint = f"https://{endpoint}"
        self._url = f"{endpoint}{SENTIMENT_PATH}"
        self._default_language = config.ORCHESTRATOR.DEFAULT_LANGUAGE

    async def call(self, text: str, params: ProviderParams, timeout_ms: int) -> RawProviderResult:
        language: str = params.source_language or self._default_language
        response: Any = await self._post_json(
            self._url,
            headers={"Ocp-Apim-Subscription-Key": self.get_authentication_key()},
            data={"documents": [{"id": "1", "language": language, "text": text}]},
            timeout_ms=timeout_ms,
        )
        return self._build_result(response)

    def _build_result(self, response: Any) -> RawProviderResult:
        try:
            document: dict[str, Any] = response["documents"][0]
        except (KeyError, IndexError, TypeError) as err:
            errors: Any = response.get("errors") if isinstance(response, dict) else None
            msg: str = f"Azure Text Analytics returned no document: {errors}"
            raise ProviderResponseError(msg) from err

        if document.get("error"):
            msg = f"Azure Text Analytics document error: {document['error']}"
            raise ProviderResponseError(msg)

        try:
            polarity: str = document["sentiment"]
            scores: dict[str, float] = document["confidenceScores"]
            positive: float = float(scores["positive"])
            neutral: float = float(scores["neutral"])
            negative: float = float(scores["negative"])
        except (KeyError, TypeError, ValueError) as err:
            msg = "Azure Text Analytics response has no sentiment scores"
            raise ProviderResponseError(msg) from err

        emotions: dict[str, float] = {"surprise": neutral * 0.5}
        score: float = 0.0
        if polarity == "positive":
            emotions["joy"] = positive
            emotions["trust"] = positive * 0.7
            score = positive
        elif polarity == "negative":
            emotions["sadness"] = negative * 0.6
            emotions["anger"] = negative * 0.4
            score = -negative

        confidence: float = float(scores.get(polarity, max(positive, neutral, negative)))
        if polarity not in {"positive", "negative"}:
            # 'mixed' has no score of its own.
            polarity = "neutral"

        return RawProviderResult(
            confidence=confidence,
            emotions=emotions,
            sentiment=Sentiment(polarity=polarity, score=score),
            intensity=max(positive, negative),
            metadata={"engine": "azure_text"},
        )
