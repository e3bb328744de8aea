"""Google Cloud Natural Language sentiment provider.

The document sentiment score and magnitude are mapped onto the basic emotion labels.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Final

from core.analysis.errors import ProviderResponseError
from core.analysis.interface import ProviderAttributes
from core.analysis.providers.http_base import HttpProvider
from models.analysis_models import POLARITY_MARGIN, Operation, Sentiment
from models.provider_models import RawProviderResult
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config
    from models.provider_models import ProviderParams

__all__: list[str] = ["GoogleNaturalLanguageProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

GOOGLE_NL_URL: Final[str] = "https://language.googleapis.com/v1/documents:analyzeSentiment"


class GoogleNaturalLanguageProvider(HttpProvider):
    operations: ClassVar[frozenset[Operation]] = frozenset({Operation.EMOTION_ANALYZE})

    def __init__(self) -> None:
        super().__init__()
        self._default_language: str = "fr"

    @staticmethod
    def fetch_provider_name() -> str:
        return "google_nl"

    def initialize(self, config: Config) -> None:
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.config = config
        self.provider_attributes = ProviderAttributes(name="Google Natural Language", operations=self.operations)
        self._default_language = config.ORCHESTRATOR.DEFAULT_LANGUAGE

    async def call(self, text: str, params: ProviderParams, timeout_ms: int) -> RawProviderResult:
        response: Any = await self._post_json(
            GOOGLE_NL_URL,
            params={"key": self.get_authentication_key()},
            data={
                "document": {
                    "type": "PLAIN_TEXT",
                    "language": params.source_language or self._default_language,
                    "content": text,
                },
                "encodingType": "UTF8",
            },
            timeout_ms=timeout_ms,
        )
        try:
            document_sentiment: dict[str, Any] = response["documentSentiment"]
            score: float = float(document_sentiment.get("score", 0.0))
            magnitude: float = float(document_sentiment.get("magnitude", 0.0))
        except (KeyError, TypeError, ValueError, AttributeError) as err:
            msg = "Google Natural Language response has no document sentiment"
            raise ProviderResponseError(msg) from err
        return self._build_result(score, magnitude)

    def _build_result(self, score: float, magnitude: float) -> RawProviderResult:
        """Map score and magnitude onto emotions.

        Args:
            score (float): Sentiment score in [-1, 1].
            magnitude (float): Unbounded emotional strength.

        Returns:
            RawProviderResult: Result with confidence derived from the magnitude.
        """
        emotions: dict[str, float] = {"surprise": magnitude * 0.3}
        polarity: str = "neutral"
        if score > POLARITY_MARGIN:
            emotions["joy"] = score * magnitude
            emotions["trust"] = score * 0.7
            polarity = "positive"
        elif score < -POLARITY_MARGIN:
            emotions["sadness"] = abs(score) * magnitude * 0.6
            emotions["anger"] = abs(score) * magnitude * 0.4
            polarity = "negative"

        return RawProviderResult(
            confidence=min(1.0, abs(magnitude) / 2),
            emotions=emotions,
            sentiment=Sentiment(polarity=polarity, score=max(-1.0, min(1.0, score))),
            intensity=min(1.0, abs(score)),
            metadata={"engine": "google_nl", "magnitude": f"{magnitude:.3f}"},
        )
