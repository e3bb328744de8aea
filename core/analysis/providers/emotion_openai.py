"""OpenAI chat-completions emotion provider.

The model is asked for a JSON object holding scores for the basic emotions along with confidence,
intensity and sentiment.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, ClassVar, Final

from core.analysis.errors import ProviderResponseError
from core.analysis.interface import ProviderAttributes
from core.analysis.providers.http_base import HttpProvider
from models.analysis_models import BASIC_EMOTIONS, Operation, Sentiment
from models.provider_models import RawProviderResult
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config
    from models.provider_models import ProviderParams

__all__: list[str] = ["OpenAIEmotionProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

OPENAI_CHAT_URL: Final[str] = "https://api.openai.com/v1/chat/completions"
DEFAULT_CONFIDENCE: Final[float] = 0.8
SYSTEM_PROMPT: Final[str] = (
    "You are an expert in emotion analysis. Always answer with a single valid JSON object and nothing else."
)
USER_PROMPT: Final[str] = """Analyze the emotions expressed in the text below.
Language: {language}
Cultural context: {cultural_context}

Return a JSON object with these keys:
- "emotions": an object scoring each of {labels} between 0 and 1
- "confidence": your confidence in the analysis between 0 and 1
- "intensity": overall emotional intensity between 0 and 1
- "sentiment": an object with "polarity" ("positive", "negative" or "neutral") and "score" between -1 and 1
- "reasoning": one short sentence

Text: "{text}"
"""


class OpenAIEmotionProvider(HttpProvider):
    operations: ClassVar[frozenset[Operation]] = frozenset({Operation.EMOTION_ANALYZE})

    def __init__(self) -> None:
        super().__init__()
        self._model: str = "gpt-3.5-turbo"
        self._default_language: str = "fr"

    @staticmethod
    def fetch_provider_name() -> str:
        return "openai"

    def initialize(self, config: Config) -> None:
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.config = config
        self.provider_attributes = ProviderAttributes(name="OpenAI", operations=self.operations)
        self._model = config.PROVIDERS.OPENAI_MODEL
        self._default_language = config.ORCHESTRATOR.DEFAULT_LANGUAGE

    async def call(self, text: str, params: ProviderParams, timeout_ms: int) -> RawProviderResult:
        prompt: str = USER_PROMPT.format(
            language=params.source_language or self._default_language,
            cultural_context=params.cultural_context,
            labels=", ".join(BASIC_EMOTIONS),
            text=text.replace('"', "'"),
        )
        response: Any = await self._post_json(
            OPENAI_CHAT_URL,
            headers={"Authorization": f"Bearer {self.get_authentication_key()}"},
            data={
                "model": self._model,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "temperature": 0.3,
                "max_tokens": 500,
            },
            timeout_ms=timeout_ms,
        )
        return self._build_result(response)

    def _build_result(self, response: Any) -> RawProviderResult:
        try:
            content: str = response["choices"][0]["message"]["content"]
            analysis: Any = json.loads(content)
        except (KeyError, IndexError, TypeError, json.JSONDecodeError) as err:
            msg = "OpenAI response is not a JSON emotion analysis"
            raise ProviderResponseError(msg) from err

        if not isinstance(analysis, dict) or not isinstance(analysis.get("emotions"), dict):
            msg = "OpenAI response has no emotion scores"
            raise ProviderResponseError(msg)

        try:
            emotions: dict[str, float] = {str(k): float(v) for k, v in analysis["emotions"].items()}
            confidence: float = float(analysis.get("confidence", DEFAULT_CONFIDENCE))
            intensity: float | None = float(analysis["intensity"]) if "intensity" in analysis else None
            sentiment: Sentiment | None = None
            if isinstance(analysis.get("sentiment"), dict):
                sentiment = Sentiment(
                    polarity=str(analysis["sentiment"].get("polarity", "neutral")),
                    score=max(-1.0, min(1.0, float(analysis["sentiment"].get("score", 0.0)))),
                )
        except (TypeError, ValueError) as err:
            msg = "OpenAI emotion analysis has non-numeric values"
            raise ProviderResponseError(msg) from err

        metadata: dict[str, str] = {"engine": "openai", "model": self._model}
        if analysis.get("reasoning"):
            metadata["reasoning"] = str(analysis["reasoning"])

        return RawProviderResult(
            confidence=max(0.0, min(1.0, confidence)),
            emotions=emotions,
            sentiment=sentiment,
            intensity=intensity,
            metadata=metadata,
        )
