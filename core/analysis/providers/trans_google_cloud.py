"""Google Cloud Translation API Basic (v2) provider.

Authentication uses either an API key (GOOGLE_CLOUD_API_KEY) or the service account file named by
GOOGLE_APPLICATION_CREDENTIALS.
"""

from __future__ import annotations

import asyncio
import os
from typing import TYPE_CHECKING, Any, ClassVar

from google.api_core.exceptions import BadRequest, GoogleAPIError, TooManyRequests, Unauthorized
from google.auth.credentials import AnonymousCredentials
from google.auth.exceptions import DefaultCredentialsError
from google.auth.transport.requests import AuthorizedSession
from google.cloud import translate_v2 as translate

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

__all__: list[str] = ["GoogleCloudProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class APIKeySession:
    """HTTP session that appends the API key to request URLs."""

    def __init__(self, api_key: str) -> None:
        self.api_key: str = api_key
        self._session: AuthorizedSession = AuthorizedSession(AnonymousCredentials())

    def request(self, method: str, url: str, **kwargs):
        separator = "&" if "?" in url else "?"
        url_with_key: str = f"{url}{separator}key={self.api_key}"
        return self._session.request(method, url_with_key, **kwargs)


class GoogleCloudProvider(ProviderInterface):
    """Translation through the google-cloud-translate v2 client.

    The v2 API reports no confidence for translations, so it is estimated from the source and
    translated lengths.
    """

    operations: ClassVar[frozenset[Operation]] = frozenset({Operation.TRANSLATE})
    supports_detection: ClassVar[bool] = True

    def __init__(self) -> None:
        super().__init__()
        self.__inst: translate.Client | None = None

    @property
    def _inst(self) -> translate.Client:
        if self.__inst is None:
            msg = "The Google Cloud Translate instance is not initialised"
            raise ProviderUnavailableError(msg)
        return self.__inst

    @staticmethod
    def fetch_provider_name() -> str:
        return "google_cloud"

    @classmethod
    def has_credentials(cls, config: Config) -> bool:
        _ = config  # Indicate unused.
        return bool(cls.get_authentication_key() or os.getenv("GOOGLE_APPLICATION_CREDENTIALS"))

    def initialize(self, config: Config) -> None:
        """Create the translate client.

        Args:
            config (Config): Application configuration (unused).

        Raises:
            ProviderUnavailableError: If the client cannot be created.
        """
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        _ = config  # Indicate unused.

        self.provider_attributes = ProviderAttributes(name="Google Cloud Translation", operations=self.operations)
        api_key: str = self.get_authentication_key()
        try:
            if api_key:
                logger.debug("Using API key authentication")
                self.__inst = translate.Client(credentials=AnonymousCredentials(), _http=APIKeySession(api_key))
            else:
                logger.debug("Using default credentials (GOOGLE_APPLICATION_CREDENTIALS)")
                self.__inst = translate.Client()
        except (Unauthorized, DefaultCredentialsError) as err:
            msg = "Authentication failed. Please set GOOGLE_APPLICATION_CREDENTIALS or GOOGLE_CLOUD_API_KEY"
            raise ProviderUnavailableError(msg) from err

    async def call(self, text: str, params: ProviderParams, timeout_ms: int) -> RawProviderResult:
        _ = timeout_ms  # Bounded by the orchestrator.
        logger.debug("'src_lang': '%s', 'tgt_lang': '%s'", params.source_language, params.target_language)

        try:
            translation: dict[str, Any] = await asyncio.to_thread(
                self._inst.translate,
                text,
                target_language=params.target_language,
                source_language=params.source_language,
            )
        except BadRequest as err:
            msg: str = (
                f"Unsupported language pair (src: '{params.source_language}', tgt: '{params.target_language}'): {err}"
            )
            raise ProviderTransportError(msg) from err
        except TooManyRequests as err:
            msg = f"Translation rate limited: {err}"
            raise ProviderRateLimitError(msg) from err
        except GoogleAPIError as err:
            msg = f"Translation failed: {err}"
            raise ProviderTransportError(msg) from err

        try:
            translated_text: str = translation["translatedText"]
        except (KeyError, TypeError) as err:
            msg = "Google Cloud Translation response has no translated text"
            raise ProviderResponseError(msg) from err

        detected_lang: str | None = translation.get("detectedSourceLanguage", params.source_language)
        logger.info("translation completed (%s > %s)", params.source_language or detected_lang, params.target_language)
        return RawProviderResult(
            confidence=StringUtils.estimate_translation_confidence(text, translated_text),
            text=translated_text,
            detected_language=detected_lang.lower() if detected_lang else None,
            metadata={"engine": "google_cloud"},
        )

    async def detect_language(self, text: str, timeout_ms: int) -> RawProviderResult:
        _ = timeout_ms  # Bounded by the caller.
        try:
            detection: dict[str, Any] = await asyncio.to_thread(self._inst.detect_language, text)
        except TooManyRequests as err:
            msg: str = f"Language detection rate limited: {err}"
            raise ProviderRateLimitError(msg) from err
        except GoogleAPIError as err:
            msg = f"Language detection failed: {err}"
            raise ProviderTransportError(msg) from err

        try:
            language: str = detection["language"]
            confidence: float = float(detection.get("confidence", 0.0))
        except (KeyError, TypeError, ValueError) as err:
            msg = "Google Cloud Translation detection response has no language"
            raise ProviderResponseError(msg) from err

        logger.debug("Language detected: %s (%.2f)", language, confidence)
        return RawProviderResult(
            confidence=max(0.0, min(1.0, confidence)),
            detected_language=language.lower(),
            metadata={"engine": "google_cloud"},
        )

    async def close(self) -> None:
        self.__inst = None
        logger.debug("'%s' process termination", self.__class__.__name__)
