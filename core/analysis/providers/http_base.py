"""Shared plumbing for providers reached over REST."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from core.analysis.errors import (
    ProviderRateLimitError,
    ProviderTimeoutError,
    ProviderTransportError,
)
from core.analysis.interface import ProviderInterface
from handlers.async_comm import AsyncCommError, AsyncCommTimeoutError, AsyncHttp
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config

__all__: list[str] = ["HttpProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class HttpProvider(ProviderInterface):
    """Base for REST providers. Not registered itself.

    The HTTP session is opened on first use so that adapters can be initialized outside a running
    event loop.
    """

    def __init__(self) -> None:
        super().__init__()
        self.__http: AsyncHttp | None = None
        self.config: Config | None = None

    @staticmethod
    def fetch_provider_name() -> str:
        return ""

    @property
    def _http(self) -> AsyncHttp:
        if self.__http is None or self.__http.closed:
            self.__http = AsyncHttp()
        return self.__http

    async def _post_json(
        self,
        url: str,
        *,
        data: Any,
        timeout_ms: int,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """POST a JSON body and return the decoded response.

        Args:
            url (str): Endpoint URL.
            data (Any): JSON-serializable request body.
            timeout_ms (int): Request timeout in milliseconds.
            headers (dict[str, str] | None): Extra request headers.
            params (dict[str, str] | None): Query parameters.

        Returns:
            Any: Decoded response body.

        Raises:
            ProviderTimeoutError: If the request timed out.
            ProviderRateLimitError: If the provider answered 429.
            ProviderTransportError: On any other transport or HTTP error.
        """
        try:
            return await self._http.post(
                url=url,
                params=params,
                headers=headers,
                data=data,
                total_timeout=timeout_ms / 1000,
            )
        except AsyncCommTimeoutError as err:
            msg: str = f"'{self.provider_name}' did not answer within {timeout_ms} ms"
            raise ProviderTimeoutError(msg) from err
        except AsyncCommError as err:
            if err.status == HTTPStatus.TOO_MANY_REQUESTS:
                msg = f"'{self.provider_name}' rate limit reached"
                raise ProviderRateLimitError(msg) from err
            msg = f"'{self.provider_name}' request failed: {err}"
            raise ProviderTransportError(msg) from err

    async def close(self) -> None:
        if self.__http is not None:
            await self.__http.close()
            self.__http = None
        logger.debug("'%s' process termination", self.__class__.__name__)
