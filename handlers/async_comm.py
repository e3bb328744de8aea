"""Asynchronous HTTP communication used by REST-based analysis providers.

Errors raised by aiohttp are converted into ``AsyncCommError`` and ``AsyncCommTimeoutError`` so that
provider adapters only need to understand one small exception family. HTTP error responses keep their
status code on the exception so that callers can recognize upstream rate limiting.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Final, Literal, Self

import aiohttp
from aiohttp.client import ClientSession

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from aiohttp.client import ClientResponse


__all__: list[str] = ["AsyncCommError", "AsyncCommInvalidContentTypeError", "AsyncCommTimeoutError", "AsyncHttp"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

CONNECT_TIMEOUT: Final[float] = 1.0


class AsyncHttp:
    """Asynchronous HTTP client with content-type based response decoding.

    The aiohttp session is created on construction, so instances must be created while an event
    loop is running.
    """

    def __init__(self) -> None:
        """Create the session and register the default text and JSON handlers."""
        logger.info("%s initializing", self.__class__.__name__)
        self.__session: ClientSession | None = None
        self.content_handlers: dict[str, Callable[[bytes], Any]] = {}

        self.add_handler("text/plain", lambda x: x.decode("utf-8"))
        self.add_handler("text/html", lambda x: x.decode("utf-8"))
        self.add_handler("application/json", lambda x: json.loads(x.decode("utf-8")))
        self.initialize_session()

    async def __aenter__(self) -> Self:
        self.initialize_session(suppress_already_log=True)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        await self.close()

    def initialize_session(self, *, suppress_already_log: bool = False) -> None:
        """Create the aiohttp session if there is none or it was closed.

        Args:
            suppress_already_log (bool): If True, do not log when the session is already initialized.
        """
        if self.__session is None or self.__session.closed:
            self.__session = ClientSession(raise_for_status=True)
            logger.debug("%s session initialized", self.__class__.__name__)
        elif not suppress_already_log:
            logger.debug("%s session already initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        """The open aiohttp session."""
        if self.__session is None or self.__session.closed:
            msg = "Session is not initialized or has been closed"
            raise RuntimeError(msg)
        return self.__session

    @property
    def closed(self) -> bool:
        return self.__session is None or self.__session.closed

    async def close(self) -> None:
        """Close the aiohttp session if it is open."""
        if self.__session and not self.__session.closed:
            await self.__session.close()
        logger.info("%s session closed", self.__class__.__name__)

    async def post(
        self,
        *,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        data: Any | None = None,
        total_timeout: float = 10.0,
    ) -> Any:
        """Perform an asynchronous HTTP POST request with a JSON body.

        Args:
            url (str): Request URL.
            params (dict[str, str] | None): Query parameters.
            headers (dict[str, str] | None): Extra request headers. Credentials are not logged.
            data (Any | None): JSON-serializable request body.
            total_timeout (float): Total timeout for the request in seconds.

        Returns:
            Any: Decoded response body.
        """
        return await self._request(
            "POST", url=url, total_timeout=total_timeout, params=params, headers=headers, json=data
        )

    async def decode_response(self, resp: ClientResponse) -> Any:
        """Decode a response body with the handler registered for its content type.

        Args:
            resp (ClientResponse): The response object from the aiohttp request.

        Returns:
            Any: Decoded body, or None for an empty body.

        Raises:
            AsyncCommInvalidContentTypeError: If no handler is registered for the content type.
        """
        content_type: str = resp.headers.get("Content-Type", "").split(";")[0].strip()
        logger.debug("'Content-Type': '%s'", content_type)

        raw: bytes = await resp.read()
        if not raw:
            logger.debug("Received empty response")
            return None

        handler: Callable[[bytes], Any] | None = self.content_handlers.get(content_type)
        if handler:
            try:
                return handler(raw)
            except (UnicodeDecodeError, json.JSONDecodeError) as err:
                msg: str = f"Malformed '{content_type}' response body"
                raise AsyncCommError(msg) from err

        msg = f"Unknown Content-Type '{content_type}'"
        raise AsyncCommInvalidContentTypeError(msg)

    def add_handler(self, content_type: str, handler: Callable[[bytes], Any]) -> None:
        """Register a decoder for a content type, replacing any existing one.

        Args:
            content_type (str): Content type such as "application/json".
            handler (Callable[[bytes], Any]): Function that decodes the raw body.
        """
        if self.content_handlers.get(content_type):
            logger.warning("Handler for content type '%s' already exists, replacing it", content_type)
        self.content_handlers[content_type] = handler

    async def _request(
        self,
        method: HTTPMethod,
        *,
        url: str,
        total_timeout: float,
        **kwargs: Any,
    ) -> Any:
        """Perform an asynchronous HTTP request.

        Args:
            method (HTTPMethod): The HTTP method to use.
            url (str): Request URL.
            total_timeout (float): Total timeout in seconds. Zero or negative disables the timeout.
            **kwargs: Additional keyword arguments passed to aiohttp.

        Returns:
            Any: Decoded response body.

        Raises:
            AsyncCommTimeoutError: If the server does not answer in time.
            AsyncCommError: On connection failures and error responses.
        """
        logger.debug("[%s] url=%s timeout=%s", method, url, total_timeout)
        if total_timeout <= 0:
            _timeout = aiohttp.ClientTimeout(total=None)
        elif total_timeout < CONNECT_TIMEOUT:
            # A connect timeout longer than the total would never apply.
            _timeout = aiohttp.ClientTimeout(total=total_timeout)
        else:
            _timeout = aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=total_timeout)

        try:
            async with self.session.request(method=method, url=url, timeout=_timeout, **kwargs) as resp:
                resp.raise_for_status()
                return await self.decode_response(resp)

        except TimeoutError as err:
            logger.debug(err)
            msg = "Timeout due to a lack of response from the server."
            raise AsyncCommTimeoutError(msg) from err
        except ConnectionResetError as err:
            logger.debug(err)
            msg = "The connection to the server has been disconnected."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientConnectorError as err:
            logger.debug(err)
            msg = "The server is unreachable."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientResponseError as err:
            logger.debug(err)
            msg = "Error response from the server."
            raise AsyncCommError(msg, response=err) from err
        except aiohttp.ClientError as err:
            logger.debug(err)
            msg = "HTTP client error."
            raise AsyncCommError(msg) from err


class AsyncCommError(Exception):
    """Base class for asynchronous communication errors.

    Attributes:
        status (int | None): HTTP status code when the error came from an error response.
    """

    def __init__(self, msg: str | BaseException, **kwargs: Any) -> None:
        self.msg: str = str(msg)
        self.status: int | None = None

        rsp: aiohttp.ClientResponseError | None = kwargs.pop("response", None)
        if isinstance(rsp, aiohttp.ClientResponseError):
            self.status = rsp.status
            self.msg = f"{self.msg}: status='{rsp.status}'"

        super().__init__(self.msg)


class AsyncCommTimeoutError(AsyncCommError):
    """A request did not complete within its timeout."""


class AsyncCommInvalidContentTypeError(AsyncCommError):
    """The response content type has no registered handler."""
