"""Asynchronous HTTP communication for the remote speech services.

``AsyncHttp`` wraps an aiohttp session and decodes responses with per content type handlers.
Transport failures are raised as ``AsyncCommError`` subclasses so callers handle one family of
exceptions regardless of what aiohttp raised underneath.
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


__all__: list[str] = [
    "AUDIO_CONTENT_TYPES",
    "AsyncCommError",
    "AsyncCommInvalidContentTypeError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

CONNECT_TIMEOUT: Final[float] = 1.0

# Content types whose body is handed back untouched
AUDIO_CONTENT_TYPES: Final[tuple[str, ...]] = (
    "audio/wav",
    "audio/wave",
    "audio/x-wav",
    "audio/mpeg",
    "audio/mp3",
    "audio/ogg",
    "audio/flac",
    "application/octet-stream",
)


class AsyncHttp:
    """Asynchronous HTTP client for making requests and handling responses.

    The aiohttp session is created on first use, so the client can be constructed outside a
    running event loop.
    """

    def __init__(self) -> None:
        """Initialize the AsyncHttp client.

        The default handlers include:
            - "text/plain": Decodes bytes to a UTF-8 string.
            - "text/html": Decodes bytes to a UTF-8 string.
            - "application/json": Parses bytes as JSON.
            - audio content types: Returns the bytes unchanged.
        """
        logger.debug("%s initializing", self.__class__.__name__)
        self.__session: ClientSession | None = None
        self.content_handlers: dict[str, Callable[[bytes], Any]] = {}

        self.add_handler("text/plain", lambda x: x.decode("utf-8"))
        self.add_handler("text/html", lambda x: x.decode("utf-8"))
        self.add_handler("application/json", lambda x: json.loads(x.decode("utf-8")))
        for content_type in AUDIO_CONTENT_TYPES:
            self.add_handler(content_type, bytes)

    async def __aenter__(self) -> Self:
        logger.debug("%s entering context", self.__class__.__name__)
        self.initialize_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        logger.debug("%s exiting context", self.__class__.__name__)
        await self.close()

    def initialize_session(self) -> None:
        """Create the aiohttp session unless an open one exists."""
        if self.__session is None or self.__session.closed:
            self.__session = ClientSession(raise_for_status=True)
            logger.debug("%s session initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        """Get or create the current aiohttp session."""
        self.initialize_session()
        if self.__session is None or self.__session.closed:
            msg = "Session is not initialized or has been closed"
            raise RuntimeError(msg)
        return self.__session

    @property
    def is_open(self) -> bool:
        return self.__session is not None and not self.__session.closed

    async def close(self) -> None:
        """Close the aiohttp session if it is open."""
        if self.__session and not self.__session.closed:
            await self.__session.close()
            logger.debug("%s session closed", self.__class__.__name__)
        self.__session = None

    async def post(
        self,
        *,
        url: str,
        headers: dict[str, str] | None = None,
        json_data: Any | None = None,
        data: bytes | str | None = None,
        total_timeout: float = 10.0,
    ) -> Any:
        """Perform an asynchronous HTTP POST request.

        Args:
            url (str): The URL to send the POST request to.
            headers (dict[str, str] | None): Request headers.
            json_data (Any | None): Body serialized as JSON.
            data (bytes | str | None): Raw body, used when ``json_data`` is None.
            total_timeout (float): Total timeout for the request in seconds.

        Returns:
            Any: The decoded response data, None for an empty body.
        """
        logger.debug("'url': '%s', 'timeout': '%s'", url, total_timeout)
        body: dict[str, Any] = {"json": json_data} if json_data is not None else {"data": data}
        return await self._request(
            "POST",
            url=url,
            total_timeout=total_timeout,
            headers=headers or {},
            **body,
        )

    async def decode_response(self, resp: ClientResponse) -> Any:
        """Parse the response from an HTTP request.

        Args:
            resp (ClientResponse): The response object from the aiohttp request.

        Returns:
            Any: The parsed response data, or None if the body is empty.

        Raises:
            AsyncCommInvalidContentTypeError: If no handler is registered for the content type.
        """
        content_type: str = resp.headers.get("Content-Type", "").split(";")[0].strip().lower()
        logger.debug("'Content-Type': '%s'", content_type)

        raw: bytes = await resp.read()
        if not raw:
            logger.debug("Received empty response")
            return None

        handler: Callable[[bytes], Any] | None = self.content_handlers.get(content_type)
        if handler:
            return handler(raw)

        msg: str = f"Unknown Content-Type '{content_type}'"
        raise AsyncCommInvalidContentTypeError(msg, content_type=content_type)

    def add_handler(self, content_type: str, handler: Callable[[bytes], Any]) -> None:
        """Add a custom handler for a specific content type.

        Args:
            content_type (str): The content type to handle (e.g., "text/plain", "audio/wav").
            handler (Callable[[bytes], Any]): A function that takes bytes and returns the parsed data.
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
            method (HTTPMethod): The HTTP method to use (GET, POST, etc.).
            url (str): The URL to send the request to.
            total_timeout (float): Total timeout for the request in seconds.
            **kwargs: Additional keyword arguments to pass to the aiohttp request.

        Returns:
            Any: The decoded response data.

        Raises:
            AsyncCommTimeoutError: If the server did not answer in time.
            AsyncCommError: If the connection failed or the server answered with an error status.
        """
        # Set a timeout for the request
        if total_timeout <= 0:
            # If total_timeout is 0 or negative, set no timeout
            _timeout = aiohttp.ClientTimeout(total=None)
        elif total_timeout < CONNECT_TIMEOUT:
            # If total_timeout is less than CONNECT_TIMEOUT, set a total timeout only
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
        except aiohttp.ClientResponseError as err:
            logger.debug(err)
            msg = "Error response from the server."
            raise AsyncCommError(msg, status=err.status) from err
        except ConnectionResetError as err:
            logger.debug(err)
            msg = "The connection to the server has been disconnected."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientError as err:
            logger.debug(err)
            msg = "The server could not be reached."
            raise AsyncCommError(msg) from err


class AsyncCommError(Exception):
    """Base class for asynchronous communication errors.

    Attributes:
        status (int | None): HTTP status of an error response, None for transport failures.
    """

    def __init__(self, msg: str | BaseException, *, status: int | None = None) -> None:
        self.msg: str = str(msg)
        self.status: int | None = status
        if status is not None:
            self.msg = f"{self.msg}: status='{status}'"
        super().__init__(self.msg)


class AsyncCommTimeoutError(AsyncCommError):
    """Error raised when a request did not complete within its timeout."""


class AsyncCommInvalidContentTypeError(AsyncCommError):
    """Error raised when no handler is registered for the content type of a response.

    Attributes:
        content_type (str): The unrecognized content type.
    """

    def __init__(self, msg: str, *, content_type: str = "") -> None:
        self.content_type: str = content_type
        super().__init__(msg)
