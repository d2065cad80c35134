"""Network communication helpers.

Provides the asynchronous HTTP client used by the remote speech services.
"""

from handlers.async_comm import (
    AsyncCommError,
    AsyncCommInvalidContentTypeError,
    AsyncCommTimeoutError,
    AsyncHttp,
)

__all__: list[str] = [
    "AsyncCommError",
    "AsyncCommInvalidContentTypeError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
]
