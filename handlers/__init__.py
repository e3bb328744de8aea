"""Text and transport helpers for the analysis layer.

This package provides the asynchronous HTTP client used by REST providers and the emoji handler
used by the local emotion heuristic.
"""

from handlers.async_comm import AsyncCommError, AsyncCommTimeoutError, AsyncHttp
from handlers.emoji import EmojiHandler

__all__: list[str] = [
    "AsyncCommError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
    "EmojiHandler",
]
