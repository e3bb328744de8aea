"""Core components of the chat analysis layer.

This package contains the analysis service with its provider adapters, orchestration and request
coordination, and the result cache with its key-value store backends.
"""

from core.version import VERSION

__all__: list[str] = ["VERSION"]
