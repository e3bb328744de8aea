"""Unit tests for the chat analysis layer.

This package contains test modules for all components of the analysis layer.
Tests use pytest with asyncio support and mock HTTP/SDK calls via monkeypatch.
"""
