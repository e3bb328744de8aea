from __future__ import annotations

import hashlib
import unicodedata
from typing import Final

__all__: list[str] = ["StringUtils"]

HASH_FIELD_SEPARATOR: Final[str] = "|"
IDENTICAL_TRANSLATION_CONFIDENCE: Final[float] = 0.3
LENGTH_RATIO_BASE_CONFIDENCE: Final[float] = 0.7
LENGTH_RATIO_WEIGHT: Final[float] = 0.2
LENGTH_RATIO_MAX_CONFIDENCE: Final[float] = 0.9


class StringUtils:
    """Utility class for text normalization, cache keys and translation confidence estimation."""

    @staticmethod
    def ensure_str(value: str | None) -> str:
        """Ensure that the value is a string, returning an empty string if None.

        Args:
            value (str | None): The value to ensure as a string.

        Returns:
            str: The value as a string, or empty string if None.
        """
        if not isinstance(value, str):
            value = str(value) if value is not None else ""
        return value

    @staticmethod
    def compress_blanks(value: str) -> str:
        """Collapse runs of whitespace into single spaces and strip both ends.

        Args:
            value (str): The string to compress.

        Returns:
            str: The compressed string.
        """
        value = StringUtils.ensure_str(value)
        return " ".join(value.split())

    @staticmethod
    def normalize_text(text: str) -> str:
        """Normalize text for cache lookups.

        Applies Unicode NFC normalization, lowercases, and collapses whitespace so that
        trivially different inputs share a cache entry.

        Args:
            text (str): Text to normalize.

        Returns:
            str: Normalized text.
        """
        return StringUtils.compress_blanks(unicodedata.normalize("NFC", StringUtils.ensure_str(text))).lower()

    @staticmethod
    def normalize_language(lang: str | None) -> str:
        """Return a lowercase, stripped language code, or an empty string for None."""
        return StringUtils.ensure_str(lang).strip().lower()

    @staticmethod
    def generate_hash_key(
        operation: str,
        source_text: str,
        source_lang: str | None,
        target_lang: str | None,
    ) -> str:
        """Generate a provider-agnostic SHA-256 cache key for an analysis request.

        Args:
            operation (str): Operation identifier.
            source_text (str): Raw input text. Normalized before hashing.
            source_lang (str | None): Source language code.
            target_lang (str | None): Target language code.

        Returns:
            str: Hex digest identifying the semantic request.
        """
        key_data: str = HASH_FIELD_SEPARATOR.join(
            (
                operation,
                StringUtils.normalize_text(source_text),
                StringUtils.normalize_language(source_lang),
                StringUtils.normalize_language(target_lang),
            )
        )
        return hashlib.sha256(key_data.encode("utf-8")).hexdigest()

    @staticmethod
    def estimate_translation_confidence(original: str, translated: str | None) -> float:
        """Estimate a confidence score for providers that do not report one.

        An empty translation scores 0, a translation identical to its input scores 0.3,
        anything else scores ``min(0.9, 0.7 + length_ratio * 0.2)``.

        Args:
            original (str): Source text.
            translated (str | None): Translated text.

        Returns:
            float: Confidence in [0, 0.9].
        """
        translated = StringUtils.ensure_str(translated)
        if not translated.strip():
            return 0.0
        if translated.strip() == original.strip():
            return IDENTICAL_TRANSLATION_CONFIDENCE

        longest: int = max(len(original), len(translated))
        ratio: float = min(len(original), len(translated)) / longest if longest else 0.0
        return min(LENGTH_RATIO_MAX_CONFIDENCE, LENGTH_RATIO_BASE_CONFIDENCE + ratio * LENGTH_RATIO_WEIGHT)
