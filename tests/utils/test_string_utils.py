from __future__ import annotations

import pytest

from utils.string_utils import StringUtils


def test_normalize_text_collapses_case_and_blanks() -> None:
    assert StringUtils.normalize_text("  Bonjour\t  TOUT le\nmonde ") == "bonjour tout le monde"


def test_normalize_text_applies_nfc() -> None:
    decomposed = "cafe\u0301"
    assert StringUtils.normalize_text(decomposed) == "caf\u00e9"


def test_hash_key_ignores_trivial_differences() -> None:
    first: str = StringUtils.generate_hash_key("translate", "Bonjour  Monde", "FR", "en")
    second: str = StringUtils.generate_hash_key("translate", " bonjour monde", "fr", "EN ")

    assert first == second
    assert len(first) == 64


def test_hash_key_distinguishes_operation_and_languages() -> None:
    base: str = StringUtils.generate_hash_key("translate", "Bonjour", "fr", "en")

    assert base != StringUtils.generate_hash_key("emotion_analyze", "Bonjour", "fr", "en")
    assert base != StringUtils.generate_hash_key("translate", "Bonjour", "fr", "de")
    assert base != StringUtils.generate_hash_key("translate", "Bonjour", None, "en")


@pytest.mark.parametrize(
    ("original", "translated", "expected"),
    [
        ("Bonjour", "", 0.0),
        ("Bonjour", None, 0.0),
        ("Bonjour", " Bonjour ", 0.3),
        ("Merci", "Thanks", 0.7 + (5 / 6) * 0.2),
        ("abcd", "abcd efgh", 0.7 + (4 / 9) * 0.2),
    ],
)
def test_estimate_translation_confidence(original: str, translated: str | None, expected: float) -> None:
    assert StringUtils.estimate_translation_confidence(original, translated) == pytest.approx(expected)


def test_confidence_never_exceeds_cap() -> None:
    assert StringUtils.estimate_translation_confidence("Hello", "Hallo") == pytest.approx(0.9)
