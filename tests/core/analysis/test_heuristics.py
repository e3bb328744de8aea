from __future__ import annotations

import pytest

from core.analysis.heuristics import INTENSIFIER_BONUS, EmotionHeuristic


@pytest.fixture
def heuristic() -> EmotionHeuristic:
    return EmotionHeuristic("fr")


def test_french_keywords(heuristic: EmotionHeuristic) -> None:
    assert heuristic.score("Je suis super content !", "fr") == {"joy": 2.0}


def test_intensifier_boosts_only_matched_emotions(heuristic: EmotionHeuristic) -> None:
    scores: dict[str, float] = heuristic.score("Je suis vraiment triste", "fr")

    assert scores == {"sadness": 1.0 + INTENSIFIER_BONUS}


def test_intensifier_alone_scores_nothing(heuristic: EmotionHeuristic) -> None:
    assert heuristic.score("C'est vraiment très loin", "fr") == {}


def test_case_and_elision_are_normalized(heuristic: EmotionHeuristic) -> None:
    scores: dict[str, float] = heuristic.score("C'est GÉNIAL, d'excellent travail", "fr")

    assert scores == {"joy": 2.0}


def test_language_region_suffix_is_ignored(heuristic: EmotionHeuristic) -> None:
    assert heuristic.score("I am so happy", "en-US") == {"joy": 1.0 + INTENSIFIER_BONUS}


def test_unknown_language_uses_default_lexicon(heuristic: EmotionHeuristic) -> None:
    assert heuristic.supports("ja") is False
    assert heuristic.score("triste", "ja") == {"sadness": 1.0}


def test_emojis_add_to_keyword_scores(heuristic: EmotionHeuristic) -> None:
    scores: dict[str, float] = heuristic.score("Trop content 😂😂", "fr")

    assert scores["joy"] == pytest.approx(1.0 + INTENSIFIER_BONUS + 2.0)


def test_emoji_only_text(heuristic: EmotionHeuristic) -> None:
    assert heuristic.score("😢", "fr") == {"sadness": 1.0}


def test_no_cue_returns_empty(heuristic: EmotionHeuristic) -> None:
    assert heuristic.score("Le train part à midi", "fr") == {}
