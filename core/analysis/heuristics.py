"""Local keyword and emoji emotion scoring used when no provider can be reached."""

from __future__ import annotations

import re
import unicodedata
from collections import Counter
from typing import TYPE_CHECKING, Final

from handlers.emoji import EmojiHandler
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["EMOTION_LEXICONS", "INTENSIFIERS", "EmotionHeuristic"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

EMOTION_LEXICONS: Final[dict[str, dict[str, tuple[str, ...]]]] = {
    "fr": {
        "joy": ("heureux", "heureuse", "joyeux", "joyeuse", "content", "contente", "génial", "super", "fantastique",
                "merveilleux", "excellent", "parfait", "ravi", "ravie", "cool"),
        "sadness": ("triste", "déprimé", "déprimée", "mal", "difficile", "dur", "peine", "chagrin", "pleure"),
        "anger": ("énervé", "énervée", "furieux", "furieuse", "colère", "agacé", "agacée", "irrité", "fou", "rage",
                  "déteste", "merde"),
        "fear": ("peur", "anxieux", "anxieuse", "inquiet", "inquiète", "stress", "angoisse", "nerveux", "effrayé"),
        "surprise": ("surpris", "surprise", "étonné", "étonnée", "wow", "incroyable", "choqué", "choquée"),
        "disgust": ("dégoûtant", "dégoût", "beurk", "écœurant", "répugnant"),
        "trust": ("confiance", "merci", "compte", "fiable", "sûr"),
        "anticipation": ("hâte", "impatient", "impatiente", "bientôt", "attends"),
    },
    "en": {
        "joy": ("happy", "glad", "joyful", "great", "awesome", "fantastic", "wonderful", "excellent", "perfect",
                "love", "cool"),
        "sadness": ("sad", "depressed", "unhappy", "hard", "difficult", "sorrow", "miserable", "cry"),
        "anger": ("angry", "furious", "mad", "annoyed", "irritated", "rage", "hate", "damn"),
        "fear": ("afraid", "scared", "anxious", "worried", "stress", "stressed", "nervous", "frightened"),
        "surprise": ("surprised", "amazed", "wow", "incredible", "shocked", "unbelievable"),
        "disgust": ("disgusting", "gross", "yuck", "revolting", "nasty"),
        "trust": ("trust", "thanks", "reliable", "count", "sure"),
        "anticipation": ("excited", "eager", "soon", "waiting", "forward"),
    },
    "es": {
        "joy": ("feliz", "contento", "contenta", "alegre", "genial", "fantástico", "maravilloso", "excelente",
                "perfecto"),
        "sadness": ("triste", "deprimido", "deprimida", "mal", "difícil", "duro", "pena", "dolor"),
        "anger": ("enfadado", "enfadada", "furioso", "furiosa", "enojado", "rabia", "odio", "irritado"),
        "fear": ("miedo", "ansioso", "ansiosa", "preocupado", "preocupada", "estrés", "nervioso", "asustado"),
        "surprise": ("sorprendido", "sorprendida", "increíble", "asombrado", "guau"),
        "disgust": ("asco", "asqueroso", "repugnante"),
        "trust": ("confianza", "gracias", "seguro"),
        "anticipation": ("ganas", "pronto", "espero"),
    },
    "de": {
        "joy": ("glücklich", "froh", "fröhlich", "toll", "super", "fantastisch", "wunderbar", "ausgezeichnet",
                "perfekt"),
        "sadness": ("traurig", "deprimiert", "schlecht", "schwer", "schwierig", "kummer", "leid"),
        "anger": ("wütend", "sauer", "verärgert", "genervt", "zorn", "hasse", "mist"),
        "fear": ("angst", "ängstlich", "besorgt", "stress", "nervös", "erschrocken"),
        "surprise": ("überrascht", "erstaunt", "wow", "unglaublich", "schockiert"),
        "disgust": ("ekelhaft", "eklig", "widerlich"),
        "trust": ("vertrauen", "danke", "sicher", "zuverlässig"),
        "anticipation": ("vorfreude", "gespannt", "bald", "warte"),
    },
    "it": {
        "joy": ("felice", "contento", "contenta", "allegro", "fantastico", "meraviglioso", "eccellente", "perfetto",
                "bello"),
        "sadness": ("triste", "depresso", "depressa", "male", "difficile", "dolore", "pena"),
        "anger": ("arrabbiato", "arrabbiata", "furioso", "furiosa", "irritato", "rabbia", "odio"),
        "fear": ("paura", "ansioso", "ansiosa", "preoccupato", "preoccupata", "stress", "nervoso", "spaventato"),
        "surprise": ("sorpreso", "sorpresa", "stupito", "incredibile", "wow", "scioccato"),
        "disgust": ("disgustoso", "schifo", "ripugnante"),
        "trust": ("fiducia", "grazie", "sicuro"),
        "anticipation": ("non vedo l'ora", "presto", "aspetto"),
    },
}

INTENSIFIERS: Final[dict[str, tuple[str, ...]]] = {
    "fr": ("très", "trop", "vraiment", "extrêmement", "incroyablement", "tellement", "profondément", "complètement",
           "totalement"),
    "en": ("very", "so", "really", "extremely", "incredibly", "totally", "deeply", "completely", "absolutely"),
    "es": ("muy", "tan", "realmente", "extremadamente", "increíblemente", "totalmente", "completamente"),
    "de": ("sehr", "so", "wirklich", "extrem", "unglaublich", "total", "völlig", "absolut"),
    "it": ("molto", "così", "davvero", "estremamente", "incredibilmente", "totalmente", "completamente"),
}

INTENSIFIER_BONUS: Final[float] = 0.5

_WORD_PATTERN: Final[re.Pattern[str]] = re.compile(r"\w+")


class EmotionHeuristic:
    """Scores emotions from keywords and emojis.

    Text is matched against the lexicon of its language; unknown languages fall back to the default
    language. Every intensifier in the text adds a bonus to each emotion that has at least one match.

    Args:
        default_language (str): Lexicon used when the text language has none.
        emoji_handler (EmojiHandler | None): Emoji scorer. A new handler is created when omitted.
    """

    def __init__(self, default_language: str = "fr", emoji_handler: EmojiHandler | None = None) -> None:
        self.default_language: str = default_language if default_language in EMOTION_LEXICONS else "fr"
        self.emoji_handler: EmojiHandler = emoji_handler or EmojiHandler()

    def supports(self, language: str | None) -> bool:
        return self._base_language(language) in EMOTION_LEXICONS

    def score(self, text: str, language: str | None = None) -> dict[str, float]:
        """Return raw emotion scores for ``text``.

        Args:
            text (str): Text to score.
            language (str | None): Language code such as 'fr' or 'en-US'.

        Returns:
            dict[str, float]: Unnormalized scores. Empty when no cue was found.
        """
        lang: str = self._base_language(language)
        if lang not in EMOTION_LEXICONS:
            lang = self.default_language

        scores: Counter[str] = Counter()
        plain: str = self._normalize(self.emoji_handler.strip_emojis(text))
        words: list[str] = _WORD_PATTERN.findall(plain)
        word_set: set[str] = set(words)

        for emotion, keywords in EMOTION_LEXICONS[lang].items():
            for keyword in keywords:
                if " " in keyword or "'" in keyword:
                    if keyword in plain:
                        scores[emotion] += 1
                elif keyword in word_set:
                    scores[emotion] += words.count(keyword)

        intensifiers: int = sum(1 for word in words if word in INTENSIFIERS.get(lang, ()))
        if intensifiers:
            for emotion in list(scores):
                scores[emotion] += intensifiers * INTENSIFIER_BONUS

        scores.update(self.emoji_handler.score_emotions(text))
        logger.debug("Heuristic emotion scores (%s): %s", lang, dict(scores))
        return {emotion: float(value) for emotion, value in scores.items()}

    @staticmethod
    def _normalize(text: str) -> str:
        return unicodedata.normalize("NFC", text).lower().replace("’", "'")

    @staticmethod
    def _base_language(language: str | None) -> str:
        return (language or "").split("-")[0].split("_")[0].lower()
