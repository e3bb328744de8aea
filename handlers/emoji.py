"""Emoji detection and emoji-to-emotion mapping for the local emotion heuristic.

Since version 2.14.1 the emoji module loads its data from a separate file on demand. When freezing
the application, that data file must be shipped alongside the executable.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Final

import emoji
from packaging.version import Version

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging


__all__: list[str] = ["EmojiHandler"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

if Version(emoji.__version__) < Version("2.14.1"):
    logger.warning(
        "The version of the emoji module currently in use is %s. Version 2.14.1 or later is required.",
        emoji.__version__,
    )

# Explicit emoji characters per emotion, checked before the name keywords.
EMOJI_EMOTIONS: Final[dict[str, str]] = {
    "😊": "joy",
    "😄": "joy",
    "😁": "joy",
    "😂": "joy",
    "🥰": "joy",
    "🎉": "joy",
    "❤️": "joy",
    "❤": "joy",
    "😢": "sadness",
    "😭": "sadness",
    "💔": "sadness",
    "😞": "sadness",
    "😠": "anger",
    "😡": "anger",
    "🤬": "anger",
    "😰": "fear",
    "😱": "fear",
    "😨": "fear",
    "😲": "surprise",
    "😮": "surprise",
    "🤯": "surprise",
    "🤢": "disgust",
    "🤮": "disgust",
    "🤝": "trust",
    "🙏": "trust",
    "🤞": "anticipation",
    "⏳": "anticipation",
}

# Keywords looked up in the English CLDR name of emojis missing from the table above.
NAME_KEYWORDS: Final[tuple[tuple[str, str], ...]] = (
    ("crying", "sadness"),
    ("sad", "sadness"),
    ("broken_heart", "sadness"),
    ("angry", "anger"),
    ("pouting", "anger"),
    ("fearful", "fear"),
    ("anxious", "fear"),
    ("screaming", "fear"),
    ("astonished", "surprise"),
    ("open_mouth", "surprise"),
    ("hushed", "surprise"),
    ("nauseated", "disgust"),
    ("vomiting", "disgust"),
    ("handshake", "trust"),
    ("folded_hands", "trust"),
    ("crossed_fingers", "anticipation"),
    ("smiling", "joy"),
    ("grinning", "joy"),
    ("laughing", "joy"),
    ("heart", "joy"),
    ("party", "joy"),
)


class EmojiHandler:
    """Finds emojis in text and maps them to basic emotions."""

    def extract_emojis(self, text: str) -> list[str]:
        """Return the emojis of ``text`` in order of appearance.

        Args:
            text (str): Text to scan.

        Returns:
            list[str]: Emoji characters, including multi-codepoint sequences.
        """
        return [match["emoji"] for match in emoji.emoji_list(text)]

    def is_purely_emoji(self, text: str) -> bool:
        """Check whether the text consists only of emojis, ignoring whitespace."""
        return emoji.purely_emoji("".join(text.split()))

    def strip_emojis(self, text: str) -> str:
        """Replace every emoji with a space so that word matching is not disturbed."""
        return emoji.replace_emoji(text, replace=" ")

    def emotion_of(self, emoji_char: str) -> str | None:
        """Map a single emoji to an emotion label.

        The explicit table wins. Otherwise the emoji's English name is searched for known keywords.

        Args:
            emoji_char (str): A single emoji.

        Returns:
            str | None: Emotion label, or None when the emoji carries no known emotion.
        """
        if emoji_char in EMOJI_EMOTIONS:
            return EMOJI_EMOTIONS[emoji_char]

        name: str = emoji.demojize(emoji_char, language="en").strip(":")
        for keyword, label in NAME_KEYWORDS:
            if keyword in name:
                return label
        return None

    def score_emotions(self, text: str) -> Counter[str]:
        """Count emotion cues carried by the emojis of ``text``.

        Args:
            text (str): Text to scan.

        Returns:
            Counter[str]: Number of emojis per emotion label.
        """
        scores: Counter[str] = Counter()
        for emoji_char in self.extract_emojis(text):
            label: str | None = self.emotion_of(emoji_char)
            if label is not None:
                scores[label] += 1
        if scores:
            logger.debug("Emoji emotion cues: %s", dict(scores))
        return scores
