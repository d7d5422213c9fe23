"""Creature-name extraction from recognized OCR lines.

Encounter badges render the creature name next to a level marker
("Lv.12 Pidgey"). Only lines carrying the marker are considered, and
words are kept when they look like a title-cased name.

Example:
    >>> from src.interfaces.ocr import TextLine
    >>> filter_candidates([TextLine(["Lv.12", "Pidgey", "appeared"])])
    ['pidgey']
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from src.interfaces.ocr import TextLine

LEVEL_MARKER = "Lv."
BANNED_WORDS: tuple[str, ...] = ("lv.", "llv.", "alpha")
MERGE_ARTIFACT = "llv."
MIN_NAME_LENGTH = 4

DIGIT_OR_SPACE = re.compile(r"[0-9\s]")


def _is_candidate(word: str, banned_words: Sequence[str], min_length: int) -> bool:
    return (
        len(word) >= min_length
        and not DIGIT_OR_SPACE.search(word)
        and not any(banned in word for banned in banned_words)
    )


def filter_candidates(
    lines: Iterable[TextLine],
    *,
    marker: str = LEVEL_MARKER,
    banned_words: Sequence[str] = BANNED_WORDS,
    strip_fragment: str = MERGE_ARTIFACT,
    min_length: int = MIN_NAME_LENGTH,
) -> list[str]:
    """Extract lowercase creature-name tokens from OCR lines.

    Steps, in order: keep lines containing the marker, keep words starting
    with an uppercase letter, lowercase them, drop words shorter than
    ``min_length`` or containing digits, whitespace or a banned substring,
    then strip ``strip_fragment`` from what survives.

    Args:
        lines: Recognized text lines of one frame.
        marker: Substring a line must contain to be considered.
        banned_words: Substrings that reject a lowercased word.
        strip_fragment: Substring removed from accepted words.
        min_length: Minimum accepted word length.

    Returns:
        Tokens in encounter order. Duplicates are kept.
    """
    names: list[str] = []
    for line in lines:
        if marker not in str(line):
            continue
        for word in line.words():
            if not word or not word[0].isupper():
                continue
            lowered = word.lower()
            if _is_candidate(lowered, banned_words, min_length):
                names.append(lowered.replace(strip_fragment, ""))
    return names
