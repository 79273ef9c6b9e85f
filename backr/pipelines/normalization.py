"""Text normalization utilities for entity descriptions.

Descriptions are compared after lowercasing and splitting on non-word runs;
nothing else is stripped so vocabulary terms embedded in URLs or hyphenated
words still count.
"""
from __future__ import annotations

import re
import unicodedata

_NON_WORD = re.compile(r"\W+")


def normalize_text(text: str | None) -> str:
    """Lowercase and NFC-normalize text for keyword comparison.

    Returns an empty string for None or blank input.
    """
    if not text or not text.strip():
        return ""

    # Composed form so "é" typed two ways compares equal
    text = unicodedata.normalize("NFC", text)
    return text.lower()


def tokenize(text: str, *, min_length: int = 3) -> list[str]:
    """Split normalized text on non-word character runs.

    Args:
        text: Text already passed through normalize_text
        min_length: Shortest fragment kept (shorter fragments are dropped)

    Returns:
        Word fragments in their original order, duplicates included
    """
    return [w for w in _NON_WORD.split(text) if len(w) >= min_length]
