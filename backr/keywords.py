"""Keyword extraction for collaboration matching.

Turns a free-text description into a set of comparable terms: curated
vocabulary hits plus long, non-stopword words from the text itself.
"""
from __future__ import annotations

import logging
from typing import Iterable

from backr.keyword_vocabulary import COLLABORATION_KEYWORDS, STOPWORDS
from backr.pipelines.normalization import normalize_text, tokenize

logger = logging.getLogger(__name__)

# Fragments of this length or shorter are discarded before anything else
MIN_FRAGMENT_LENGTH = 3
# Free words must be strictly longer than this to count as significant
SIGNIFICANT_WORD_LENGTH = 5


class KeywordExtractor:
    """Extracts a canonical keyword set from entity descriptions.

    Supports:
    - Curated vocabulary matching (substring, case-insensitive)
    - Significant free words (length > 5, not a stopword)
    """

    def __init__(
        self,
        vocabulary: Iterable[str] | None = None,
        stopwords: Iterable[str] | None = None,
    ) -> None:
        """Initialize keyword extractor.

        Args:
            vocabulary: Curated terms. If None, loads the default vocabulary.
            stopwords: Words never treated as significant. If None, loads defaults.
        """
        self.vocabulary = [t.lower() for t in (vocabulary if vocabulary is not None else COLLABORATION_KEYWORDS)]
        self.stopwords = frozenset(w.lower() for w in (stopwords if stopwords is not None else STOPWORDS))

        logger.debug(
            f"Loaded {len(self.vocabulary)} vocabulary terms and {len(self.stopwords)} stopwords"
        )

    def extract(self, text: str | None) -> set[str]:
        """Extract keywords from text.

        Args:
            text: Description text, may be None

        Returns:
            Set of vocabulary hits and significant words; empty for blank input
        """
        normalized = normalize_text(text)
        if not normalized:
            return set()

        found = {term for term in self.vocabulary if term in normalized}

        words = tokenize(normalized, min_length=MIN_FRAGMENT_LENGTH)
        significant = {
            w for w in words
            if len(w) > SIGNIFICANT_WORD_LENGTH and w not in self.stopwords
        }

        return found | significant


_default_extractor: KeywordExtractor | None = None


def get_keyword_extractor() -> KeywordExtractor:
    """Get or create the shared default extractor (read-only after creation)."""
    global _default_extractor
    if _default_extractor is None:
        _default_extractor = KeywordExtractor()
    return _default_extractor


def extract_keywords(text: str | None) -> set[str]:
    """Extract keywords with the default vocabulary and stopwords."""
    return get_keyword_extractor().extract(text)
