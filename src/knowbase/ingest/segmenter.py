"""Text segmentation strategies used by the chunker.

The regex segmenter is a heuristic, not a language-aware tokenizer. The chunker
only depends on the ``SentenceSegmenter`` interface, so a linguistically-aware
splitter can replace it without touching the accumulation logic.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

# One or more consecutive sentence-terminal marks.
_SENTENCE_END_RE = re.compile(r"[.!?]+")

# A blank line, possibly containing whitespace.
_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")


class SentenceSegmenter(ABC):
    """Split a block of text into sentences."""

    @abstractmethod
    def segment(self, text: str) -> list[str]:
        """Return the non-empty, stripped sentences of *text* in order."""


class RegexSentenceSegmenter(SentenceSegmenter):
    """Split on runs of ``.``, ``!`` and ``?``; the marks themselves are dropped."""

    def segment(self, text: str) -> list[str]:
        pieces = (piece.strip() for piece in _SENTENCE_END_RE.split(text))
        return [piece for piece in pieces if piece]


def split_paragraphs(text: str) -> list[str]:
    """Split *text* on blank-line boundaries, dropping whitespace-only paragraphs."""
    return [p for p in _PARAGRAPH_BREAK_RE.split(text) if p.strip()]
