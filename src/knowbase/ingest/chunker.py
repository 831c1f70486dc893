"""Sentence/paragraph chunker: splits raw text into retrieval-sized passages.

Strategy:
- Short text (``len <= max_unit_size`` after trimming): every sentence is its
  own chunk.
- Long text: split into paragraphs on blank lines, then greedily join each
  paragraph's sentences with ``". "`` until the next sentence would push the
  chunk past ``max_unit_size``. Chunks never span paragraphs.
- A single sentence longer than ``max_unit_size`` is emitted whole; the size is
  a soft target, not a hard cap.
"""

from __future__ import annotations

from knowbase.ingest.segmenter import (
    RegexSentenceSegmenter,
    SentenceSegmenter,
    split_paragraphs,
)

DEFAULT_MAX_UNIT_SIZE = 1000

_JOINER = ". "


class TextChunker:
    """Deterministic, side-effect free text chunker.

    Args:
        max_unit_size: Soft upper bound on chunk length, in characters.
        segmenter: Sentence segmentation strategy (regex heuristic by default).
    """

    def __init__(
        self,
        max_unit_size: int = DEFAULT_MAX_UNIT_SIZE,
        segmenter: SentenceSegmenter | None = None,
    ) -> None:
        if max_unit_size < 1:
            raise ValueError(f"max_unit_size must be >= 1, got {max_unit_size}")
        self.max_unit_size = max_unit_size
        self.segmenter = segmenter or RegexSentenceSegmenter()

    def chunk(self, text: str) -> list[str]:
        """Split *text* into ordered, non-empty chunks."""
        text = text.strip()
        if not text:
            return []

        if len(text) <= self.max_unit_size:
            return self.segmenter.segment(text)

        chunks: list[str] = []
        for paragraph in split_paragraphs(text):
            chunks.extend(self._accumulate(self.segmenter.segment(paragraph)))
        return chunks

    def _accumulate(self, sentences: list[str]) -> list[str]:
        """Greedily merge one paragraph's sentences into bounded chunks."""
        chunks: list[str] = []
        current = ""
        for sentence in sentences:
            if current and len(current) + len(_JOINER) + len(sentence) > self.max_unit_size:
                chunks.append(current)
                current = sentence
            else:
                current = f"{current}{_JOINER}{sentence}" if current else sentence
        if current:
            chunks.append(current)
        return chunks


def chunk(text: str, max_unit_size: int = DEFAULT_MAX_UNIT_SIZE) -> list[str]:
    """Split *text* with the default regex segmenter.

    Example:
        chunk("Hello world. This is a test!") -> ["Hello world", "This is a test"]
    """
    return TextChunker(max_unit_size=max_unit_size).chunk(text)
