"""knowbase ingest pipeline: segmenter, chunker, embedders, pipeline."""

from knowbase.ingest.chunker import DEFAULT_MAX_UNIT_SIZE, TextChunker, chunk
from knowbase.ingest.embedder import BaseEmbedder, LiteLLMEmbedder
from knowbase.ingest.pipeline import IngestResult, ingest, ingest_document
from knowbase.ingest.segmenter import RegexSentenceSegmenter, SentenceSegmenter

__all__ = [
    "DEFAULT_MAX_UNIT_SIZE",
    "BaseEmbedder",
    "IngestResult",
    "LiteLLMEmbedder",
    "RegexSentenceSegmenter",
    "SentenceSegmenter",
    "TextChunker",
    "chunk",
    "ingest",
    "ingest_document",
]
