"""knowbase retrieval: similarity-ranked passages for a query."""

from knowbase.rag.retriever import RelevantPassage, RetrieverConfig, retrieve

__all__ = ["RelevantPassage", "RetrieverConfig", "retrieve"]
