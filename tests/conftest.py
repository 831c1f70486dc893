"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from knowbase.db.connection import Database
from knowbase.db.repository import Repository
from knowbase.db.vectors import ensure_vec_table
from knowbase.ingest.embedder import BaseEmbedder

DIMS = 3


class FakeEmbedder(BaseEmbedder):
    """Deterministic embedder for tests.

    Texts found in *vectors* get that vector; anything else gets a fixed
    vector derived from the text length. Every provider call is recorded.
    """

    def __init__(self, vectors: dict[str, list[float]] | None = None, dimensions: int = DIMS) -> None:
        super().__init__(dimensions)
        self.vectors = vectors or {}
        self.calls: list[list[str]] = []

    def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vectors.get(t) or self._fallback(t) for t in texts]

    def _fallback(self, text: str) -> list[float]:
        n = len(text)
        return [1.0, float(n % 7) + 1.0, float(n % 5) + 1.0][: self.dimensions]


class FailingEmbedder(BaseEmbedder):
    """Embedder whose provider call always raises *exc*."""

    def __init__(self, exc: Exception, dimensions: int = DIMS) -> None:
        super().__init__(dimensions)
        self.exc = exc

    def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        raise self.exc


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    conn = Database(tmp_path / ".knowbase.db", migrate=True).connect()
    yield conn
    conn.close()


@pytest.fixture
def vec_table(tmp_db):
    return ensure_vec_table(tmp_db, "test_model", DIMS)


@pytest.fixture
def repo(tmp_db, vec_table):
    return Repository(tmp_db, vec_table)


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point config loading at empty tmp locations and use 3-dim embeddings."""
    monkeypatch.setattr("knowbase.config._GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.yaml")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("KNOWBASE_EMBEDDING_MODEL", raising=False)
    monkeypatch.setenv("KNOWBASE_EMBEDDING_DIMENSIONS", str(DIMS))
    return tmp_path


@pytest.fixture
def make_embedder():
    """Return the FakeEmbedder class for tests that need custom vectors."""
    return FakeEmbedder


@pytest.fixture
def make_failing_embedder():
    return FailingEmbedder
