"""Domain models for the knowbase store."""

from __future__ import annotations

from dataclasses import dataclass

PDF_MEDIA_TYPE = "application/pdf"


@dataclass(frozen=True)
class Provenance:
    """Origin metadata for a document that came from an uploaded file."""

    file_name: str
    file_type: str
    file_size: str


@dataclass
class Document:
    id: str
    content: str
    file_name: str | None = None
    file_type: str | None = None
    file_size: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def provenance(self) -> Provenance | None:
        if self.file_name is None:
            return None
        return Provenance(
            file_name=self.file_name,
            file_type=self.file_type or "",
            file_size=self.file_size or "",
        )


@dataclass
class Chunk:
    document_id: str
    chunk_index: int
    text: str
    created_at: str | None = None
    rowid: int | None = None  # set after insert; None for unsaved chunks


@dataclass
class SimilarChunk:
    """A stored chunk scored against a query vector, joined with its document's provenance."""

    rowid: int
    document_id: str
    text: str
    similarity: float
    file_name: str | None = None
    file_type: str | None = None
