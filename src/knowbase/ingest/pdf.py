"""PDF text extraction via pypdf, plus cleanup before chunking."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import pypdf
from pypdf.errors import PyPdfError

from knowbase.errors import ValidationError

_INLINE_WS_RE = re.compile(r"[^\S\n]+")
_PAGE_NUMBER_RE = re.compile(r"\d+")


@dataclass
class PdfText:
    """Text of a PDF plus the metadata reported after an upload."""

    text: str
    page_count: int
    title: str | None = None
    author: str | None = None


def extract_pdf_text(path: Path | str) -> PdfText:
    """Extract all page text from the PDF at *path*.

    Pages are separated by a blank line so each page starts a new paragraph.
    Pages that yield no text (scanned images, etc.) are skipped. The title
    falls back to the file name when the document info has none.

    Raises:
        ValidationError: If pypdf cannot read the file.
    """
    try:
        reader = pypdf.PdfReader(str(path))
        parts: list[str] = []
        for page in reader.pages:
            page_text = (page.extract_text() or "").strip()
            if page_text:
                parts.append(page_text)
        metadata = reader.metadata
        title = metadata.title if metadata is not None else None
        author = metadata.author if metadata is not None else None
        page_count = len(reader.pages)
    except (PyPdfError, OSError, ValueError) as exc:
        raise ValidationError(f"Failed to extract text from PDF: {exc}") from exc

    return PdfText(
        text="\n\n".join(parts),
        page_count=page_count,
        title=title or Path(path).name,
        author=author or None,
    )


def clean_pdf_text(text: str) -> str:
    """Normalise extracted PDF text.

    - Runs of spaces/tabs collapse to one space; lines are trimmed.
    - Lines holding only a page number are dropped.
    - Wrapped lines inside a paragraph are joined with a space.
    - Paragraphs are separated by exactly one blank line.
    """
    paragraphs: list[str] = []
    current: list[str] = []
    for raw in text.splitlines():
        line = _INLINE_WS_RE.sub(" ", raw).strip()
        if _PAGE_NUMBER_RE.fullmatch(line):
            continue
        if line:
            current.append(line)
        elif current:
            paragraphs.append(" ".join(current))
            current = []
    if current:
        paragraphs.append(" ".join(current))
    return "\n\n".join(paragraphs)
