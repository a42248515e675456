"""Plan fixed-size page chunks and split brochure PDFs along them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from pypdf import PdfReader, PdfWriter

logger = logging.getLogger(__name__)


@dataclass
class ChunkingConfig:
    """Configuration controlling how many pages go into one chunk."""

    pages_per_chunk: int = 5

    def clamp(self) -> "ChunkingConfig":
        """Return a sanitized copy with a positive chunk size."""

        return ChunkingConfig(pages_per_chunk=max(self.pages_per_chunk, 1))


@dataclass
class DocumentChunk:
    """Contiguous, 1-based inclusive page range of one source document."""

    source_document: str
    chunk_index: int
    page_start: int
    page_end: int
    path: Optional[str] = None

    @property
    def page_count(self) -> int:
        return self.page_end - self.page_start + 1

    @property
    def label(self) -> str:
        if self.page_start <= 0:
            return f"{self.source_document}#{self.chunk_index}"
        return f"{self.source_document}#{self.chunk_index} (pages {self.page_start}-{self.page_end})"


def plan_page_chunks(
    source_document: str,
    total_pages: int,
    config: Optional[ChunkingConfig] = None,
) -> List[DocumentChunk]:
    """Return chunk descriptors covering ``total_pages`` pages in order."""

    cfg = (config or ChunkingConfig()).clamp()
    chunks: List[DocumentChunk] = []
    start = 1
    while start <= total_pages:
        end = min(start + cfg.pages_per_chunk - 1, total_pages)
        chunks.append(
            DocumentChunk(
                source_document=source_document,
                chunk_index=len(chunks),
                page_start=start,
                page_end=end,
            )
        )
        start = end + 1
    return chunks


def count_pdf_pages(pdf_path: Path) -> int:
    reader = PdfReader(str(pdf_path))
    return len(reader.pages)


def split_pdf_into_chunks(
    pdf_path: Path,
    output_dir: Path,
    config: Optional[ChunkingConfig] = None,
) -> List[DocumentChunk]:
    """Write one PDF per chunk into ``output_dir`` and return the descriptors."""

    cfg = (config or ChunkingConfig()).clamp()
    reader = PdfReader(str(pdf_path))
    source_document = pdf_path.name
    chunks = plan_page_chunks(source_document, len(reader.pages), cfg)

    output_dir.mkdir(parents=True, exist_ok=True)
    stem = pdf_path.stem or "document"
    for chunk in chunks:
        writer = PdfWriter()
        for index in range(chunk.page_start - 1, chunk.page_end):
            writer.add_page(reader.pages[index])
        target = output_dir / f"{stem}-chunk-{chunk.chunk_index + 1:04d}.pdf"
        with target.open("wb") as handle:
            writer.write(handle)
        chunk.path = str(target.resolve())

    logger.info(
        "Split %s into %d chunk(s) of up to %d page(s)",
        source_document,
        len(chunks),
        cfg.pages_per_chunk,
    )
    return chunks


__all__ = [
    "ChunkingConfig",
    "DocumentChunk",
    "count_pdf_pages",
    "plan_page_chunks",
    "split_pdf_into_chunks",
]
