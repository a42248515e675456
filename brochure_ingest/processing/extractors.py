"""Extraction boundary: anything that turns a chunk into page records."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Protocol

from ..catalog import ChunkExtraction
from ..pages.chunking import DocumentChunk
from ..pages.storage import discover_chunk_files, load_chunk_extraction

logger = logging.getLogger(__name__)


class ChunkExtractionError(RuntimeError):
    """Raised when a chunk cannot be turned into page records."""


class ChunkExtractor(Protocol):
    async def extract(self, chunk: DocumentChunk) -> ChunkExtraction:
        ...


class JsonReplayExtractor:
    """Replays extraction output previously stored as JSON files.

    Each file under ``records_dir`` becomes one chunk; ``discover_chunks``
    returns them ordered by source document and chunk index.
    """

    def __init__(self, records_dir: Path) -> None:
        self._records_dir = Path(records_dir)
        self._cache: Dict[str, ChunkExtraction] = {}

    def discover_chunks(self) -> List[DocumentChunk]:
        """List stored chunks without failing on unreadable files.

        Files that cannot be parsed still become chunks named after their
        path, so the failure surfaces from ``extract`` as a per-chunk error.
        """

        chunks: List[DocumentChunk] = []
        for path in discover_chunk_files(self._records_dir):
            key = str(path.resolve())
            try:
                extraction = load_chunk_extraction(path)
            except (OSError, ValueError) as exc:
                logger.warning("Skipping unreadable chunk file %s: %s", path, exc)
                chunks.append(
                    DocumentChunk(
                        source_document=path.relative_to(self._records_dir).as_posix(),
                        chunk_index=0,
                        page_start=0,
                        page_end=0,
                        path=key,
                    )
                )
                continue
            self._cache[key] = extraction
            chunks.append(
                DocumentChunk(
                    source_document=extraction.source_document,
                    chunk_index=extraction.chunk_index,
                    page_start=extraction.page_start,
                    page_end=extraction.page_end,
                    path=key,
                )
            )
        chunks.sort(key=lambda chunk: (chunk.source_document, chunk.chunk_index, chunk.page_start))
        logger.info("Discovered %d stored chunk(s) under %s", len(chunks), self._records_dir)
        return chunks

    async def extract(self, chunk: DocumentChunk) -> ChunkExtraction:
        if not chunk.path:
            raise ChunkExtractionError(f"Chunk {chunk.label} has no stored extraction")
        cached = self._cache.get(chunk.path)
        if cached is not None:
            return cached
        try:
            return await asyncio.to_thread(load_chunk_extraction, Path(chunk.path))
        except (OSError, ValueError) as exc:
            raise ChunkExtractionError(f"Chunk {chunk.label}: {exc}") from exc


__all__ = ["ChunkExtractionError", "ChunkExtractor", "JsonReplayExtractor"]
