from __future__ import annotations

from pathlib import Path

from pypdf import PdfWriter

from brochure_ingest.pages.chunking import (
    ChunkingConfig,
    count_pdf_pages,
    plan_page_chunks,
    split_pdf_into_chunks,
)


def test_plan_page_chunks_covers_every_page() -> None:
    chunks = plan_page_chunks("doc.pdf", 12, ChunkingConfig(pages_per_chunk=5))

    assert [(chunk.page_start, chunk.page_end) for chunk in chunks] == [(1, 5), (6, 10), (11, 12)]
    assert [chunk.chunk_index for chunk in chunks] == [0, 1, 2]
    assert chunks[-1].page_count == 2


def test_plan_page_chunks_clamps_chunk_size() -> None:
    chunks = plan_page_chunks("doc.pdf", 2, ChunkingConfig(pages_per_chunk=0))
    assert [(chunk.page_start, chunk.page_end) for chunk in chunks] == [(1, 1), (2, 2)]
    assert plan_page_chunks("doc.pdf", 0) == []


def test_split_pdf_into_chunks_writes_chunk_files(tmp_path: Path) -> None:
    source = tmp_path / "brochure.pdf"
    writer = PdfWriter()
    for _ in range(7):
        writer.add_blank_page(width=200, height=200)
    with source.open("wb") as handle:
        writer.write(handle)

    chunks = split_pdf_into_chunks(source, tmp_path / "chunks", ChunkingConfig(pages_per_chunk=3))

    assert len(chunks) == 3
    assert all(chunk.source_document == "brochure.pdf" for chunk in chunks)
    assert Path(chunks[0].path).name == "brochure-chunk-0001.pdf"
    assert [count_pdf_pages(Path(chunk.path)) for chunk in chunks] == [3, 3, 1]
