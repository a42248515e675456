from pathlib import Path

import pytest
from pypdf import PdfWriter

from brochure_ingest.app import main


def _write_pdf(path: Path, pages: int) -> None:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    with path.open("wb") as handle:
        writer.write(handle)


def test_split_pdf_command_writes_chunks(tmp_path: Path, capsys) -> None:
    source = tmp_path / "brochure.pdf"
    _write_pdf(source, 5)

    main(["--split-pdf", str(source), "--output-dir", str(tmp_path / "out"), "--pages-per-chunk", "2"])

    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0] == f"{source}: 5 page(s)"
    assert len(lines) == 4
    assert lines[-1].endswith("(pages 5-5)")
    assert sorted(path.name for path in (tmp_path / "out" / "chunks").iterdir()) == [
        "brochure-chunk-0001.pdf",
        "brochure-chunk-0002.pdf",
        "brochure-chunk-0003.pdf",
    ]


def test_split_pdf_command_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        main(["--split-pdf", str(tmp_path / "missing.pdf"), "--output-dir", str(tmp_path / "out")])
