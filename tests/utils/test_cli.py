from rich.console import Console

from brochure_ingest.config import DEFAULT_BATCH_SIZE, DEFAULT_RECORDS_DIR
from brochure_ingest.utils.cli import (
    DEFAULT_THEME,
    build_main_cli_parser,
    build_result_renderable,
    emit_plain_result,
    format_progress_line,
    stage_style,
    temporal_ui_url,
    workflow_history_url,
)


def _result() -> dict:
    return {
        "success": True,
        "summary": {"total_pages": 12, "total_documents": 1, "total_units": 2},
        "assignment": {"total_pages": 12, "total_documents": 1},
        "catalog": {
            "project_name": "Marina Heights",
            "developer": "Acme Developments",
            "description": "Waterfront living.",
            "units": [
                {"type_name": "A-1B-A.1", "category": "1BR", "bedrooms": 1, "area": 750.0, "floor_plan_images": ["a.jpg"]},
            ],
        },
        "errors": [],
        "warnings": ["No bulk unit matched B-2BM-A.1"],
        "stored": {"assignment": "output/records.assignment.json"},
        "progress": [{"stage": "complete", "message": "Done", "progress": 100}],
    }


def test_format_progress_line() -> None:
    assert format_progress_line({"stage": "mapping", "message": "Chunk 1/2", "progress": 42}) == "[mapping  42.0%] Chunk 1/2"
    assert format_progress_line({"progress": "bad"}) == "[progress   0.0%]"


def test_stage_style_falls_back_to_accent() -> None:
    assert stage_style("COMPLETE") == DEFAULT_THEME.success
    assert stage_style("unknown") == DEFAULT_THEME.accent


def test_temporal_urls() -> None:
    assert temporal_ui_url("127.0.0.1:7233", "default") == "http://127.0.0.1:8233/namespaces/default/workflows"
    assert temporal_ui_url("http://temporal.local:7233", "jobs") == "http://temporal.local:8233/namespaces/jobs/workflows"
    assert temporal_ui_url("", "default") is None
    assert workflow_history_url("http://h/ns", "wf") == "http://h/ns/wf"
    assert workflow_history_url("http://h/ns", "wf", "run") == "http://h/ns/wf/run/history"


def test_main_parser_defaults_and_flags() -> None:
    parser = build_main_cli_parser()

    defaults = parser.parse_args([])
    assert defaults.records_dir == DEFAULT_RECORDS_DIR
    assert defaults.batch_size == DEFAULT_BATCH_SIZE
    assert not defaults.temporal

    args = parser.parse_args(["--llm-disabled", "--batch-size", "3", "--temporal", "--plain"])
    assert args.llm_enabled is False
    assert args.batch_size == 3
    assert args.temporal and args.plain


def test_emit_plain_result(capsys) -> None:
    emit_plain_result({"status": "ok", "result": _result()})
    out = capsys.readouterr().out

    assert "[complete 100.0%] Done" in out
    assert '"total_units": 2' in out
    assert "assignment: output/records.assignment.json" in out


def test_emit_plain_result_error(capsys) -> None:
    emit_plain_result({"status": "error", "message": "records missing"})
    assert capsys.readouterr().out.strip() == "[error] records missing"


def test_result_renderable_lists_units() -> None:
    console = Console(record=True, width=120)
    console.print(build_result_renderable(_result()))
    text = console.export_text()

    assert "Marina Heights" in text
    assert "A-1B-A.1" in text
    assert "No bulk unit matched B-2BM-A.1" in text
