"""
Unit tests for settings loading and the command line.
"""

import logging

import pytest

from conftest import PDF_BYTES
from resume_ingest import cli
from resume_ingest.config import ExtractionSettings, PipelineSettings, RecognitionSettings
from resume_ingest.pipeline import PipelineOutcome


@pytest.mark.unit
class TestSettings:
    def test_defaults(self):
        extraction = ExtractionSettings()
        recognition = RecognitionSettings()

        assert extraction.engine_order[0] == "pymupdf"
        assert extraction.min_chars_per_page == 50
        assert extraction.min_meaningful_ratio == pytest.approx(0.3)
        assert recognition.scale == pytest.approx(1.5)
        assert recognition.fast_scale == pytest.approx(1.0)
        assert recognition.max_concurrent_pages == 1

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("RECOGNITION_LANGUAGE", "fra")
        monkeypatch.setenv("PIPELINE_STRATEGY", "hybrid")

        assert RecognitionSettings().language == "fra"
        assert PipelineSettings().strategy == "hybrid"

    def test_init_kwargs_win_over_env(self, monkeypatch):
        monkeypatch.setenv("EXTRACTION_MIN_CHARS_PER_PAGE", "10")
        assert ExtractionSettings(min_chars_per_page=75).min_chars_per_page == 75


@pytest.mark.unit
class TestParser:
    def test_parse_options(self):
        args = cli.build_parser().parse_args(
            [
                "parse",
                "cv.pdf",
                "--strategy",
                "hybrid",
                "--engine",
                "pdfminer",
                "--engine",
                "pdfplumber",
                "--scale",
                "2",
                "--timeout",
                "30",
                "--store",
            ]
        )

        assert args.command == "parse"
        assert args.strategy == "hybrid"
        assert args.engine == ["pdfminer", "pdfplumber"]
        assert args.scale == 2.0
        assert args.timeout == 30.0
        assert args.store is True
        assert args.fast is False

    def test_unknown_strategy_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["parse", "cv.pdf", "--strategy", "fancy"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo the handlers setup_logging installs on the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    monkeypatch.setenv("PIPELINE_DB_PATH", str(tmp_path / "resumes.db"))
    monkeypatch.setenv("PIPELINE_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("PIPELINE_OUTPUT_DIR", str(tmp_path / "transcripts"))
    pdf = tmp_path / "jane_smith.pdf"
    pdf.write_bytes(PDF_BYTES)
    return pdf


def fake_ingest(outcome: PipelineOutcome):
    async def _ingest(args, strategy, timeout, extraction, recognition):
        return outcome

    return _ingest


@pytest.mark.unit
class TestMain:
    def test_parse_prints_transcript(self, isolated, monkeypatch, capsys):
        outcome = PipelineOutcome(success=True, text="Jane Smith", final_engine="pymupdf")
        monkeypatch.setattr(cli, "_ingest", fake_ingest(outcome))

        assert cli.main(["parse", str(isolated)]) == cli.EXIT_OK
        assert "Jane Smith" in capsys.readouterr().out

    def test_parse_failure_exit_code(self, isolated, monkeypatch, capsys):
        outcome = PipelineOutcome(success=False, error="timeout after 1.0s")
        monkeypatch.setattr(cli, "_ingest", fake_ingest(outcome))

        assert cli.main(["parse", str(isolated)]) == cli.EXIT_FAILURE
        assert "timeout" in capsys.readouterr().err

    def test_store_then_duplicate(self, isolated, monkeypatch, capsys):
        outcome = PipelineOutcome(success=True, text="Jane Smith", final_engine="pymupdf")
        monkeypatch.setattr(cli, "_ingest", fake_ingest(outcome))

        assert cli.main(["parse", str(isolated), "--store"]) == cli.EXIT_OK
        assert cli.main(["parse", str(isolated), "--store"]) == cli.EXIT_DUPLICATE

        capsys.readouterr()
        assert cli.main(["list"]) == cli.EXIT_OK
        assert "jane_smith.pdf" in capsys.readouterr().out

        assert cli.main(["show", "1"]) == cli.EXIT_OK
        assert capsys.readouterr().out.strip() == "Jane Smith"

        assert cli.main(["delete", "1"]) == cli.EXIT_OK
        assert cli.main(["show", "1"]) == cli.EXIT_FAILURE

    def test_save_writes_transcript(self, isolated, monkeypatch, tmp_path):
        outcome = PipelineOutcome(success=True, text="Jane Smith", final_engine="pymupdf")
        monkeypatch.setattr(cli, "_ingest", fake_ingest(outcome))

        assert cli.main(["parse", str(isolated), "--save"]) == cli.EXIT_OK
        assert (tmp_path / "transcripts" / "jane_smith.md").exists()

    def test_json_summary(self, isolated, monkeypatch, capsys):
        import json

        outcome = PipelineOutcome(
            success=True, text="Jane Smith", final_engine="pymupdf", strategy="smart"
        )
        monkeypatch.setattr(cli, "_ingest", fake_ingest(outcome))

        assert cli.main(["parse", str(isolated), "--json"]) == cli.EXIT_OK
        summary = json.loads(capsys.readouterr().out)
        assert summary["final_engine"] == "pymupdf"
        assert summary["char_count"] == 10
