"""
Tests for the command-line entry point.
"""

from unittest.mock import MagicMock, patch

from DocScan.run_ocr import main
from DocScan.schemas import BatchReport, DocumentResult, PageResult


def _result():
    return DocumentResult(
        source_name="scan.png",
        pages=[PageResult(page_index=1, text="hello")],
        text="hello",
        total_pages=1,
        failed_count=0,
        failed_pages=[],
    )


class TestMain:
    def test_missing_file_exits_1(self, tmp_path):
        assert main([str(tmp_path / "nope.png")]) == 1

    def test_empty_directory_exits_1(self, tmp_path):
        assert main([str(tmp_path)]) == 1

    @patch("DocScan.run_ocr.export_text")
    @patch("DocScan.run_ocr.process_document")
    def test_single_file_writes_document(self, mock_process, mock_export, tmp_path):
        source = tmp_path / "scan.png"
        source.write_bytes(b"png")
        mock_process.return_value = _result()
        output = tmp_path / "out.docx"

        assert main([str(source), "--output", str(output), "--delay", "0"]) == 0

        mock_export.assert_called_once_with("hello", path=str(output))
        assert mock_process.call_args.kwargs["throttle"].interval == 0

    @patch("DocScan.run_ocr.process_document")
    def test_single_file_json(self, mock_process, tmp_path, capsys):
        source = tmp_path / "scan.png"
        source.write_bytes(b"png")
        mock_process.return_value = _result()

        assert main([str(source), "--json"]) == 0
        assert '"source_name": "scan.png"' in capsys.readouterr().out

    @patch("DocScan.run_ocr.BatchOrchestrator")
    def test_batch_writes_archive(self, mock_orchestrator_cls, tmp_path):
        (tmp_path / "a.png").write_bytes(b"a")
        (tmp_path / "b.pdf").write_bytes(b"b")
        orchestrator = MagicMock()
        orchestrator.run.return_value = BatchReport(
            total_items=2,
            completed_items=2,
            failed_items=0,
            pending_items=0,
            total_pages=2,
            failed_pages=0,
        )
        mock_orchestrator_cls.return_value = orchestrator
        archive = tmp_path / "out.zip"

        assert main([str(tmp_path), "--archive", str(archive)]) == 0

        enqueued = orchestrator.enqueue.call_args.args[0]
        assert [s.name for s in enqueued] == ["a.png", "b.pdf"]
        orchestrator.export_archive.assert_called_once_with(path=str(archive))

    @patch("DocScan.run_ocr.BatchOrchestrator")
    def test_batch_all_failed_exits_2(self, mock_orchestrator_cls, tmp_path):
        (tmp_path / "a.png").write_bytes(b"a")
        (tmp_path / "b.png").write_bytes(b"b")
        orchestrator = MagicMock()
        orchestrator.run.return_value = BatchReport(
            total_items=2,
            completed_items=0,
            failed_items=2,
            pending_items=0,
            total_pages=2,
            failed_pages=2,
        )
        mock_orchestrator_cls.return_value = orchestrator

        assert main([str(tmp_path / "a.png"), str(tmp_path / "b.png")]) == 2
        orchestrator.export_archive.assert_not_called()
