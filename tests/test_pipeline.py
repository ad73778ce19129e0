"""Tests for the scan driver."""
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from elblogs.config import Settings
from elblogs.errors import EnumerationError
from elblogs.parsers.elb import ELB_STATUS_CODE, TIMESTAMP, LineParseFailure, LogRecord
from elblogs.pipeline import ParsedLine, ScanSummary, process_files, scan


def _bad_status(line: str) -> str:
    return line.replace("200 200", "two-hundred 200", 1)


# ---------------------------------------------------------------------------
# ScanSummary
# ---------------------------------------------------------------------------

class TestScanSummary:
    def test_counts_successes_and_failures_separately(self, sample_line: str) -> None:
        from elblogs.parsers.elb import parse_line

        summary = ScanSummary()
        summary.add(parse_line(sample_line))
        summary.add(parse_line(""))
        summary.add(parse_line(_bad_status(sample_line)))
        assert summary.records == 1
        assert summary.failures == 2
        assert summary.lines == 3
        assert summary.error_fields[ELB_STATUS_CODE] == 2
        assert summary.error_fields[TIMESTAMP] == 1


# ---------------------------------------------------------------------------
# scan
# ---------------------------------------------------------------------------

class TestScan:
    def test_collects_records_and_failures(self, log_tree, elb_log_lines, sample_line) -> None:
        root = log_tree({
            "2015/08/15/a.log": elb_log_lines,
            "2015/08/16/b.log": [_bad_status(sample_line), "", sample_line],
        })
        result = scan(root)
        assert len(result.records) == 4
        assert len(result.failures) == 2
        assert all(isinstance(r, LogRecord) for r in result.records)
        assert all(isinstance(f, LineParseFailure) for f in result.failures)
        assert result.summary.records == 4
        assert result.summary.failures == 2
        assert result.summary.files_seen == 2
        assert result.summary.files_parsed == 2

    def test_records_follow_file_order(self, log_tree, elb_log_lines) -> None:
        root = log_tree({"b.log": elb_log_lines[1:], "a.log": elb_log_lines[:1]})
        result = scan(root)
        assert [r.sent_bytes for r in result.records] == [7582, 128, 0]

    def test_failure_keeps_raw_line(self, log_tree, sample_line) -> None:
        bad = _bad_status(sample_line)
        result = scan(log_tree({"a.log": [bad]}))
        assert result.failures[0].raw_line == bad
        assert result.failures[0].field_names == [ELB_STATUS_CODE]

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(EnumerationError):
            scan(tmp_path / "missing")

    def test_empty_tree(self, tmp_path: Path) -> None:
        result = scan(tmp_path)
        assert result.records == []
        assert result.summary.lines == 0

    def test_read_error_skips_rest_of_file_only(self, log_tree, elb_log_lines, caplog) -> None:
        root = log_tree({"b.log": elb_log_lines})
        (root / "a.log").write_bytes(b"\xff\xfe\xfd\n")
        with caplog.at_level(logging.WARNING, logger="elblogs.pipeline"):
            result = scan(root)
        assert result.summary.read_errors == 1
        assert result.summary.records == len(elb_log_lines)
        assert "Stopped reading" in caplog.text

    def test_lines_before_read_error_are_counted(self, tmp_path: Path, elb_log_lines) -> None:
        root = tmp_path / "logs"
        root.mkdir()
        good = "".join(line + "\n" for line in elb_log_lines).encode("utf-8")
        (root / "a.log").write_bytes(good + b"\xff\n" + good)
        result = scan(root)
        assert result.summary.records == len(elb_log_lines)
        assert result.summary.read_errors == 1

    def test_encoding_setting(self, tmp_path: Path, sample_line: str) -> None:
        root = tmp_path / "logs"
        root.mkdir()
        (root / "a.log").write_bytes(sample_line.replace("elb-name", "caf\xe9").encode("latin-1") + b"\n")
        result = scan(root, settings=Settings(encoding="latin-1"))
        assert result.records[0].elb_name == "café"

    def test_quoted_request_setting(self, log_tree) -> None:
        line = (
            "2015-08-15T23:43:05.302180Z elb 10.0.0.1:1 10.0.0.2:2 0 0 0 200 200 0 0 "
            '"GET http://h/a b HTTP/1.1"'
        )
        root = log_tree({"a.log": [line]})
        assert scan(root).records[0].request_url == "http://h/a"
        quoted = scan(root, settings=Settings(quoted_request=True))
        assert quoted.records[0].request_url == "http://h/a b"


# ---------------------------------------------------------------------------
# process_files
# ---------------------------------------------------------------------------

class TestProcessFiles:
    def test_yields_line_numbers(self, tmp_log_file, sample_line) -> None:
        path = tmp_log_file([sample_line, "", sample_line])
        parsed = list(process_files([path]))
        assert [p.line_number for p in parsed] == [1, 2, 3]
        assert all(isinstance(p, ParsedLine) and p.path == path for p in parsed)
        assert isinstance(parsed[1].outcome, LineParseFailure)

    def test_unopenable_file_is_logged_and_skipped(self, tmp_path, tmp_log_file, sample_line, caplog) -> None:
        good = tmp_log_file([sample_line])
        summary = ScanSummary()
        with caplog.at_level(logging.ERROR, logger="elblogs.pipeline"):
            parsed = list(process_files([tmp_path / "gone.log", good], summary=summary))
        assert len(parsed) == 1
        assert summary.files_skipped == 1
        assert summary.files_parsed == 1
        assert "Cannot open" in caplog.text

    def test_directories_are_skipped(self, tmp_path, tmp_log_file, sample_line) -> None:
        good = tmp_log_file([sample_line])
        summary = ScanSummary()
        parsed = list(process_files([tmp_path, good], summary=summary))
        assert len(parsed) == 1
        assert summary.files_seen == 1
        assert summary.files_skipped == 0

    def test_debug_progress_messages(self, tmp_log_file, sample_line, caplog) -> None:
        path = tmp_log_file([sample_line, "junk"])
        with caplog.at_level(logging.DEBUG, logger="elblogs.pipeline"):
            list(process_files([path], settings=Settings(debug=True)))
        assert f"Processing file {path}." in caplog.text
        assert f"Found 1 records in file {path}." in caplog.text

    def test_no_progress_messages_without_debug(self, tmp_log_file, sample_line, caplog) -> None:
        path = tmp_log_file([sample_line])
        with caplog.at_level(logging.DEBUG, logger="elblogs.pipeline"):
            list(process_files([path], settings=Settings(debug=False)))
        assert "Processing file" not in caplog.text

    def test_custom_parser(self, tmp_log_file, sample_line) -> None:
        class _CountingParser:
            name = "counting"

            def __init__(self) -> None:
                self.calls = 0

            def parse_line(self, line: str):
                from elblogs.parsers.elb import parse_line

                self.calls += 1
                return parse_line(line)

        parser = _CountingParser()
        path = tmp_log_file([sample_line, sample_line])
        list(process_files([path], parser=parser))
        assert parser.calls == 2
