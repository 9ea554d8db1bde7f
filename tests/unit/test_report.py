"""
Unit tests for CSV report export.
"""

from datetime import datetime

import pytest

from batterycheck.errors import ReportWriteError
from batterycheck.report import REPORT_HEADER, ReportWriter, make_timestamp
from batterycheck.scanner import ScanResult


def test_make_timestamp():
    """Test the report timestamp format."""
    assert make_timestamp(datetime(2024, 3, 7, 9, 5, 1)) == "20240307-090501"


def test_report_file_names(tmp_path):
    """Test that both reports share the run timestamp."""
    writer = ReportWriter(str(tmp_path), timestamp="20240307-090501")
    assert writer.all_path == tmp_path / "20240307-090501-ALL.csv"
    assert writer.bad_path == tmp_path / "20240307-090501-BAD.csv"


def test_files_created_with_header(tmp_path):
    """Test that an empty run still produces two header-only files."""
    with ReportWriter(str(tmp_path), timestamp="20240101-000000") as writer:
        pass

    assert writer.all_path.read_text() == REPORT_HEADER
    assert writer.bad_path.read_text() == REPORT_HEADER
    assert REPORT_HEADER == "IP Address, Battery Health, Battery Temp\n"


def test_rows_written(tmp_path):
    """Test row formatting in both files."""
    good = ScanResult("10.0.0.1", "Good", "30 degrees Celsius")
    unknown = ScanResult.unknown("10.0.0.2")

    with ReportWriter(str(tmp_path), timestamp="20240101-000000") as writer:
        writer.write_all(good)
        writer.write_all(unknown)
        writer.write_bad(unknown)

    assert writer.all_path.read_text().splitlines() == [
        "IP Address, Battery Health, Battery Temp",
        "10.0.0.1,Good,30 degrees Celsius",
        "10.0.0.2,Unknown,",
    ]
    assert writer.bad_path.read_text().splitlines()[1:] == ["10.0.0.2,Unknown,"]
    assert writer.rows_written == {"all": 2, "bad": 1}


def test_field_with_comma_is_quoted(tmp_path):
    """Test that device text containing commas keeps the column count."""
    result = ScanResult("10.0.0.3", "Replace, end of life", "")
    with ReportWriter(str(tmp_path), timestamp="20240101-000000") as writer:
        writer.write_all(result)

    assert writer.all_path.read_text().splitlines()[1] == '10.0.0.3,"Replace, end of life",'


def test_rows_visible_before_close(tmp_path):
    """Test that rows are flushed as they are written."""
    with ReportWriter(str(tmp_path), timestamp="20240101-000000") as writer:
        writer.write_all(ScanResult("10.0.0.1", "Good", ""))
        assert "10.0.0.1,Good," in writer.all_path.read_text()


def test_output_directory_created(tmp_path):
    """Test that a missing output directory is created."""
    target = tmp_path / "reports" / "today"
    with ReportWriter(str(target), timestamp="20240101-000000") as writer:
        pass
    assert writer.all_path.exists()


def test_unwritable_directory_raises(tmp_path):
    """Test that a path blocked by a regular file fails cleanly."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    with pytest.raises(ReportWriteError):
        ReportWriter(str(blocker / "reports")).open()


def test_write_when_not_open_raises(tmp_path):
    """Test writing before open()."""
    writer = ReportWriter(str(tmp_path))
    with pytest.raises(ReportWriteError):
        writer.write_all(ScanResult("10.0.0.1", "Good", ""))


def test_default_timestamp_is_now(tmp_path):
    """Test that the timestamp defaults to the current time."""
    writer = ReportWriter(str(tmp_path))
    assert len(writer.timestamp) == len("20240101-000000")
    assert writer.timestamp[8] == "-"
