"""
CSV report export.

Each run produces two files named after the run timestamp: every result
(``<timestamp>-ALL.csv``) and the results needing attention
(``<timestamp>-BAD.csv``).
"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import IO, Optional

from .errors import ReportWriteError
from .scanner import ScanResult

logger = logging.getLogger(__name__)

REPORT_HEADER = "IP Address, Battery Health, Battery Temp\n"
TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def make_timestamp(now: Optional[datetime] = None) -> str:
    """Format the run timestamp used in report file names."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


class ReportWriter:
    """
    Writes scan results to the all-results and bad-only CSV files.

    Use as a context manager; the files are created with their header row
    on entry and closed on exit.
    """

    def __init__(self, output_dir: str = ".", timestamp: Optional[str] = None):
        """
        Initialize report writer.

        Args:
            output_dir: Directory for the report files
            timestamp: Run timestamp for file names (default: now)
        """
        self.output_dir = Path(output_dir)
        self.timestamp = timestamp or make_timestamp()
        self.all_path = self.output_dir / f"{self.timestamp}-ALL.csv"
        self.bad_path = self.output_dir / f"{self.timestamp}-BAD.csv"
        self._all_file: Optional[IO[str]] = None
        self._bad_file: Optional[IO[str]] = None
        self.rows_written = {"all": 0, "bad": 0}

    def open(self) -> None:
        """
        Create both report files and write their header rows.

        Raises:
            ReportWriteError: If either file cannot be created
        """
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            self._all_file = open(self.all_path, "w", encoding="utf-8", newline="")
            self._bad_file = open(self.bad_path, "w", encoding="utf-8", newline="")
            self._all_file.write(REPORT_HEADER)
            self._bad_file.write(REPORT_HEADER)
        except OSError as e:
            self.close()
            raise ReportWriteError(f"Failed to create report files: {e}") from e
        logger.debug(f"Writing reports to {self.all_path} and {self.bad_path}")

    def close(self) -> None:
        for handle in (self._all_file, self._bad_file):
            if handle is not None:
                handle.close()
        self._all_file = None
        self._bad_file = None

    def __enter__(self) -> "ReportWriter":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @staticmethod
    def _write_row(handle: Optional[IO[str]], path: Path, result: ScanResult) -> None:
        if handle is None:
            raise ReportWriteError(f"Report file is not open: {path}")
        try:
            writer = csv.writer(handle, lineterminator="\n")
            writer.writerow([result.address, result.health, result.temperature])
            handle.flush()
        except OSError as e:
            raise ReportWriteError(f"Failed to write report file {path}: {e}") from e

    def write_all(self, result: ScanResult) -> None:
        """Append a result row to the all-results file."""
        self._write_row(self._all_file, self.all_path, result)
        self.rows_written["all"] += 1

    def write_bad(self, result: ScanResult) -> None:
        """Append a result row to the bad-only file."""
        self._write_row(self._bad_file, self.bad_path, result)
        self.rows_written["bad"] += 1
