"""
Scan statistics and console output.
"""

import os
import sys
import threading
import time
from dataclasses import dataclass
from typing import Optional


@dataclass
class ScanStatistics:
    """
    Counters for a scan run.

    Written only by the result aggregator.
    """

    valid_addresses: int = 0
    invalid_addresses: int = 0
    scanned: int = 0
    good: int = 0
    bad: int = 0
    unreachable: int = 0
    hightemp: int = 0
    parse_errors: int = 0
    start_time: float = 0.0

    def __post_init__(self):
        if self.start_time == 0.0:
            self.start_time = time.time()

    @property
    def health_related(self) -> int:
        """
        Bad results not explained by temperature or reachability.

        Plain subtraction; a high-temperature result that is also counted
        elsewhere can make it negative.
        """
        return self.bad - (self.hightemp + self.unreachable)

    @property
    def elapsed_time(self) -> float:
        """Get elapsed time in seconds."""
        return time.time() - self.start_time

    @property
    def scan_rate(self) -> float:
        """Get scan rate in devices per second."""
        elapsed = self.elapsed_time
        if elapsed > 0:
            return self.scanned / elapsed
        return 0.0

    @property
    def eta_seconds(self) -> Optional[float]:
        """Estimate time to completion in seconds."""
        rate = self.scan_rate
        remaining = self.valid_addresses - self.scanned
        if rate > 0 and remaining > 0:
            return remaining / rate
        return None

    @property
    def progress_percentage(self) -> float:
        """Get progress as percentage."""
        if self.valid_addresses > 0:
            return (self.scanned / self.valid_addresses) * 100
        return 0.0


class ConsoleOutput:
    """
    Handles console output and progress display.

    Thread-safe console output for concurrent scanning operations.
    """

    def __init__(self, quiet: bool = False, verbose: bool = False, use_colors: bool = True):
        """
        Initialize console output handler.

        Args:
            quiet: Suppress progress output
            verbose: Print per-address trace lines
            use_colors: Use ANSI color codes (if terminal supports)
        """
        self.quiet = quiet
        self.verbose = verbose
        self.use_colors = use_colors and self._supports_color()
        self._lock = threading.Lock()
        self._last_progress_update = 0.0
        self._progress_update_interval = 1.0  # Update every 1 second
        self._progress_line_active = False

    @staticmethod
    def _supports_color() -> bool:
        """Check if terminal supports ANSI colors."""
        if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
            return False

        term = os.environ.get("TERM", "")
        if term in ("dumb", ""):
            return False

        return True

    def _colorize(self, text: str, color_code: str) -> str:
        if not self.use_colors:
            return text
        return f"\033[{color_code}m{text}\033[0m"

    def _clear_progress(self) -> None:
        # Caller holds the lock
        if self._progress_line_active:
            print(f"\r{' ' * 100}\r", end="")
            self._progress_line_active = False

    def success(self, message: str) -> None:
        """Print success message in green."""
        with self._lock:
            self._clear_progress()
            print(self._colorize(message, "32"))

    def error(self, message: str) -> None:
        """Print error message in red."""
        with self._lock:
            self._clear_progress()
            print(self._colorize(message, "31"), file=sys.stderr)

    def warning(self, message: str) -> None:
        """Print warning message in yellow."""
        with self._lock:
            self._clear_progress()
            print(self._colorize(message, "33"))

    def info(self, message: str) -> None:
        """Print info message."""
        if self.quiet:
            return
        with self._lock:
            self._clear_progress()
            print(message)

    def trace(self, message: str) -> None:
        """Print a per-address trace line (verbose mode only)."""
        if not self.verbose:
            return
        with self._lock:
            self._clear_progress()
            print(self._colorize(message, "36"))

    def print_progress(self, stats: ScanStatistics, force: bool = False) -> None:
        """
        Print scan progress on a single updating line.

        Args:
            stats: Current scan statistics
            force: Force update even if within update interval
        """
        # Trace lines and the progress line would interleave
        if self.quiet or self.verbose:
            return

        current_time = time.time()
        if (
            not force
            and (current_time - self._last_progress_update)
            < self._progress_update_interval
        ):
            return
        self._last_progress_update = current_time

        with self._lock:
            progress_parts = [
                f"Progress: {stats.scanned}/{stats.valid_addresses} "
                f"({stats.progress_percentage:.1f}%)",
                f"Good: {stats.good}",
                f"Bad: {stats.bad}",
                f"Unreachable: {stats.unreachable}",
            ]
            eta = stats.eta_seconds
            if eta is not None:
                progress_parts.append(f"ETA: {self._format_duration(eta)}")

            self._progress_line_active = True
            print(f"\r{' | '.join(progress_parts)}", end="", flush=True)

    def print_summary(self, stats: ScanStatistics) -> None:
        """
        Print final scan summary with the breakdown of bad results.

        Args:
            stats: Final scan statistics
        """
        with self._lock:
            self._clear_progress()
            print("Done!")
            print("Summary: ")
            print(f" - Good: {stats.good}")
            print(f" - Bad: {stats.bad}")
            print("Breakdown of 'bad' status:")
            print(f" - Health: {stats.health_related}")
            print(f" - High Temp: {stats.hightemp}")
            print(f" - Unreachable/Unknown: {stats.unreachable}")
            if stats.parse_errors:
                print(f"   (of which unparseable pages: {stats.parse_errors})")
            print(
                f"Elapsed time: {self._format_duration(stats.elapsed_time)} "
                f"({stats.scan_rate:.2f} devices/sec)"
            )

    @staticmethod
    def _format_duration(seconds: float) -> str:
        """
        Format duration in human-readable format.

        Args:
            seconds: Duration in seconds

        Returns:
            Formatted duration string
        """
        if seconds < 60:
            return f"{seconds:.0f}s"
        elif seconds < 3600:
            return f"{seconds / 60:.1f}m"
        else:
            return f"{seconds / 3600:.1f}h"
