"""
Scan configuration.
"""

from dataclasses import dataclass
from typing import Optional

from . import __version__

DEFAULT_TEMP_THRESHOLD = 50.0  # Degrees Celsius
DEFAULT_TIMEOUT = 10  # Request timeout in seconds
DEFAULT_WORKERS = 10  # Concurrent scan workers
DEFAULT_USER_AGENT = f"batterycheck/{__version__}"


@dataclass(frozen=True)
class ScanConfig:
    """Immutable settings threaded through the engine and its workers."""

    temp_threshold: float = DEFAULT_TEMP_THRESHOLD
    timeout: int = DEFAULT_TIMEOUT
    workers: int = DEFAULT_WORKERS
    verbose: bool = False
    abort_on_parse_error: bool = False
    user_agent: str = DEFAULT_USER_AGENT

    def validate(self) -> Optional[str]:
        """
        Validate settings.

        Returns:
            Error message if validation fails, None otherwise.
        """
        if self.workers < 1:
            return f"Invalid worker count: {self.workers}. Must be at least 1."
        if self.workers > 1000:
            return f"Worker count {self.workers} is very high. Consider using <= 100."
        if self.timeout < 1:
            return f"Invalid timeout: {self.timeout}. Must be at least 1 second."
        if self.temp_threshold != self.temp_threshold:
            return "Invalid temperature threshold: NaN."
        return None
