"""
Result classification and summary counters.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import DEFAULT_TEMP_THRESHOLD
from .console import ScanStatistics
from .scanner import HEALTH_GOOD, HEALTH_UNKNOWN, ScanOutcome, ScanResult

logger = logging.getLogger(__name__)

TEMPERATURE_UNIT = " degrees Celsius"


def parse_temperature(text: str) -> Optional[float]:
    """
    Parse a device temperature string.

    Args:
        text: Temperature as reported, e.g. "42.5 degrees Celsius"

    Returns:
        Temperature in degrees Celsius, or None if it is not numeric
    """
    value = text.split(TEMPERATURE_UNIT)[0]
    try:
        return float(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class Classification:
    """How one result was counted and routed."""

    is_good: bool
    in_bad_report: bool
    high_temp: bool
    escalated: bool  # "Good" result sent to the bad report for temperature


class ResultAggregator:
    """
    Consumes scan results, updates counters and routes report rows.

    The only component that mutates ScanStatistics counters. Note that
    the good/bad counters and the bad report are tracked independently:
    a "Good" result with a high temperature is counted as good and also
    written to the bad report.
    """

    def __init__(
        self,
        writer,
        temp_threshold: float = DEFAULT_TEMP_THRESHOLD,
        statistics: Optional[ScanStatistics] = None,
    ):
        """
        Initialize aggregator.

        Args:
            writer: Report sink with write_all(result) and write_bad(result)
            temp_threshold: Temperature above which a device is high-temp
            statistics: Counters to update (a new set if not given)
        """
        self.writer = writer
        self.temp_threshold = temp_threshold
        self.statistics = statistics or ScanStatistics()

    def add(self, result: ScanResult) -> Classification:
        """
        Count and route one result.

        Args:
            result: Completed scan result

        Returns:
            Classification describing what was done with the result
        """
        stats = self.statistics
        stats.scanned += 1

        self.writer.write_all(result)

        is_good = result.health == HEALTH_GOOD
        if is_good:
            stats.good += 1
        else:
            stats.bad += 1

        if result.outcome != ScanOutcome.SUCCESS:
            stats.unreachable += 1
            if result.outcome == ScanOutcome.PARSE_ERROR:
                stats.parse_errors += 1

        # Anything except a "Good" status goes to the bad report
        in_bad_report = HEALTH_GOOD not in result.health
        if in_bad_report:
            self.writer.write_bad(result)

        high_temp = False
        escalated = False
        if result.health != HEALTH_UNKNOWN:
            temperature = parse_temperature(result.temperature)
            if temperature is not None and temperature > self.temp_threshold:
                high_temp = True
                stats.hightemp += 1
                if not in_bad_report:
                    self.writer.write_bad(result)
                    in_bad_report = True
                    escalated = True
                logger.debug(
                    f"{result.address} temperature {temperature} exceeds "
                    f"{self.temp_threshold}"
                )

        return Classification(
            is_good=is_good,
            in_bad_report=in_bad_report,
            high_temp=high_temp,
            escalated=escalated,
        )
