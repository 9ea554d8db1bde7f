"""
Unit tests for result classification.
"""

import pytest

from batterycheck.aggregator import ResultAggregator, parse_temperature
from batterycheck.console import ScanStatistics
from batterycheck.scanner import ScanOutcome, ScanResult


def good(address="10.0.0.1", temperature="30 degrees Celsius"):
    return ScanResult(address=address, health="Good", temperature=temperature)


class TestParseTemperature:
    """Test temperature string parsing."""

    def test_degrees_celsius_suffix(self):
        assert parse_temperature("42.5 degrees Celsius") == 42.5

    def test_integer(self):
        assert parse_temperature("50 degrees Celsius") == 50.0

    def test_bare_number(self):
        assert parse_temperature("37") == 37.0

    def test_empty(self):
        assert parse_temperature("") is None

    def test_not_numeric(self):
        assert parse_temperature("N/A degrees Celsius") is None


class TestThreshold:
    """Test the high temperature threshold."""

    def test_below_threshold(self, recording_writer):
        aggregator = ResultAggregator(recording_writer, temp_threshold=50)
        classification = aggregator.add(good(temperature="42.5 degrees Celsius"))
        assert classification.high_temp is False
        assert aggregator.statistics.hightemp == 0

    def test_above_lower_threshold(self, recording_writer):
        aggregator = ResultAggregator(recording_writer, temp_threshold=40)
        classification = aggregator.add(good(temperature="42.5 degrees Celsius"))
        assert classification.high_temp is True
        assert aggregator.statistics.hightemp == 1

    def test_equal_is_not_high(self, recording_writer):
        aggregator = ResultAggregator(recording_writer, temp_threshold=50)
        assert aggregator.add(good(temperature="50 degrees Celsius")).high_temp is False


def test_good_low_temperature_in_all_report_only(recording_writer):
    """Test a healthy, cool battery."""
    aggregator = ResultAggregator(recording_writer)
    result = good()
    classification = aggregator.add(result)

    assert recording_writer.all_rows == [result]
    assert recording_writer.bad_rows == []
    assert classification.is_good is True
    assert classification.in_bad_report is False
    stats = aggregator.statistics
    assert (stats.good, stats.bad, stats.hightemp, stats.unreachable) == (1, 0, 0, 0)


def test_good_high_temperature_escalated(recording_writer):
    """Test that a hot 'Good' battery is reported but still counted good."""
    aggregator = ResultAggregator(recording_writer, temp_threshold=50)
    result = good(temperature="55 degrees Celsius")
    classification = aggregator.add(result)

    assert recording_writer.all_rows == [result]
    assert recording_writer.bad_rows == [result]
    assert classification.escalated is True
    assert classification.is_good is True
    stats = aggregator.statistics
    assert stats.good == 1
    assert stats.bad == 0
    assert stats.hightemp == 1


def test_unknown_goes_to_bad_report_without_temperature_check(recording_writer):
    """Test an unreachable device."""
    aggregator = ResultAggregator(recording_writer, temp_threshold=-100)
    result = ScanResult.unknown("10.0.0.9")
    classification = aggregator.add(result)

    assert recording_writer.bad_rows == [result]
    assert classification.high_temp is False
    stats = aggregator.statistics
    assert stats.bad == 1
    assert stats.unreachable == 1
    assert stats.hightemp == 0


def test_degraded_health(recording_writer):
    """Test a battery reporting anything other than Good."""
    aggregator = ResultAggregator(recording_writer)
    result = ScanResult(address="10.0.0.2", health="Replace", temperature="30 degrees Celsius")
    aggregator.add(result)

    assert recording_writer.bad_rows == [result]
    assert aggregator.statistics.bad == 1
    assert aggregator.statistics.unreachable == 0
    assert aggregator.statistics.health_related == 1


def test_degraded_and_hot_written_once(recording_writer):
    """Test that a bad, hot battery appears in the bad report once."""
    aggregator = ResultAggregator(recording_writer, temp_threshold=50)
    result = ScanResult(address="10.0.0.3", health="Poor", temperature="60 degrees Celsius")
    classification = aggregator.add(result)

    assert recording_writer.bad_rows == [result]
    assert classification.escalated is False
    assert aggregator.statistics.hightemp == 1
    assert aggregator.statistics.bad == 1


def test_health_containing_good_is_bad_but_not_reported(recording_writer):
    """Test the substring rule for the bad report versus exact match for counters."""
    aggregator = ResultAggregator(recording_writer)
    result = ScanResult(address="10.0.0.4", health="Good (calibrating)", temperature="")
    aggregator.add(result)

    assert aggregator.statistics.bad == 1
    assert recording_writer.bad_rows == []


def test_empty_health_from_reachable_device(recording_writer):
    """Test a reachable device whose page has no battery rows."""
    aggregator = ResultAggregator(recording_writer)
    result = ScanResult(address="10.0.0.5", health="", temperature="")
    aggregator.add(result)

    assert aggregator.statistics.bad == 1
    assert aggregator.statistics.unreachable == 0
    assert recording_writer.bad_rows == [result]


def test_non_numeric_temperature_is_skipped(recording_writer):
    """Test that a garbled temperature does not change counters."""
    aggregator = ResultAggregator(recording_writer, temp_threshold=0)
    aggregator.add(good(temperature="unavailable"))
    assert aggregator.statistics.hightemp == 0
    assert aggregator.statistics.good == 1


def test_parse_error_counted_as_unknown(recording_writer):
    """Test that unparseable pages land in the Unreachable/Unknown bucket."""
    aggregator = ResultAggregator(recording_writer)
    aggregator.add(ScanResult.unknown("10.0.0.6", ScanOutcome.PARSE_ERROR))

    stats = aggregator.statistics
    assert stats.unreachable == 1
    assert stats.parse_errors == 1
    assert stats.bad == 1


def test_counters_add_up(recording_writer):
    """Test that good + bad equals the number of results."""
    aggregator = ResultAggregator(recording_writer, temp_threshold=50)
    results = [
        good("10.0.0.1"),
        good("10.0.0.2", "51 degrees Celsius"),
        ScanResult("10.0.0.3", "Replace", "20 degrees Celsius"),
        ScanResult.unknown("10.0.0.4"),
        ScanResult("10.0.0.5", "", ""),
    ]
    for result in results:
        aggregator.add(result)

    stats = aggregator.statistics
    assert stats.scanned == 5
    assert stats.good + stats.bad == 5
    assert stats.unreachable <= stats.bad
    assert len(recording_writer.all_rows) == 5
    assert len(recording_writer.bad_rows) == 4
    assert stats.health_related == stats.bad - (stats.hightemp + stats.unreachable)


def test_uses_given_statistics(recording_writer):
    """Test that the aggregator updates the statistics it is given."""
    stats = ScanStatistics(valid_addresses=1)
    aggregator = ResultAggregator(recording_writer, statistics=stats)
    aggregator.add(good())
    assert stats.good == 1


@pytest.mark.parametrize("threshold,expected", [(50, 0), (40, 1)])
def test_threshold_from_reference_example(recording_writer, threshold, expected):
    """Test 42.5 degrees against thresholds of 50 and 40."""
    aggregator = ResultAggregator(recording_writer, temp_threshold=threshold)
    aggregator.add(good(temperature="42.5 degrees Celsius"))
    assert aggregator.statistics.hightemp == expected
