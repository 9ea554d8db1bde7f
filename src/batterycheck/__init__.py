"""
batterycheck - IP Phone Battery Health Scanner

Scans a population of IP phones over HTTP(S), scrapes battery health and
temperature from each device's status page, and reports devices whose
battery is degraded, unreachable or running hot.
"""

__version__ = "1.0.0"
__author__ = "batterycheck Team"

__all__ = [
    "ScanEngine",
    "ScanConfig",
    "DeviceScanner",
    "ScanResult",
    "ScanOutcome",
    "ResultAggregator",
    "InputParser",
    "AddressList",
    "ReportWriter",
    "ConsoleOutput",
    "ScanStatistics",
    "Channel",
    "extract_fields",
]


def __getattr__(name: str):
    """Lazy import module attributes on first access."""
    if name == "ScanEngine":
        from .engine import ScanEngine
        return ScanEngine
    elif name == "ScanConfig":
        from .config import ScanConfig
        return ScanConfig
    elif name in ("DeviceScanner", "ScanResult", "ScanOutcome"):
        from . import scanner
        return getattr(scanner, name)
    elif name == "ResultAggregator":
        from .aggregator import ResultAggregator
        return ResultAggregator
    elif name in ("InputParser", "AddressList"):
        from . import input_parser
        return getattr(input_parser, name)
    elif name == "ReportWriter":
        from .report import ReportWriter
        return ReportWriter
    elif name in ("ConsoleOutput", "ScanStatistics"):
        from . import console
        return getattr(console, name)
    elif name == "Channel":
        from .channel import Channel
        return Channel
    elif name == "extract_fields":
        from .extractor import extract_fields
        return extract_fields
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
