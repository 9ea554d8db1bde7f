"""
Command-line interface for batterycheck.
"""

import argparse
import sys
from typing import TYPE_CHECKING, Optional

from . import __version__
from .config import DEFAULT_TEMP_THRESHOLD, DEFAULT_TIMEOUT, DEFAULT_WORKERS, ScanConfig

if TYPE_CHECKING:
    from .aggregator import Classification
    from .console import ConsoleOutput, ScanStatistics
    from .input_parser import AddressList
    from .scanner import ScanResult


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="batterycheck",
        description="Check battery health and temperature of IP phones via their web status page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check every phone listed in a file
  batterycheck --file phones.txt

  # Check a whole subnet with a 45C threshold
  batterycheck --cidr 10.20.0.0/24 --temp 45

  # Verbose run with a longer timeout, reports in ./reports
  batterycheck -f phones.txt --timeout 20 -v -o reports
        """,
    )

    # Version
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    # Input options (mutually exclusive)
    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument(
        "--file", "-f", metavar="FILE", help="Text list of IP addresses to check, one per line"
    )
    input_group.add_argument("--cidr", metavar="CIDR", help="Check every address in a CIDR block")

    # Output options
    parser.add_argument(
        "--output-dir",
        "-o",
        metavar="DIR",
        default=".",
        help="Directory for the ALL/BAD CSV reports (default: current directory)",
    )

    # Scanning options
    parser.add_argument(
        "--temp",
        type=float,
        default=DEFAULT_TEMP_THRESHOLD,
        metavar="CELSIUS",
        help=f"High temperature threshold in C (default: {DEFAULT_TEMP_THRESHOLD:g})",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=DEFAULT_TIMEOUT,
        metavar="SEC",
        help=f"Time to wait for a response from each phone in seconds (default: {DEFAULT_TIMEOUT})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        metavar="NUM",
        help=f"Number of concurrent workers (default: {DEFAULT_WORKERS})",
    )
    parser.add_argument(
        "--abort-on-parse-error",
        action="store_true",
        help="Stop the whole scan if a status page cannot be parsed",
    )

    # Logging options
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="warning",
        help="Logging level (default: warning)",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        help="Log output to file",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress progress output",
    )

    return parser


def build_config(args: argparse.Namespace) -> ScanConfig:
    """Build the immutable scan configuration from parsed arguments."""
    return ScanConfig(
        temp_threshold=args.temp,
        timeout=args.timeout,
        workers=args.workers,
        verbose=args.verbose,
        abort_on_parse_error=args.abort_on_parse_error,
    )


def validate_args(args: argparse.Namespace) -> Optional[str]:
    """
    Validate parsed arguments.

    Returns:
        Error message if validation fails, None otherwise.
    """
    if args.verbose and args.quiet:
        return "--verbose and --quiet cannot be used together."
    return build_config(args).validate()


def main() -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = create_parser()
    args = parser.parse_args()

    # Validate arguments
    error = validate_args(args)
    if error:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    # Set up logging
    import logging

    from .console import ConsoleOutput

    log_level = logging.DEBUG if args.verbose else getattr(logging, args.log_level.upper())
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        filename=args.log_file if args.log_file else None,
    )

    # Initialize console output
    console = ConsoleOutput(quiet=args.quiet, verbose=args.verbose)

    try:
        import asyncio

        return asyncio.run(run_scan(args, console))
    except KeyboardInterrupt:
        console.error("\nScan interrupted by user")
        return 130
    except Exception as e:
        console.error(f"Fatal error: {e}")
        logging.exception("Fatal error during scan")
        return 1


def load_addresses(args: argparse.Namespace, console: "ConsoleOutput") -> "AddressList":
    """
    Acquire and validate the scan population from --file or --cidr.

    Raises:
        FileNotFoundError: If the address file does not exist
        ValueError: If the CIDR block is malformed
    """
    from .input_parser import InputParser

    if args.file:
        console.info("Validating input file...")
        addresses = InputParser.parse_address_file(args.file)
    else:
        console.info(f"Expanding CIDR block: {args.cidr}")
        addresses = InputParser.parse_cidr(args.cidr)

    for entry in addresses.invalid:
        console.trace(f"Invalid address: {entry}")

    console.info(f"Found {addresses.valid_count} addresses to check")
    if addresses.invalid_count >= 1:
        console.warning(
            f"{addresses.invalid_count} addresses are invalid & will not be checked."
        )
    return addresses


def trace_result(
    console: "ConsoleOutput", result: "ScanResult", classification: "Classification"
) -> None:
    """Print the verbose per-address trace for one result."""
    from .scanner import ScanOutcome

    if result.outcome == ScanOutcome.UNREACHABLE:
        console.trace(
            f"Cannot connect to: {result.address} "
            f"({result.error_category}: {result.error_code})"
        )
    elif result.outcome == ScanOutcome.PARSE_ERROR:
        console.trace(
            f"Unparseable status page over {result.scheme}: {result.address} "
            f"({result.error_category}: {result.error_code})"
        )
    else:
        console.trace(f"Status page over {result.scheme}: {result.address}")
    console.trace(
        f"Got Result, writing to CSV: {result.address},{result.health},{result.temperature}"
    )
    if classification.escalated:
        console.trace(f"High temperature on otherwise good battery: {result.address}")


async def run_scan(args: argparse.Namespace, console: "ConsoleOutput") -> int:
    """
    Execute the scanning operation.

    Args:
        args: Parsed command-line arguments
        console: Console output handler

    Returns:
        Exit code
    """
    import logging

    from .engine import ScanEngine
    from .errors import ReportWriteError, ScanAborted
    from .report import ReportWriter

    logger = logging.getLogger(__name__)

    try:
        addresses = load_addresses(args, console)
    except (FileNotFoundError, ValueError) as e:
        console.error(f"Input parsing error: {e}")
        return 1

    if addresses.valid_count == 0:
        console.error("No valid addresses found in input")
        return 1

    config = build_config(args)
    console.info(
        f"Workers: {config.workers}, Timeout: {config.timeout}s, "
        f"Temperature threshold: {config.temp_threshold:g}C"
    )

    async def on_result(
        result: "ScanResult", classification: "Classification", stats: "ScanStatistics"
    ) -> None:
        trace_result(console, result, classification)
        console.print_progress(stats)

    engine = ScanEngine(config, on_result=on_result)

    console.info("Working...")
    try:
        with ReportWriter(args.output_dir) as writer:
            stats = await engine.run(addresses, writer)
    except ScanAborted as e:
        console.error(f"Scan aborted: {e}")
        if e.statistics is not None:
            console.print_summary(e.statistics)
        return 1
    except ReportWriteError as e:
        console.error(f"Failed to write output: {e}")
        logger.exception("Error writing report")
        return 1

    console.print_summary(stats)
    console.success(f"Results written to: {writer.all_path} and {writer.bad_path}")
    return 0
