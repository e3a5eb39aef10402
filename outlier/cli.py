"""Outlier CLI - percentile calculator with CLI and HTTP API.

This module provides command-line tools for:
- Calculating a percentile from a JSON/CSV file or comma-separated values
- Starting the HTTP API server

Example:
    # Calculate P95 of a CSV file's "value" column
    outlier calculate --file data.csv

    # Calculate the median of inline values
    outlier calculate --values "1,2,3,4,5" --percentile 50

    # Start the HTTP API server
    outlier serve --port 8080
"""

import argparse
import json
import logging
import sys
from dataclasses import replace

import yaml

from outlier.core.ingest import parse_values_string, read_values_from_file
from outlier.core.percentile import PercentileResult, summarize
from outlier.framework.errors import OutlierError
from outlier.observability.logging import configure_logging
from outlier.server.config import Config, ConfigError, load_config_with_priority
from outlier.version import get_full_version

logger = logging.getLogger(__name__)


def format_result(summary: PercentileResult, output_format: str = "pretty") -> str:
    """Render a calculation result for the terminal.

    Args:
        summary: Computed result
        output_format: "pretty" (two-decimal text), "json" or "yaml"

    Returns:
        Text to print
    """
    if output_format == "json":
        return json.dumps(summary.to_dict(), indent=2)
    if output_format == "yaml":
        return yaml.safe_dump(summary.to_dict(), sort_keys=False).rstrip()
    return (
        f"Number of values: {summary.count}\n"
        f"Percentile (P{summary.percentile:g}): {summary.result:.2f}"
    )


# =============================================================================
# Commands
# =============================================================================


def calculate(args: argparse.Namespace, config: Config) -> int:
    """Calculate a percentile from a file or inline values.

    Args:
        args: Parsed command-line arguments
        config: Loaded configuration (supplies the default percentile)

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    percentile = args.percentile
    if percentile is None:
        percentile = config.calculation.default_percentile

    try:
        if args.file:
            values = read_values_from_file(args.file)
        else:
            values = parse_values_string(args.values)

        summary = summarize(values, percentile)
    except OutlierError as e:
        logger.debug("Calculation failed: %s", e.to_dict())
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: failed to read {args.file}: {e.strerror or e}", file=sys.stderr)
        return 1

    print(format_result(summary, args.format))
    return 0


def serve(args: argparse.Namespace, config: Config) -> int:
    """Start the HTTP API server.

    Args:
        args: Parsed command-line arguments with optional host/port overrides
        config: Loaded configuration

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    from outlier.server.http_server import apply_overrides, start_server

    try:
        config = apply_overrides(config, args.host, args.port)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        start_server(config)
        return 0
    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.exception("HTTP server error")
        return 1


# =============================================================================
# Main CLI
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="outlier",
        description=(
            "Outlier - Percentile calculator with CLI and HTTP API.\n"
            "Calculates percentiles from direct values, JSON files, or CSV files."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # P95 of a JSON array file
  outlier calculate --file latencies.json

  # P99 of the "value" column of a CSV file, as JSON
  outlier calculate --file data.csv --percentile 99 --format json

  # Median of inline values
  outlier calculate --values "1,2,3,4,5" -p 50

  # Start the HTTP API with a config file
  outlier --config outlier.yml serve
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {get_full_version()}",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to configuration file (default: $CONFIG_FILE, then built-in defaults)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (default: from configuration, INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # -------------------------------------------------------------------------
    # calculate
    # -------------------------------------------------------------------------
    calculate_parser = subparsers.add_parser("calculate", help="Calculate a percentile")
    source = calculate_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", "-f", help="Input file path (JSON or CSV)")
    source.add_argument("--values", help="Comma-separated values, e.g. \"1,2,3\"")
    calculate_parser.add_argument(
        "--percentile",
        "-p",
        type=float,
        default=None,
        help="Percentile to calculate, 0-100 (default: 95 or the configured default)",
    )
    calculate_parser.add_argument(
        "--format",
        choices=["pretty", "json", "yaml"],
        default="pretty",
        help="Output format (default: pretty)",
    )
    calculate_parser.set_defaults(func=calculate)

    # -------------------------------------------------------------------------
    # serve
    # -------------------------------------------------------------------------
    serve_parser = subparsers.add_parser("serve", help="Start HTTP API server")
    serve_parser.add_argument("--host", default=None, help="Override bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Override server port")
    serve_parser.set_defaults(func=serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Arguments to parse (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config_with_priority(args.config)
    except ConfigError as e:
        print(f"Error: failed to load configuration: {e}", file=sys.stderr)
        return 1

    # Keep stdout for results when calculating
    logging_config = config.logging
    if args.command == "calculate" and logging_config.output == "stdout":
        logging_config = replace(logging_config, output="stderr")
    configure_logging(logging_config, args.log_level)

    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
