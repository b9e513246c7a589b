"""
terminal-cli command line

Usage:
    terminal-cli --mode day --exchanges binance,bybit --tokens btc_usdt,eth_usdt \\
        --start-date 2025-11-01 --end-date 2025-11-03 -y
    terminal-cli --mode check --start-date 2025-01-01 --end-date 2025-12-31 --exchanges binance
    python -m terminal_cli --help
"""
import argparse
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from dotenv import find_dotenv, load_dotenv
from loguru import logger

from . import __version__
from .config import DEFAULT_DATA_TYPE, DEFAULT_PARALLELISM, MODES, RunConfig, Settings
from .data_handler.availability import AvailabilityRule, source_for
from .data_handler.downloader import DownloadExecutor
from .data_handler.jobs import expand_jobs
from .data_handler.link_client import LinkClient
from .data_handler.reporter import build_availability_blocks
from .exceptions import AvailabilityConfigError
from .utils.display import (
    TqdmProgress,
    confirm,
    print_availability_blocks,
    print_download_summary,
    print_error,
    print_info,
    print_job_summary,
    print_section,
    print_warning,
)
from .utils.logger import setup_logging, timer

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


class CliArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that shows the help text and exits with status 1 on bad input."""

    def error(self, message):
        self.print_help(sys.stderr)
        print(file=sys.stderr)
        print_error(message)
        sys.exit(EXIT_ERROR)


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def split_csv(values: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Flatten repeated/comma separated values, trimming blanks and duplicates (first one wins)."""
    items: List[str] = []
    for value in values or ():
        for item in value.split(","):
            item = item.strip()
            if item and item not in items:
                items.append(item)
    return tuple(items)


def build_parser() -> CliArgumentParser:
    parser = CliArgumentParser(
        prog="terminal-cli",
        description="Batch download daily trade data files (Parquet) for specific exchanges and tokens.",
    )
    parser.add_argument("--mode", default="day", choices=MODES,
                        help="day: download files (default), check: show data availability")
    parser.add_argument("--type", dest="data_type", default=DEFAULT_DATA_TYPE,
                        help="Data type: trade (default), derivative")
    parser.add_argument("--exchanges", action="append", metavar="CSV",
                        help="Comma-separated list of exchanges")
    parser.add_argument("--tokens", action="append", metavar="CSV",
                        help="Comma-separated list of token pairs (e.g. btc_usdt,eth_usdc)")
    parser.add_argument("--start-date", type=parse_date, required=True, metavar="YYYY-MM-DD",
                        help="Start date")
    parser.add_argument("--end-date", type=parse_date, metavar="YYYY-MM-DD",
                        help="End date (defaults to start date)")
    parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompts")
    parser.add_argument("--api-key", help="API key (overrides API_KEY env var)")
    parser.add_argument("--parallel", "-p", type=int, default=DEFAULT_PARALLELISM,
                        help="Number of parallel downloads (1 = sequential)")
    parser.add_argument("--output-dir", type=Path,
                        help="Download directory (default: $TERMINAL_CLI_OUTPUT_DIR or ./downloads)")
    parser.add_argument("--metadata-dir", type=Path,
                        help="Read availability rules from <dir>/<type>/ instead of the bundled ones")
    parser.add_argument("--log-dir", type=Path, help="Also write a debug log file into this directory")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logs on the console")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_config(args: argparse.Namespace, settings: Settings, parser: CliArgumentParser) -> RunConfig:
    exchanges = split_csv(args.exchanges)
    tokens = split_csv(args.tokens)
    if args.mode == "day" and (not exchanges or not tokens):
        parser.error("Mode 'day' requires: --exchanges and --tokens")

    try:
        return RunConfig(
            mode=args.mode,
            data_type=args.data_type,
            start_date=args.start_date,
            end_date=args.end_date or args.start_date,
            exchanges=exchanges,
            tokens=tokens,
            skip_confirm=args.yes,
            api_key=args.api_key or settings.api_key,
            parallelism=args.parallel,
            output_dir=args.output_dir or settings.output_dir,
            api_url=settings.api_url,
            metadata_dir=args.metadata_dir,
        )
    except ValueError as e:
        parser.error(str(e))


def load_rules(config: RunConfig) -> List[AvailabilityRule]:
    rules = source_for(config.data_type, config.metadata_dir).load_rules()
    if not rules:
        raise AvailabilityConfigError(f"No configuration files found in metadata/{config.data_type} folder.")
    logger.debug(
        f"Loaded {len(rules)} availability rules for '{config.data_type}' "
        f"({rules[0].effective_date} .. {rules[-1].effective_date})"
    )
    return rules


def run_check_mode(config: RunConfig, rules: Sequence[AvailabilityRule]) -> int:
    print_section("Checking Data Availability")
    print_info(f"Type:  {config.data_type}")
    print_info(f"Range: {config.start_date.isoformat()} to {config.end_date.isoformat()}")
    print()

    blocks = build_availability_blocks(
        rules, config.start_date, config.end_date, config.exchanges, config.tokens
    )
    if not blocks:
        print_warning("No data found for the specified criteria.")
        return EXIT_OK

    print_availability_blocks(blocks)
    return EXIT_OK


def run_day_mode(config: RunConfig, rules: Sequence[AvailabilityRule]) -> int:
    jobs = expand_jobs(rules, config.start_date, config.end_date, config.exchanges, config.tokens)
    if not jobs:
        print_warning("No matching files found for the given criteria.")
        return EXIT_OK

    print_job_summary(config.data_type, jobs, config.parallelism)
    if not config.skip_confirm and not confirm("Do you want to continue?"):
        print_warning("Aborted.")
        return EXIT_OK
    print()

    link_client = LinkClient(api_key=config.api_key, base_url=config.api_url)
    with TqdmProgress(len(jobs)) as progress:
        executor = DownloadExecutor(
            output_dir=config.output_dir,
            data_type=config.data_type,
            link_client=link_client,
            concurrency=config.parallelism,
            listener=progress,
        )
        with timer("downloads"):
            summary = executor.run(jobs)

    print_download_summary(summary)
    if summary.cancelled:
        print_warning("Aborted.")
        return EXIT_INTERRUPTED
    return EXIT_OK


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Parse ``argv``, run the selected mode and return the exit status."""
    load_dotenv(find_dotenv(usecwd=True))
    settings = Settings.from_env()

    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        console_level="DEBUG" if args.verbose else "WARNING",
        log_dir=args.log_dir or settings.log_dir,
    )
    config = build_config(args, settings, parser)

    try:
        rules = load_rules(config)
    except AvailabilityConfigError as e:
        print_error(f"Failed to load metadata configurations: {e}")
        return EXIT_ERROR

    if config.mode == "check":
        return run_check_mode(config, rules)
    return run_day_mode(config, rules)


def main(argv: Optional[Sequence[str]] = None) -> None:
    try:
        code = run(argv)
    except KeyboardInterrupt:
        # Ctrl+C outside the download pool (confirmation prompt, setup)
        print()
        print_warning("Aborted.")
        code = EXIT_INTERRUPTED
    sys.exit(code)


if __name__ == "__main__":
    main()
