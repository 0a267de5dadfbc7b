"""
Command Line Interface for incremental image conversion.
"""

import argparse
import logging
from typing import List, Optional

import urllib3

from .cancellation import CancellationToken, install_signal_handlers
from .config import Config, load_config
from .errors import ConfigError, ThumbgenError
from .pipeline import build_converters, run_pipeline
from .reporter import Reporter
from .run_progress import RunProgress
from .skip_cache import SkipCache

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CANCELLED = 130


def setup_logging(verbose: bool, level: int = logging.INFO) -> logging.Logger:
    """Configure logging."""
    if verbose:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logging.getLogger().setLevel(level)

    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logging.getLogger('thumbgen')


def _load_config(args: argparse.Namespace) -> Optional[Config]:
    """Load configuration, logging every validation error."""
    logger = logging.getLogger('thumbgen')
    try:
        return load_config(args.config)
    except ConfigError as e:
        logger.error(str(e.args[0]) if e.args else "Invalid configuration")
        for error in e.errors:
            logger.error(f"  {error}")
        return None


def cmd_run(args: argparse.Namespace) -> int:
    """Execute run command."""
    logger = setup_logging(args.verbose)
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    token = CancellationToken()
    restore_signals = install_signal_handlers(token, logger)
    try:
        return _run(args, token, logger)
    finally:
        restore_signals()


def _run(args: argparse.Namespace, token: CancellationToken, logger: logging.Logger) -> int:
    config = _load_config(args)
    if config is None:
        return EXIT_FATAL
    if not args.verbose:
        setup_logging(False, config.logging_level)

    logger.info(f"Loaded configuration: {args.config}")
    if args.limit:
        logger.info(f"Test mode: limiting to {args.limit} files")
    if args.show_files:
        logger.info("Show-files mode: will print each file")

    progress = None
    if not args.quiet:
        progress = RunProgress(show_files=args.show_files, logger=logger)

    try:
        report = run_pipeline(
            config,
            token,
            dry_run=args.dry_run,
            force_rewrite=True if args.force_rewrite else None,
            limit=args.limit,
            progress=progress,
            logger=logger,
        )
    except ThumbgenError as e:
        logger.error(f"Run failed: {e}")
        return EXIT_FATAL
    except Exception as e:
        logger.exception(f"Run failed: {e}")
        return EXIT_FATAL

    if not args.quiet:
        print()
        Reporter().report_run(report)

    if report.cancelled:
        logger.info("Exiting due to cancellation")
        return EXIT_CANCELLED
    if report.errors:
        logger.warning(f"Completed with {report.errors} failed units; they will be retried next run")
    return EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    """Execute check command."""
    logger = setup_logging(args.verbose)

    config = _load_config(args)
    if config is None:
        return EXIT_FATAL

    try:
        converters = build_converters(config, logger=logger)
    except ThumbgenError as e:
        logger.error(f"Failed to initialize converters: {e}")
        return EXIT_FATAL

    Reporter().report_config(config, converters)
    return EXIT_OK


def cmd_cache(args: argparse.Namespace) -> int:
    """Execute cache command."""
    logger = setup_logging(args.verbose)

    config = _load_config(args)
    if config is None:
        return EXIT_FATAL

    cache = SkipCache(config.input.cache_path, logger=logger)
    try:
        cache.load()
        converters = build_converters(config, logger=logger)
    except ThumbgenError as e:
        logger.error(f"Cache report failed: {e}")
        return EXIT_FATAL

    Reporter().report_cache(cache, converters)
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='thumbgen',
        description='Incremental image conversion between storage backends',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  run:    python -m thumbgen run -c config.json
  check:  python -m thumbgen check -c config.json
  cache:  python -m thumbgen cache -c config.json

Exit codes:
  0 completed, 1 configuration/cache/storage failure, 130 cancelled

Testing:
  Use --limit 3 to process only 3 files, --dry-run to write nothing
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Run command
    run_parser = subparsers.add_parser('run', help='Convert sources that changed since the last run')
    run_parser.add_argument('-c', '--config', default='config.json', help='Configuration file')
    run_parser.add_argument('-n', '--dry-run', action='store_true', help='Show what would be done')
    run_parser.add_argument('-f', '--force-rewrite', action='store_true',
                            help='Regenerate every artifact regardless of provenance')
    run_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress output')
    run_parser.add_argument('--show-files', action='store_true',
                            help='Print each file as processed with result')
    run_parser.add_argument('--limit', type=int, metavar='N',
                            help='Limit to N files (for testing)')
    run_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    # Check command
    check_parser = subparsers.add_parser('check', help='Validate configuration and show converters')
    check_parser.add_argument('-c', '--config', default='config.json', help='Configuration file')
    check_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    # Cache command
    cache_parser = subparsers.add_parser('cache', help='Show skip cache statistics')
    cache_parser.add_argument('-c', '--config', default='config.json', help='Configuration file')
    cache_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return EXIT_FATAL

    if parsed_args.command == 'run':
        return cmd_run(parsed_args)
    elif parsed_args.command == 'check':
        return cmd_check(parsed_args)
    elif parsed_args.command == 'cache':
        return cmd_cache(parsed_args)

    return EXIT_FATAL
