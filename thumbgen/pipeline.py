"""
Pipeline - Wires a configuration into a complete run: load the skip cache,
build clients and converters, scan, schedule, flush the cache.
"""

import logging
from typing import List, Optional

from .cancellation import CancellationToken
from .config import Config
from .converter import Converter, create_converter
from .run_progress import RunProgress
from .run_report import RunReport
from .scheduler import ConcurrencyLimits, Scheduler
from .skip_cache import SkipCache
from .storage import create_storage_client, describe_storage


def build_converters(config: Config, logger: Optional[logging.Logger] = None) -> List[Converter]:
    """Create every configured converter, in configuration order."""
    return [create_converter(conv_config, logger=logger) for conv_config in config.converters]


def _cancelled_report(logger: logging.Logger, phase: str) -> RunReport:
    logger.info(f"Cancellation requested {phase}, stopping")
    report = RunReport()
    report.finish(cancelled=True)
    return report


def run_pipeline(
    config: Config,
    token: CancellationToken,
    dry_run: bool = False,
    force_rewrite: Optional[bool] = None,
    limit: Optional[int] = None,
    progress: Optional[RunProgress] = None,
    logger: Optional[logging.Logger] = None
) -> RunReport:
    """
    Run every converter over every source file in the configuration.

    Args:
        config: Validated configuration
        token: Cancellation token
        dry_run: Decide but write nothing (the skip cache is not flushed)
        force_rewrite: Override config.force_rewrite when not None
        limit: Only process the first N scanned files (for testing)
        progress: Optional progress tracker
        logger: Optional logger instance

    Returns:
        RunReport of the run

    Raises:
        ConfigError: a storage backend or converter cannot be configured
        CacheError: the skip cache cannot be read or written
        StorageIOError: the input cannot be scanned
    """
    logger = logger or logging.getLogger(__name__)

    if token.is_cancelled:
        return _cancelled_report(logger, "before start")

    cache = SkipCache(config.input.cache_path, logger=logger)
    cache.load()

    input_client = create_storage_client(
        config.input.storage,
        known_extensions=config.input.known_extensions,
        logger=logger,
    )
    converters = build_converters(config, logger=logger)

    logger.info(f"Input: {describe_storage(config.input.storage)}")
    for conv in converters:
        logger.info(f"Converter {conv.identity}: {conv.describe()}")

    if token.is_cancelled:
        return _cancelled_report(logger, "after initialization")

    logger.info("Scanning input...")
    paths = input_client.scan()
    logger.info(f"Scanned {len(paths)} files")

    if limit:
        paths = paths[:limit]
        logger.info(f"Test mode: limiting to {len(paths)} files")

    if token.is_cancelled:
        return _cancelled_report(logger, "after scan")

    scheduler = Scheduler(
        input_client=input_client,
        skip_cache=cache,
        limits=ConcurrencyLimits(
            queue_limit=config.max_queue_threads,
            process_limit=config.max_process_threads,
        ),
        token=token,
        force_rewrite=config.force_rewrite if force_rewrite is None else force_rewrite,
        dry_run=dry_run,
        progress=progress,
        logger=logger,
    )
    report = scheduler.run(paths, converters)

    if dry_run:
        logger.info("Dry run: skip cache not written")
    else:
        cache.flush()

    return report
