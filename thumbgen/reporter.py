"""
Reporter - Generates human-readable reports for runs, configuration and
the skip cache.
"""

import logging
import sys
from typing import Optional, Sequence, TextIO

from .config import Config
from .run_report import RunReport
from .skip_cache import SkipCache
from .storage import describe_storage


class Reporter:
    """
    Generates human-readable reports.
    """

    def __init__(
        self,
        output: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize reporter.

        Args:
            output: Output stream (default: stdout)
            logger: Optional logger instance
        """
        self.output = output or sys.stdout
        self.logger = logger or logging.getLogger(__name__)

    def _print(self, text: str = "") -> None:
        """Print to output stream."""
        print(text, file=self.output)

    def _format_bytes(self, bytes_val: int) -> str:
        """Format bytes as human-readable string."""
        for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
            if bytes_val < 1024:
                return f"{bytes_val:.1f} {unit}"
            bytes_val /= 1024
        return f"{bytes_val:.1f} PB"

    def _format_duration(self, seconds: float) -> str:
        """Format duration as human-readable string."""
        if seconds < 60:
            return f"{seconds:.1f} seconds"
        elif seconds < 3600:
            return f"{seconds / 60:.1f} minutes"
        else:
            return f"{seconds / 3600:.1f} hours"

    def report_run(self, report: RunReport, max_errors: int = 20) -> None:
        """Summary of a finished run."""
        self._print("=" * 70)
        self._print("CONVERSION RUN SUMMARY")
        self._print("=" * 70)
        self._print()

        if report.cancelled:
            self._print("⚠️  Run was CANCELLED; in-flight work finished, nothing new started.")
            self._print()

        self._print("Files:")
        self._print(f"  Scheduled:            {report.files_total:,}")
        self._print(f"  Resolved:             {report.files_done:,}")
        if report.remaining_files > 0:
            self._print(f"  Not started:          {report.remaining_files:,}")
        self._print()

        self._print("Artifacts:")
        self._print(f"  Converted:            {report.converted:,}")
        self._print(f"  Up to date:           {report.up_to_date:,}")
        self._print(f"  Skipped (cache):      {report.cached:,}")
        if report.would_convert:
            self._print(f"  Would convert:        {report.would_convert:,}")
        self._print(f"  Errors:               {report.errors:,}")
        self._print(f"  Bytes written:        {self._format_bytes(report.bytes_written)}")
        self._print()

        self._print(f"Time:   {self._format_duration(report.elapsed_seconds)}")
        self._print(f"Rate:   {report.rate_per_minute:.1f}/min")
        self._print()

        if report.error_details:
            self.report_errors(report, max_errors)

    def report_errors(self, report: RunReport, limit: int = 20) -> None:
        """List error messages from a run."""
        self._print("Errors:")
        self._print("-" * 70)
        for message in report.error_details[:limit]:
            self._print(f"  {message}")
        remaining = len(report.error_details) - limit
        if remaining > 0:
            self._print(f"  ... and {remaining:,} more")
        self._print()

    def report_config(self, config: Config, converters: Sequence) -> None:
        """Describe a validated configuration and its converter identities."""
        self._print("=" * 70)
        self._print("CONFIGURATION")
        self._print("=" * 70)
        self._print()

        self._print("Input:")
        self._print(f"  Storage:       {describe_storage(config.input.storage)}")
        extensions = ', '.join(config.input.known_extensions) or 'all'
        self._print(f"  Extensions:    {extensions}")
        self._print(f"  Skip cache:    {config.input.cache_path or 'disabled'}")
        self._print()

        self._print("Concurrency:")
        self._print(f"  Queue threads:   {config.max_queue_threads}")
        self._print(f"  Process threads: {config.max_process_threads}")
        self._print(f"  Force rewrite:   {'yes' if config.force_rewrite else 'no'}")
        self._print()

        self._print("Converters:")
        self._print("-" * 70)
        self._print(f"{'#':<4} {'Identity':<12} Description")
        self._print("-" * 70)
        for i, conv in enumerate(converters):
            self._print(f"{i:<4} {conv.identity:<12} {conv.describe()}")
        self._print("-" * 70)
        self._print()

    def report_cache(self, cache: SkipCache, converters: Sequence = ()) -> None:
        """Statistics of a skip cache, per converter identity."""
        self._print("=" * 70)
        self._print("SKIP CACHE")
        self._print("=" * 70)
        self._print()

        if not cache.enabled:
            self._print("Skip cache is disabled (no cache_path configured).")
            self._print()
            return

        entries = cache.entries()
        self._print(f"  Path:          {cache.path}")
        self._print(f"  Files:         {len(entries):,}")
        self._print(f"  Pairs:         {sum(len(ids) for ids in entries.values()):,}")
        self._print()

        counts = {}
        for ids in entries.values():
            for converter_id in ids:
                counts[converter_id] = counts.get(converter_id, 0) + 1

        configured = {conv.identity for conv in converters}
        self._print(f"{'Converter':<14} {'Files':>10}  Status")
        self._print("-" * 40)
        for converter_id in sorted(counts):
            status = "configured" if converter_id in configured else "obsolete"
            self._print(f"{converter_id:<14} {counts[converter_id]:>10,}  {status}")
        for converter_id in sorted(configured - set(counts)):
            self._print(f"{converter_id:<14} {0:>10,}  configured")
        self._print()
