"""
RunProgress - Tracks and displays conversion progress.
"""

import logging
import threading
from typing import Optional

from .metadata import format_bytes
from .run_report import RunReport


class RunProgress:
    """
    Displays run progress with optional per-file output.

    Called from worker threads; output is serialized with a lock.
    """

    def __init__(
        self,
        show_files: bool = False,
        log_interval: int = 100,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize progress tracker.

        Args:
            show_files: If True, print each file as it's processed
            log_interval: Log summary progress every N files (when not show_files)
            logger: Optional logger instance
        """
        self.show_files = show_files
        self.log_interval = log_interval
        self.logger = logger or logging.getLogger(__name__)
        self.last_logged = 0
        self._lock = threading.Lock()

    def _print(self, text: str) -> None:
        with self._lock:
            print(text, flush=True)

    def on_file_converted(self, path: str, output_path: str, size: int) -> None:
        """Called when an artifact has been written."""
        if self.show_files:
            self._print(f"  [OK] {path} -> {output_path} ({format_bytes(size)})")

    def on_file_skipped(self, path: str, reason: str) -> None:
        """Called when a file needs no work."""
        if self.show_files:
            self._print(f"  [SKIP] {path} -> {reason}")

    def on_file_failed(self, path: str, error: str) -> None:
        """Called when a unit of work for a file fails."""
        if self.show_files:
            self._print(f"  [ERROR] {path} -> {error}")

    def on_dry_run(self, path: str, output_path: str, reason: str) -> None:
        """Called in dry-run mode for each artifact that would be written."""
        if self.show_files:
            self._print(f"  [DRY RUN] {path} -> would write {output_path} ({reason})")

    def on_progress_update(self, report: RunReport) -> None:
        """
        Called after each file is resolved to report overall progress.

        Args:
            report: Current run report
        """
        if self.show_files:
            return

        with self._lock:
            done = report.files_done
            if done - self.last_logged < self.log_interval:
                return
            self.last_logged = done

        eta_minutes = report.estimated_remaining_seconds / 60
        self.logger.info(
            f"Progress: {done}/{report.files_total} files, {report.converted} converted, "
            f"{report.errors} errors ({report.rate_per_minute:.1f}/min, "
            f"~{eta_minutes:.0f}m remaining)"
        )
