"""
Scheduler - Decides which (file, converter) pairs need work and runs them
under two concurrency limits.
"""

import io
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .cancellation import CancellationToken
from .metadata import SourceMetadata
from .run_progress import RunProgress
from .run_report import RunReport
from .skip_cache import SkipCache
from .staleness import Staleness, check_staleness


@dataclass
class ConcurrencyLimits:
    """
    Attributes:
        queue_limit: Files concurrently deciding or holding work (>= 1)
        process_limit: Files concurrently reading content and converting (>= 1)
    """
    queue_limit: int = 8
    process_limit: int = 2

    def validate(self) -> List[str]:
        errors = []
        if not isinstance(self.queue_limit, int) or self.queue_limit < 1:
            errors.append(f"queue_limit must be an integer >= 1: {self.queue_limit}")
        if not isinstance(self.process_limit, int) or self.process_limit < 1:
            errors.append(f"process_limit must be an integer >= 1: {self.process_limit}")
        return errors


class Scheduler:
    """
    Runs every configured converter over a list of source paths, doing only
    the work whose artifacts are missing or stale.

    For each file: converters already in the skip cache are skipped with no
    I/O; otherwise the source metadata is fetched once and each remaining
    converter's artifact provenance is compared with it. Content is read
    once, and only if some converter needs to run.

    Each file holds a queue slot from dispatch until its outcome is
    resolved, and a process slot while its content is read and converted.
    """

    READ_CHUNK_SIZE = 1024 * 1024

    def __init__(
        self,
        input_client,
        skip_cache: SkipCache,
        limits: ConcurrencyLimits,
        token: CancellationToken,
        force_rewrite: bool = False,
        dry_run: bool = False,
        progress: Optional[RunProgress] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize scheduler.

        Args:
            input_client: Storage client the sources are read from
            skip_cache: Skip cache consulted and updated during the run
            limits: Queue and process concurrency limits
            token: Cancellation token checked before starting any work
            force_rewrite: Convert every pair regardless of cache or provenance
            dry_run: Decide but do not read content or write artifacts
            progress: Optional progress tracker
            logger: Optional logger instance
        """
        errors = limits.validate()
        if errors:
            raise ValueError("; ".join(errors))

        self.input = input_client
        self.cache = skip_cache
        self.limits = limits
        self.token = token
        self.force_rewrite = force_rewrite
        self.dry_run = dry_run
        self.progress = progress
        self.logger = logger or logging.getLogger(__name__)
        self.report = RunReport()
        self._process_slots = threading.BoundedSemaphore(limits.process_limit)

    def run(self, paths: Sequence[str], converters: Sequence) -> RunReport:
        """
        Process source paths with the given converters.

        Args:
            paths: Source paths as returned by the input client's scan
            converters: Converters, in the order they run for each file

        Returns:
            RunReport; its outcome is CANCELLED if the token was cancelled
        """
        self.report = RunReport(files_total=len(paths))

        if self.token.is_cancelled:
            self.logger.info("Cancellation requested before scheduling started")
            self.report.finish(cancelled=True)
            return self.report

        mode_str = " [DRY RUN]" if self.dry_run else ""
        force_str = " [FORCE REWRITE]" if self.force_rewrite else ""
        self.logger.info(
            f"Scheduling {len(paths)} files x {len(converters)} converters "
            f"(queue={self.limits.queue_limit}, process={self.limits.process_limit}){mode_str}{force_str}"
        )

        queue_slots = threading.BoundedSemaphore(self.limits.queue_limit)
        futures = []
        with ThreadPoolExecutor(
            max_workers=self.limits.queue_limit,
            thread_name_prefix='thumbgen'
        ) as executor:
            for index, path in enumerate(paths):
                if self.token.is_cancelled:
                    break
                queue_slots.acquire()
                if self.token.is_cancelled:
                    queue_slots.release()
                    break
                futures.append(
                    executor.submit(self._run_file, index, path, converters, queue_slots)
                )

            if len(futures) < len(paths):
                self.logger.info(
                    f"Cancellation requested, not dispatching {len(paths) - len(futures)} "
                    f"remaining files; waiting for in-flight work"
                )

            for future in futures:
                future.result()

        self.report.finish(cancelled=self.token.is_cancelled)

        self.logger.info(
            f"Run {self.report.outcome.value}: {self.report.converted} converted, "
            f"{self.report.up_to_date} up to date, {self.report.cached} cached, "
            f"{self.report.errors} errors ({self.report.elapsed_seconds:.1f}s)"
        )
        return self.report

    def _run_file(
        self,
        index: int,
        path: str,
        converters: Sequence,
        queue_slots: threading.BoundedSemaphore
    ) -> None:
        try:
            if self.token.is_cancelled:
                self.logger.debug(f"Skipping {path}: cancelled before start")
                return
            self._process_file(index, path, converters)
        finally:
            queue_slots.release()
            self.report.add_file_done()
            if self.progress:
                self.progress.on_progress_update(self.report)

    def _process_file(self, index: int, path: str, converters: Sequence) -> None:
        """Decide and run the work for one source file."""
        position = f"[{index + 1}/{self.report.files_total}]"
        file_id = self.input.identity(path)

        pending = []
        for conv in converters:
            if not self.force_rewrite and self.cache.has(file_id, conv.identity):
                self.logger.debug(f"{position} {path}: cached for converter {conv.identity}")
                self.report.add_cached()
                continue
            pending.append(conv)

        if not pending:
            if self.progress:
                self.progress.on_file_skipped(path, "cached")
            return

        try:
            metadata = self.input.fetch_metadata(path)
        except Exception as e:
            self._fail(path, f"Failed to read metadata: {e}")
            return

        needed = self._decide(position, metadata, pending)
        if not needed:
            if self.progress:
                self.progress.on_file_skipped(path, "up to date")
            return

        if self.dry_run:
            for conv, output_path, reason in needed:
                self.report.add_would_convert()
                if self.progress:
                    self.progress.on_dry_run(path, output_path, reason)
                else:
                    self.logger.info(f"[DRY RUN] Would write {output_path} ({reason})")
            return

        self._convert(position, metadata, needed)

    def _decide(
        self,
        position: str,
        metadata: SourceMetadata,
        pending: Sequence
    ) -> List[Tuple[object, str, str]]:
        """Staleness check per converter; returns (converter, output_path, reason) to run."""
        needed = []
        for conv in pending:
            output_path = conv.output_path_for(metadata.path)
            if self.force_rewrite:
                needed.append((conv, output_path, 'force rewrite'))
                continue

            try:
                state = check_staleness(metadata.fingerprint, conv, output_path)
            except Exception as e:
                self._fail(metadata.path, f"Failed to read provenance of {output_path}: {e}")
                continue

            if state is Staleness.UP_TO_DATE:
                self.logger.debug(
                    f"{position} {metadata.path}: {output_path} up to date "
                    f"(fingerprint {metadata.fingerprint})"
                )
                self.cache.mark_done(metadata.identity, conv.identity)
                self.report.add_up_to_date()
                continue

            needed.append((conv, output_path, state.value))
        return needed

    def _convert(
        self,
        position: str,
        metadata: SourceMetadata,
        needed: List[Tuple[object, str, str]]
    ) -> None:
        """Read the source once and run every needed converter on it."""
        if self.token.is_cancelled:
            self.logger.debug(f"Skipping conversion of {metadata.path}: cancelled")
            return

        with self._process_slots:
            if self.token.is_cancelled:
                self.logger.debug(f"Skipping conversion of {metadata.path}: cancelled")
                return

            self.logger.info(
                f"{position} Processing {metadata.format_status()}: "
                f"{len(needed)} converters, fingerprint {metadata.fingerprint}"
            )
            try:
                content = self._read_content(metadata.path)
            except Exception as e:
                self._fail(metadata.path, f"Failed to read content: {e}")
                return

            for conv, output_path, reason in needed:
                if self.token.is_cancelled:
                    self.logger.debug(f"Not starting {output_path}: cancelled")
                    break

                try:
                    size = conv.convert_and_write(metadata, io.BytesIO(content), output_path)
                except Exception as e:
                    self._fail(metadata.path, f"Failed to convert to {output_path}: {e}")
                    continue

                self.cache.mark_done(metadata.identity, conv.identity)
                self.report.add_converted(size)
                self.logger.info(f"{position} Wrote {output_path} ({size} bytes, {reason})")
                if self.progress:
                    self.progress.on_file_converted(metadata.path, output_path, size)

    def _read_content(self, path: str) -> bytes:
        """Read a source completely, looping until EOF."""
        reader = self.input.open_reader(path)
        try:
            chunks = []
            while True:
                chunk = reader.read(self.READ_CHUNK_SIZE)
                if not chunk:
                    break
                chunks.append(chunk)
            return b''.join(chunks)
        finally:
            reader.close()

    def _fail(self, path: str, message: str) -> None:
        self.logger.warning(f"{path}: {message}")
        self.report.add_error(f"{path}: {message}")
        if self.progress:
            self.progress.on_file_failed(path, message)
