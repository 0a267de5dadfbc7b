"""
RunReport - Statistics and outcome of a conversion run.
"""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List


class RunOutcome(Enum):
    """Terminal state of a run."""
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


@dataclass
class RunReport:
    """
    Statistics for a conversion run.

    Counters are updated from worker threads through the add_* methods.

    Attributes:
        files_total: Files scanned and scheduled
        files_done: Files whose outcome is fully resolved
        converted: (file, converter) pairs converted and written
        up_to_date: Pairs found current by a provenance check
        cached: Pairs skipped on a skip cache hit
        would_convert: Pairs that would be converted (dry run)
        errors: Failed units
        bytes_written: Total bytes of artifacts written
        start_time: Start timestamp
        error_details: Error messages
        outcome: COMPLETED or CANCELLED
    """
    files_total: int = 0
    files_done: int = 0
    converted: int = 0
    up_to_date: int = 0
    cached: int = 0
    would_convert: int = 0
    errors: int = 0
    bytes_written: int = 0
    start_time: float = field(default_factory=time.time)
    end_time: float = 0.0
    error_details: List[str] = field(default_factory=list)
    outcome: RunOutcome = RunOutcome.COMPLETED
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_converted(self, size: int) -> None:
        with self._lock:
            self.converted += 1
            self.bytes_written += size

    def add_up_to_date(self) -> None:
        with self._lock:
            self.up_to_date += 1

    def add_cached(self, count: int = 1) -> None:
        with self._lock:
            self.cached += count

    def add_would_convert(self) -> None:
        with self._lock:
            self.would_convert += 1

    def add_error(self, message: str) -> None:
        with self._lock:
            self.errors += 1
            self.error_details.append(message)

    def add_file_done(self) -> None:
        with self._lock:
            self.files_done += 1

    def finish(self, cancelled: bool) -> None:
        """Record the end of the run."""
        self.end_time = time.time()
        self.outcome = RunOutcome.CANCELLED if cancelled else RunOutcome.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.outcome is RunOutcome.CANCELLED

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        end = self.end_time or time.time()
        return end - self.start_time

    @property
    def rate_per_minute(self) -> float:
        """Conversions per minute."""
        if self.elapsed_seconds > 0:
            return self.converted / self.elapsed_seconds * 60
        return 0.0

    @property
    def remaining_files(self) -> int:
        return self.files_total - self.files_done

    @property
    def estimated_remaining_seconds(self) -> float:
        """Estimated time remaining, based on files resolved so far."""
        if self.files_done > 0 and self.elapsed_seconds > 0:
            return self.remaining_files * self.elapsed_seconds / self.files_done
        return 0.0
