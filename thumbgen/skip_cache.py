"""
SkipCache - Durable record of (file identity, converter identity) pairs
already confirmed up to date.

The cache only saves staleness checks; artifact provenance stays the
source of truth, so losing or keeping a stale cache never produces wrong
output. Stored as CSV, one record per file identity:

    <file identity>,<converter identity>;<converter identity>;...
"""

import csv
import logging
import os
import tempfile
import threading
from typing import Dict, Optional, Set

from .errors import CacheError


class SkipCache:
    """
    Thread-safe skip cache with load/flush to a CSV file.
    """

    CONVERTER_SEPARATOR = ';'

    def __init__(self, path: Optional[str] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize skip cache.

        Args:
            path: CSV file path, or None to keep the cache in memory only
            logger: Optional logger instance
        """
        self.path = path
        self.logger = logger or logging.getLogger(__name__)
        self._entries: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        """True if the cache is persisted to a file."""
        return self.path is not None

    def load(self) -> Dict[str, Set[str]]:
        """
        Load entries from the cache file, merging them into memory.

        A missing file is an empty cache.

        Raises:
            CacheError: the file exists but cannot be read or parsed
        """
        if not self.enabled:
            return self.entries()

        try:
            with open(self.path, 'r', newline='') as f:
                loaded = self._parse(csv.reader(f))
        except FileNotFoundError:
            self.logger.info(f"No skip cache at {self.path}, starting empty")
            return self.entries()
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            raise CacheError(f"Failed to read skip cache {self.path}: {e}") from e

        with self._lock:
            for file_id, converter_ids in loaded.items():
                self._entries.setdefault(file_id, set()).update(converter_ids)

        self.logger.info(f"Loaded skip cache: {len(loaded):,} files from {self.path}")
        return self.entries()

    def _parse(self, reader) -> Dict[str, Set[str]]:
        loaded: Dict[str, Set[str]] = {}
        for record in reader:
            if not record:
                continue
            if len(record) != 2:
                raise CacheError(
                    f"Malformed skip cache {self.path} line {reader.line_num}: "
                    f"expected '<file identity>,<converter identities>', got {len(record)} fields"
                )
            file_id, joined = record
            converter_ids = {c for c in joined.split(self.CONVERTER_SEPARATOR) if c}
            loaded.setdefault(file_id, set()).update(converter_ids)
        return loaded

    def has(self, file_id: str, converter_id: str) -> bool:
        """True if the pair is known to be up to date."""
        with self._lock:
            return converter_id in self._entries.get(file_id, ())

    def mark_done(self, file_id: str, converter_id: str) -> None:
        """Record a pair as up to date."""
        with self._lock:
            self._entries.setdefault(file_id, set()).add(converter_id)

    def entries(self) -> Dict[str, Set[str]]:
        """Snapshot copy of all entries."""
        with self._lock:
            return {file_id: set(ids) for file_id, ids in self._entries.items()}

    @property
    def pair_count(self) -> int:
        """Total number of (file, converter) pairs."""
        with self._lock:
            return sum(len(ids) for ids in self._entries.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def flush(self) -> None:
        """
        Rewrite the cache file with every entry.

        Writes to a temporary file next to the cache and renames it into
        place, so a failed write leaves the previous file untouched.

        Raises:
            CacheError: the file cannot be written
        """
        if not self.enabled:
            return

        snapshot = self.entries()
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=directory,
                prefix=f".{os.path.basename(self.path)}.",
                suffix='.tmp'
            )
            with os.fdopen(fd, 'w', newline='') as f:
                writer = csv.writer(f, lineterminator='\n')
                for file_id in sorted(snapshot):
                    ids = sorted(snapshot[file_id])
                    writer.writerow([file_id, self.CONVERTER_SEPARATOR.join(ids)])
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise CacheError(f"Failed to write skip cache {self.path}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)

        self.logger.info(f"Wrote skip cache: {len(snapshot):,} files to {self.path}")
