"""
LocalClient - Local filesystem operations mirroring S3Client.
"""

import errno
import json
import logging
import mimetypes
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Set

from .errors import NotFoundError, StorageIOError
from .metadata import ProvenanceRecord, SourceMetadata


@dataclass
class LocalConfig:
    """
    Local filesystem storage settings.

    Attributes:
        root_path: Directory that paths are relative to
        max_depth: How many directory levels below root to scan (0 = root only)
        dir_mode: Octal permission string for created directories
        file_mode: Octal permission string for written files
        provenance: How artifact provenance is stored: 'sidecar', 'xattr' or 'none'
    """
    root_path: str
    max_depth: int = 16
    dir_mode: str = '755'
    file_mode: str = '644'
    provenance: str = 'sidecar'

    PROVENANCE_MODES = ('sidecar', 'xattr', 'none')

    @classmethod
    def from_dict(cls, data: dict) -> 'LocalConfig':
        return cls(
            root_path=data.get('root_path', ''),
            max_depth=data.get('max_depth', 16),
            dir_mode=str(data.get('dir_mode', '755')),
            file_mode=str(data.get('file_mode', '644')),
            provenance=data.get('provenance', 'sidecar'),
        )

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty if valid)."""
        errors = []
        if not self.root_path:
            errors.append("Local root_path is required")
        if not isinstance(self.max_depth, int) or self.max_depth < 0:
            errors.append(f"Local max_depth must be an integer >= 0: {self.max_depth}")
        for name in ('dir_mode', 'file_mode'):
            value = getattr(self, name)
            try:
                int(value, 8)
            except ValueError:
                errors.append(f"Local {name} must be an octal number: {value}")
        if self.provenance not in self.PROVENANCE_MODES:
            errors.append(
                f"Local provenance must be one of {', '.join(self.PROVENANCE_MODES)}: {self.provenance}"
            )
        elif self.provenance == 'xattr' and not hasattr(os, 'setxattr'):
            errors.append("Local provenance 'xattr' is not supported on this platform")
        return errors

    def location(self) -> dict:
        """Storage location description."""
        return {
            'type': 'local',
            'root_path': os.path.abspath(self.root_path),
            'provenance': self.provenance,
        }


class LocalClient:
    """
    Local filesystem client.

    Serves both as an input client and as an output client. Paths are
    POSIX-style and relative to the configured root.
    """

    XATTR_NAME = 'user.thumbgen.source-fingerprint'
    SIDECAR_SUFFIX = '.provenance.json'
    STORAGE_TYPE = 'local'

    def __init__(
        self,
        config: LocalConfig,
        known_extensions: Optional[List[str]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize local client.

        Args:
            config: Local storage configuration
            known_extensions: Lower-case extensions (no dot) to include in scans;
                empty or None includes every file that has an extension
            logger: Optional logger instance
        """
        self.config = config
        self.root = os.path.abspath(config.root_path)
        self.known_extensions: Set[str] = {e.lower().lstrip('.') for e in known_extensions or []}
        self.file_mode = int(config.file_mode, 8)
        self.dir_mode = int(config.dir_mode, 8)
        self.logger = logger or logging.getLogger(__name__)

    def full_path(self, path: str) -> str:
        """Absolute filesystem path for a root-relative path."""
        return os.path.join(self.root, *path.strip('/').split('/'))

    def identity(self, path: str) -> str:
        """Backend-qualified identity of a source path."""
        return f"file://{self.full_path(path)}"

    def _wants(self, filename: str) -> bool:
        if filename.endswith(self.SIDECAR_SUFFIX):
            return False
        ext = os.path.splitext(filename)[1].lower().lstrip('.')
        if not ext:
            return False
        return not self.known_extensions or ext in self.known_extensions

    # --- Input side ----------------------------------------------------------

    def scan(self) -> List[str]:
        """
        Walk the root directory down to max_depth.

        Returns:
            Sorted root-relative paths of files with a known extension
        """
        if not os.path.isdir(self.root):
            raise StorageIOError(f"Input root is not a readable directory: {self.root}")
        paths: List[str] = []
        self._scan_dir('', self.config.max_depth, paths)
        return paths

    def _scan_dir(self, rel_dir: str, depth: int, paths: List[str]) -> None:
        abs_dir = self.full_path(rel_dir) if rel_dir else self.root
        try:
            entries = sorted(os.scandir(abs_dir), key=lambda e: e.name)
        except OSError as e:
            raise StorageIOError(f"Failed to read directory {abs_dir}: {e}") from e

        for entry in entries:
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            if entry.is_dir(follow_symlinks=False):
                if depth > 0:
                    self._scan_dir(rel_path, depth - 1, paths)
            elif entry.is_file() and self._wants(entry.name):
                paths.append(rel_path)

    def fetch_metadata(self, path: str) -> SourceMetadata:
        """Stat a source file. The fingerprint is its mtime in hex seconds."""
        full = self.full_path(path)
        try:
            st = os.stat(full)
        except FileNotFoundError as e:
            raise NotFoundError(f"Source file not found: {full}") from e
        except OSError as e:
            raise StorageIOError(f"Failed to stat {full}: {e}") from e

        return SourceMetadata(
            path=path,
            identity=self.identity(path),
            fingerprint=format(int(st.st_mtime), 'x'),
            content_type=mimetypes.guess_type(full)[0] or 'application/octet-stream',
            size=st.st_size,
            modified=datetime.fromtimestamp(st.st_mtime).isoformat(),
            storage_type=self.STORAGE_TYPE,
        )

    def open_reader(self, path: str):
        """Open a source file for binary reading. Caller must close it."""
        full = self.full_path(path)
        try:
            return open(full, 'rb')
        except FileNotFoundError as e:
            raise NotFoundError(f"Source file not found: {full}") from e
        except OSError as e:
            raise StorageIOError(f"Failed to open {full}: {e}") from e

    # --- Output side ---------------------------------------------------------

    def exists(self, path: str) -> bool:
        """Check if an artifact file exists."""
        return os.path.isfile(self.full_path(path))

    def read_provenance(self, path: str) -> ProvenanceRecord:
        """Read an artifact's provenance using the configured implementation."""
        full = self.full_path(path)
        try:
            st = os.stat(full)
        except FileNotFoundError as e:
            raise NotFoundError(f"Artifact not found: {full}") from e
        except OSError as e:
            raise StorageIOError(f"Failed to stat {full}: {e}") from e

        if self.config.provenance == 'xattr':
            fingerprint = self._read_xattr(full)
        elif self.config.provenance == 'sidecar':
            fingerprint = self._read_sidecar(full)
        else:
            fingerprint = ''

        return ProvenanceRecord(
            path=path,
            source_fingerprint=fingerprint,
            size=st.st_size,
            content_type=mimetypes.guess_type(full)[0],
            modified=datetime.fromtimestamp(st.st_mtime).isoformat(),
            storage_type=self.STORAGE_TYPE,
        )

    def _read_xattr(self, full: str) -> str:
        try:
            return os.getxattr(full, self.XATTR_NAME).decode('utf-8')
        except OSError as e:
            if e.errno in (errno.ENODATA, getattr(errno, 'ENOATTR', errno.ENODATA)):
                return ''
            raise StorageIOError(f"Failed to read provenance attribute of {full}: {e}") from e

    def _read_sidecar(self, full: str) -> str:
        sidecar = full + self.SIDECAR_SUFFIX
        try:
            with open(sidecar, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            return ''
        except (OSError, ValueError) as e:
            raise StorageIOError(f"Failed to read provenance file {sidecar}: {e}") from e
        return str(data.get('source_fingerprint', ''))

    def write(
        self,
        path: str,
        data: bytes,
        content_type: str,
        source_fingerprint: str
    ) -> None:
        """
        Write an artifact together with its provenance.

        The artifact is written to a temporary file in the target directory
        and renamed into place, so a reader never sees a partial file. The
        sidecar, if used, is replaced only after the artifact.
        """
        full = self.full_path(path)
        directory = os.path.dirname(full)
        try:
            os.makedirs(directory, mode=self.dir_mode, exist_ok=True)
            if self.config.provenance == 'xattr':
                self._atomic_write(full, data, xattr=source_fingerprint)
            else:
                self._atomic_write(full, data)
            if self.config.provenance == 'sidecar':
                sidecar = json.dumps({
                    'source_fingerprint': source_fingerprint,
                    'content_type': content_type,
                    'written_at': datetime.now().isoformat(),
                }, indent=2).encode('utf-8')
                self._atomic_write(full + self.SIDECAR_SUFFIX, sidecar)
        except OSError as e:
            raise StorageIOError(f"Failed to write {full}: {e}") from e

    def _atomic_write(self, full: str, data: bytes, xattr: Optional[str] = None) -> None:
        fd, tmp_path = tempfile.mkstemp(
            dir=os.path.dirname(full),
            prefix=f".{os.path.basename(full)}.",
            suffix='.tmp'
        )
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, self.file_mode)
            if xattr:
                os.setxattr(tmp_path, self.XATTR_NAME, xattr.encode('utf-8'))
            os.replace(tmp_path, full)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
