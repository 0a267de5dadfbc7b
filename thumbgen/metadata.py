"""
SourceMetadata and ProvenanceRecord - what a run knows about a source file
and about the artifact produced from it.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class SourceMetadata:
    """
    Metadata for a single source file, fetched fresh on every run.

    Attributes:
        path: Path relative to the input storage root/prefix
        identity: Backend-qualified URI, stable across runs
        fingerprint: Changes whenever the source content changes
        content_type: MIME type of the source (e.g., 'image/jpeg')
        size: Size in bytes
        modified: ISO timestamp of last modification
        storage_type: 'local' or 's3'
    """
    path: str
    identity: str
    fingerprint: str
    content_type: str
    size: int
    modified: str
    storage_type: str = 'local'

    def format_status(self) -> str:
        """
        Format a human-readable status string.

        Returns:
            Status string like "a/b.jpg (image/jpeg, 45.2 KB)"
        """
        return f"{self.path} ({self.content_type}, {format_bytes(self.size)})"


@dataclass
class ProvenanceRecord:
    """
    Provenance of a destination artifact.

    Attributes:
        path: Artifact path relative to the output storage root/prefix
        source_fingerprint: Fingerprint of the source the artifact was made from
            (empty when the backend stores no provenance)
        size: Artifact size in bytes
        content_type: Artifact MIME type
        modified: ISO timestamp of the artifact
        storage_type: 'local' or 's3'
    """
    path: str
    source_fingerprint: str
    size: int = 0
    content_type: Optional[str] = None
    modified: Optional[str] = None
    storage_type: str = 'local'

    def matches(self, fingerprint: str) -> bool:
        """True if the artifact was produced from a source with this fingerprint."""
        return bool(self.source_fingerprint) and self.source_fingerprint == fingerprint


def format_bytes(bytes_val: Optional[int]) -> str:
    """Format bytes as human-readable string."""
    if bytes_val is None:
        return "unknown"
    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_val < 1024:
            return f"{bytes_val:.1f} {unit}"
        bytes_val /= 1024
    return f"{bytes_val:.1f} TB"
