"""
Incremental image conversion between storage backends.

Scans a source storage backend, runs each configured converter (resize and
re-encode) over every image, and writes artifacts to the converter's own
destination backend. Work is redone only when a source's fingerprint no
longer matches the provenance recorded on its artifact, or when a
converter's settings change.

Supports both S3 and local filesystem storage.
"""

__version__ = "1.0.0"

from .errors import (
    ThumbgenError,
    ConfigError,
    CacheError,
    NotFoundError,
    StorageIOError,
    UnsupportedFormatError,
    EncodeError,
)
from .s3_config import S3Config
from .s3_client import S3Client
from .local_client import LocalConfig, LocalClient
from .metadata import SourceMetadata, ProvenanceRecord
from .config import Config, ConverterConfig, WebpConfig, JpegConfig, SizeConfig, load_config
from .thumbnail_generator import ThumbnailGenerator
from .converter import Converter, create_converter, converter_identity
from .staleness import Staleness, check_staleness
from .skip_cache import SkipCache
from .cancellation import CancellationToken, install_signal_handlers
from .run_report import RunReport, RunOutcome
from .run_progress import RunProgress
from .scheduler import ConcurrencyLimits, Scheduler
from .pipeline import run_pipeline
from .reporter import Reporter

__all__ = [
    "ThumbgenError",
    "ConfigError",
    "CacheError",
    "NotFoundError",
    "StorageIOError",
    "UnsupportedFormatError",
    "EncodeError",
    "S3Config",
    "S3Client",
    "LocalConfig",
    "LocalClient",
    "SourceMetadata",
    "ProvenanceRecord",
    "Config",
    "ConverterConfig",
    "WebpConfig",
    "JpegConfig",
    "SizeConfig",
    "load_config",
    "ThumbnailGenerator",
    "Converter",
    "create_converter",
    "converter_identity",
    "Staleness",
    "check_staleness",
    "SkipCache",
    "CancellationToken",
    "install_signal_handlers",
    "RunReport",
    "RunOutcome",
    "RunProgress",
    "ConcurrencyLimits",
    "Scheduler",
    "run_pipeline",
    "Reporter",
]
