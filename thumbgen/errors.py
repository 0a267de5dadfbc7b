"""
Exception types raised by thumbgen components.

Fatal errors (ConfigError, CacheError) abort a run before any work starts.
The remaining types describe a failure of a single file or converter and
are reported by the scheduler without stopping the run.
"""


class ThumbgenError(Exception):
    """Base class for all thumbgen errors."""


class ConfigError(ThumbgenError):
    """Configuration file is missing, unreadable or invalid."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])

    def __str__(self) -> str:
        if not self.errors:
            return super().__str__()
        return f"{super().__str__()}: " + "; ".join(self.errors)


class CacheError(ThumbgenError):
    """Skip cache file could not be read or written."""


class NotFoundError(ThumbgenError):
    """Object or file does not exist in storage."""


class StorageIOError(ThumbgenError):
    """Storage backend failed while listing, reading or writing."""


class UnsupportedFormatError(ThumbgenError):
    """Source content type cannot be decoded."""


class EncodeError(ThumbgenError):
    """Image could not be decoded, resized or encoded."""
