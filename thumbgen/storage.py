"""
Storage client construction for the supported backends.
"""

import logging
from typing import List, Optional, Union

from .errors import ConfigError
from .local_client import LocalClient, LocalConfig
from .s3_client import S3Client
from .s3_config import S3Config

# Type alias for storage clients
StorageClient = Union[S3Client, LocalClient]


def create_storage_client(
    config: Union[S3Config, LocalConfig],
    known_extensions: Optional[List[str]] = None,
    logger: Optional[logging.Logger] = None
) -> StorageClient:
    """
    Create the client for a storage configuration variant.

    Args:
        config: S3Config or LocalConfig
        known_extensions: Extensions the client scans for (input side only)
        logger: Optional logger instance
    """
    errors = config.validate()
    if errors:
        raise ConfigError("Storage configuration invalid", errors)

    if isinstance(config, LocalConfig):
        return LocalClient(config, known_extensions=known_extensions, logger=logger)
    if isinstance(config, S3Config):
        return S3Client(config, known_extensions=known_extensions, logger=logger)
    raise ConfigError(f"Unsupported storage configuration: {type(config).__name__}")


def describe_storage(config: Union[S3Config, LocalConfig]) -> str:
    """One-line description of a storage location for logs and reports."""
    if isinstance(config, LocalConfig):
        return f"local:{config.location()['root_path']}"
    location = f"s3://{config.bucket}/{config.prefix}".rstrip('/')
    if config.endpoint:
        return f"{location} ({config.endpoint})"
    return location
