"""
Config - Run configuration loaded from a JSON file.

Storage backends and converter kinds are closed sets of tagged variants:
a block {"type": ..., "config": {...}} is resolved once, at load time, into
the dataclass for that variant.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .errors import ConfigError
from .local_client import LocalConfig
from .s3_config import S3Config


StorageConfig = Union[S3Config, LocalConfig]

STORAGE_TYPES = {
    's3': S3Config,
    'local': LocalConfig,
}

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


@dataclass
class SizeConfig:
    """Bounding box for resizing; 0 leaves that dimension unbounded."""
    max_width: int = 0
    max_height: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> 'SizeConfig':
        return cls(
            max_width=data.get('max_width', 0),
            max_height=data.get('max_height', 0),
        )

    def validate(self) -> List[str]:
        errors = []
        for name in ('max_width', 'max_height'):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                errors.append(f"size.{name} must be an integer >= 0: {value}")
        return errors


@dataclass
class WebpConfig:
    """WebP encoder settings."""
    quality: int = 80
    size: SizeConfig = field(default_factory=SizeConfig)
    extension: str = 'webp'
    lossless: bool = False

    KIND = 'webp'

    @classmethod
    def from_dict(cls, data: dict) -> 'WebpConfig':
        return cls(
            quality=data.get('quality', 80),
            size=SizeConfig.from_dict(data.get('size', {})),
            extension=data.get('extension', 'webp'),
            lossless=data.get('lossless', False),
        )

    def validate(self) -> List[str]:
        errors = _validate_quality(self.quality) + self.size.validate()
        if not self.extension or '.' in self.extension or '/' in self.extension:
            errors.append(f"extension must be a bare extension like 'webp': {self.extension!r}")
        return errors

    def to_dict(self) -> dict:
        return {
            'quality': self.quality,
            'size': {'max_width': self.size.max_width, 'max_height': self.size.max_height},
            'extension': self.extension,
            'lossless': self.lossless,
        }


@dataclass
class JpegConfig:
    """JPEG encoder settings."""
    quality: int = 85
    size: SizeConfig = field(default_factory=SizeConfig)
    extension: str = 'jpg'

    KIND = 'jpeg'

    @classmethod
    def from_dict(cls, data: dict) -> 'JpegConfig':
        return cls(
            quality=data.get('quality', 85),
            size=SizeConfig.from_dict(data.get('size', {})),
            extension=data.get('extension', 'jpg'),
        )

    def validate(self) -> List[str]:
        errors = _validate_quality(self.quality) + self.size.validate()
        if not self.extension or '.' in self.extension or '/' in self.extension:
            errors.append(f"extension must be a bare extension like 'jpg': {self.extension!r}")
        return errors

    def to_dict(self) -> dict:
        return {
            'quality': self.quality,
            'size': {'max_width': self.size.max_width, 'max_height': self.size.max_height},
            'extension': self.extension,
        }


EncoderConfig = Union[WebpConfig, JpegConfig]

CONVERTER_TYPES = {
    'webp': WebpConfig,
    'jpeg': JpegConfig,
}


def _validate_quality(quality) -> List[str]:
    if not isinstance(quality, int) or not 1 <= quality <= 100:
        return [f"quality must be an integer between 1 and 100: {quality}"]
    return []


@dataclass
class ConverterConfig:
    """
    One conversion pipeline: encoder settings plus where its output goes.

    Attributes:
        encoder: WebpConfig or JpegConfig
        output: Storage configuration of the destination
    """
    encoder: EncoderConfig
    output: StorageConfig

    @property
    def type(self) -> str:
        return self.encoder.KIND

    def validate(self) -> List[str]:
        prefix = f"converter '{self.type}'"
        return [f"{prefix}: {e}" for e in self.encoder.validate() + self.output.validate()]

    def identity_payload(self) -> dict:
        """Effective configuration that determines the converter identity."""
        return {
            'type': self.type,
            'config': self.encoder.to_dict(),
            'output': self.output.location(),
        }


@dataclass
class InputConfig:
    """
    Source side of a run.

    Attributes:
        storage: Storage configuration of the sources
        known_extensions: Lower-case extensions to scan for (empty = all)
        cache_path: Skip cache CSV path, None to disable the durable cache
    """
    storage: StorageConfig
    known_extensions: List[str] = field(default_factory=list)
    cache_path: Optional[str] = None

    def validate(self) -> List[str]:
        errors = [f"input: {e}" for e in self.storage.validate()]
        for ext in self.known_extensions:
            if not isinstance(ext, str) or not ext or '.' in ext:
                errors.append(f"input: known_extensions entries must be bare extensions: {ext!r}")
        return errors


@dataclass
class Config:
    """
    Complete run configuration.

    Attributes:
        input: Source configuration
        converters: Conversion pipelines, in the order they run for each file
        max_queue_threads: Files concurrently deciding/holding work
        max_process_threads: Files concurrently converting
        force_rewrite: Regenerate every artifact regardless of provenance
        log_level: Logging level name
    """
    input: InputConfig
    converters: List[ConverterConfig] = field(default_factory=list)
    max_queue_threads: int = 8
    max_process_threads: int = 2
    force_rewrite: bool = False
    log_level: str = 'INFO'

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty if valid)."""
        errors = self.input.validate()
        if not self.converters:
            errors.append("at least one converter is required")
        for conv in self.converters:
            errors.extend(conv.validate())
        for name in ('max_queue_threads', 'max_process_threads'):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                errors.append(f"{name} must be an integer >= 1: {value}")
        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}: {self.log_level}")
        return errors

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        """Resolve a parsed JSON document into typed configuration."""
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")

        input_data = data.get('input')
        if not isinstance(input_data, dict):
            raise ConfigError("Configuration is missing the 'input' block")

        input_config = InputConfig(
            storage=parse_storage(input_data.get('storage'), 'input.storage'),
            known_extensions=[e.lower() if isinstance(e, str) else e
                              for e in input_data.get('known_extensions', [])],
            cache_path=input_data.get('cache_path') or None,
        )

        converters = []
        for i, conv_data in enumerate(data.get('converters', [])):
            converters.append(parse_converter(conv_data, f"converters[{i}]"))

        return cls(
            input=input_config,
            converters=converters,
            max_queue_threads=data.get('max_queue_threads', 8),
            max_process_threads=data.get('max_process_threads', 2),
            force_rewrite=bool(data.get('force_rewrite', False)),
            log_level=str(data.get('log_level', 'INFO')),
        )


def parse_storage(data, where: str) -> StorageConfig:
    """Resolve a {"type", "config"} storage block into its variant."""
    if not isinstance(data, dict):
        raise ConfigError(f"{where}: storage block is required")
    storage_type = data.get('type')
    variant = STORAGE_TYPES.get(storage_type)
    if variant is None:
        raise ConfigError(
            f"{where}: unsupported storage type {storage_type!r} "
            f"(expected one of {', '.join(STORAGE_TYPES)})"
        )
    return variant.from_dict(data.get('config') or {})


def parse_converter(data, where: str) -> ConverterConfig:
    """Resolve a {"type", "config", "output"} converter block into its variant."""
    if not isinstance(data, dict):
        raise ConfigError(f"{where}: converter block must be an object")
    conv_type = data.get('type')
    variant = CONVERTER_TYPES.get(conv_type)
    if variant is None:
        raise ConfigError(
            f"{where}: unsupported converter type {conv_type!r} "
            f"(expected one of {', '.join(CONVERTER_TYPES)})"
        )
    output = data.get('output')
    if not isinstance(output, dict):
        raise ConfigError(f"{where}: output block is required")
    return ConverterConfig(
        encoder=variant.from_dict(data.get('config') or {}),
        output=parse_storage(output.get('storage'), f"{where}.output.storage"),
    )


def load_config(filepath: str) -> Config:
    """
    Load and validate configuration from a JSON file.

    Environment variable references ($VAR or ${VAR}) are expanded before
    parsing.

    Raises:
        ConfigError: file unreadable, invalid JSON or invalid settings
    """
    try:
        with open(filepath, 'r') as f:
            raw = f.read()
    except OSError as e:
        raise ConfigError(f"Cannot read configuration {filepath}: {e}") from e

    try:
        data = json.loads(os.path.expandvars(raw))
    except ValueError as e:
        raise ConfigError(f"Invalid JSON in {filepath}: {e}") from e

    config = Config.from_dict(data)
    errors = config.validate()
    if errors:
        raise ConfigError(f"Invalid configuration {filepath}", errors)
    return config
