"""
Converter - One conversion pipeline: a ThumbnailGenerator writing to an
output storage client, with a stable identity derived from its settings.
"""

import json
import logging
import posixpath
import zlib
from typing import BinaryIO, Optional

from .config import ConverterConfig, JpegConfig, WebpConfig
from .metadata import ProvenanceRecord, SourceMetadata
from .storage import StorageClient, create_storage_client, describe_storage
from .thumbnail_generator import ThumbnailGenerator


def converter_identity(config: ConverterConfig) -> str:
    """
    Fingerprint of a converter's effective configuration.

    CRC-32 of the canonical JSON of type, encoder settings and output
    location, as a decimal string. Credentials are not part of it.
    """
    payload = json.dumps(config.identity_payload(), sort_keys=True, separators=(',', ':'))
    return str(zlib.crc32(payload.encode('utf-8')))


class Converter:
    """
    Converts source images into artifacts on an output storage backend.
    """

    def __init__(
        self,
        config: ConverterConfig,
        output_client: StorageClient,
        thumbnail_generator: ThumbnailGenerator,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize converter.

        Args:
            config: Converter configuration
            output_client: Storage client the artifacts are written to
            thumbnail_generator: Resizer/encoder for this converter's settings
            logger: Optional logger instance
        """
        self.config = config
        self.output = output_client
        self.thumb_gen = thumbnail_generator
        self.logger = logger or logging.getLogger(__name__)
        self.identity = converter_identity(config)

    @property
    def type(self) -> str:
        return self.config.type

    @property
    def extension(self) -> str:
        return self.config.encoder.extension

    def describe(self) -> str:
        """Human-readable summary of the converter."""
        size = self.config.encoder.size
        bounds = f"{size.max_width or '*'}x{size.max_height or '*'}"
        return (
            f"{self.type} q={self.config.encoder.quality} {bounds} "
            f"-> {describe_storage(self.config.output)} [.{self.extension}]"
        )

    def output_path_for(self, input_path: str) -> str:
        """Artifact path for a source path: the extension is replaced."""
        root, _ = posixpath.splitext(input_path)
        return f"{root}.{self.extension}"

    def exists(self, output_path: str) -> bool:
        return self.output.exists(output_path)

    def read_provenance(self, output_path: str) -> ProvenanceRecord:
        return self.output.read_provenance(output_path)

    def convert_and_write(
        self,
        metadata: SourceMetadata,
        reader: BinaryIO,
        output_path: str
    ) -> int:
        """
        Convert a source image and write the artifact with its provenance.

        The artifact is fully encoded in memory before anything is written.

        Returns:
            Number of bytes written
        """
        image_data = reader.read()
        thumb_data, content_type = self.thumb_gen.generate(image_data, metadata.content_type)
        self.logger.debug(f"Writing {output_path} ({len(thumb_data)} bytes)")
        self.output.write(output_path, thumb_data, content_type, metadata.fingerprint)
        return len(thumb_data)


def create_converter(config: ConverterConfig, logger: Optional[logging.Logger] = None) -> Converter:
    """Build a Converter and its output client from configuration."""
    encoder = config.encoder
    if isinstance(encoder, WebpConfig):
        thumb_gen = ThumbnailGenerator(
            output_format='WEBP',
            max_width=encoder.size.max_width,
            max_height=encoder.size.max_height,
            quality=encoder.quality,
            lossless=encoder.lossless,
            logger=logger,
        )
    elif isinstance(encoder, JpegConfig):
        thumb_gen = ThumbnailGenerator(
            output_format='JPEG',
            max_width=encoder.size.max_width,
            max_height=encoder.size.max_height,
            quality=encoder.quality,
            logger=logger,
        )
    else:
        raise TypeError(f"Unsupported encoder configuration: {type(encoder).__name__}")

    output_client = create_storage_client(config.output, logger=logger)
    return Converter(config, output_client, thumb_gen, logger=logger)
