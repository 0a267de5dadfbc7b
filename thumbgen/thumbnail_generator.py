"""
ThumbnailGenerator - Handles image decoding, resizing and re-encoding.
"""

import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .errors import EncodeError, UnsupportedFormatError


class ThumbnailGenerator:
    """
    Resizes images to fit a bounding box and encodes them using Pillow.
    """

    INPUT_CONTENT_TYPES = {
        'image/jpeg': 'JPEG',
        'image/png': 'PNG',
        'image/webp': 'WEBP',
        'image/gif': 'GIF',
        'image/tiff': 'TIFF',
        'image/bmp': 'BMP',
    }

    OUTPUT_FORMATS = {
        'WEBP': 'image/webp',
        'JPEG': 'image/jpeg',
    }

    def __init__(
        self,
        output_format: str = 'WEBP',
        max_width: int = 0,
        max_height: int = 0,
        quality: int = 80,
        lossless: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize thumbnail generator.

        Args:
            output_format: 'WEBP' or 'JPEG'
            max_width: Maximum width in pixels (0 = unbounded)
            max_height: Maximum height in pixels (0 = unbounded)
            quality: Encoder quality, 1-100
            lossless: Lossless WebP encoding
            logger: Optional logger instance
        """
        output_format = output_format.upper()
        if output_format not in self.OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {output_format}")
        self.output_format = output_format
        self.max_width = max_width
        self.max_height = max_height
        self.quality = quality
        self.lossless = lossless
        self.logger = logger or logging.getLogger(__name__)

    @property
    def content_type(self) -> str:
        """MIME type of generated images."""
        return self.OUTPUT_FORMATS[self.output_format]

    def generate(self, image_data: bytes, content_type: str) -> Tuple[bytes, str]:
        """
        Generate a resized, re-encoded image.

        Args:
            image_data: Original image as bytes
            content_type: MIME type of the original (e.g., 'image/png')

        Returns:
            Tuple of (image_bytes, content_type)

        Raises:
            UnsupportedFormatError: content type cannot be decoded
            EncodeError: decoding, resizing or encoding failed
        """
        source_format = self.INPUT_CONTENT_TYPES.get((content_type or '').lower())
        if source_format is None:
            raise UnsupportedFormatError(f"Unsupported content type: {content_type}")

        try:
            img = Image.open(io.BytesIO(image_data), formats=[source_format])
            img.load()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise EncodeError(f"Failed to decode {content_type} image: {e}") from e

        try:
            img = self._convert_color_mode(img)
            target = self._target_box(img.size)
            if target != img.size:
                img.thumbnail(target, Image.Resampling.LANCZOS)
                self.logger.debug(f"Resized image to {img.size[0]}x{img.size[1]}")

            output = io.BytesIO()
            if self.output_format == 'WEBP':
                img.save(output, format='WEBP', quality=self.quality, lossless=self.lossless)
            else:
                img.save(output, format='JPEG', quality=self.quality, optimize=True)
            return output.getvalue(), self.content_type

        except (OSError, ValueError) as e:
            raise EncodeError(f"Failed to encode {self.output_format} image: {e}") from e

    def _target_box(self, size: Tuple[int, int]) -> Tuple[int, int]:
        """Bounding box for Image.thumbnail; never larger than the image."""
        width, height = size
        max_w = min(self.max_width, width) if self.max_width > 0 else width
        max_h = min(self.max_height, height) if self.max_height > 0 else height
        return max_w, max_h

    def _convert_color_mode(self, img: Image.Image) -> Image.Image:
        """Convert image to a color mode the output format can store."""
        if self.output_format == 'WEBP':
            if img.mode in ('RGB', 'RGBA'):
                return img
            if img.mode in ('LA', 'P', 'PA') or 'transparency' in img.info:
                return img.convert('RGBA')
            return img.convert('RGB')

        if img.mode in ('RGBA', 'LA', 'P', 'PA'):
            img = img.convert('RGBA')
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode != 'RGB':
            return img.convert('RGB')
        return img
