"""Tests for Converter class."""

import io

import pytest
from PIL import Image

from thumbgen.config import ConverterConfig, JpegConfig, SizeConfig, WebpConfig
from thumbgen.converter import Converter, converter_identity, create_converter
from thumbgen.errors import UnsupportedFormatError
from thumbgen.local_client import LocalClient, LocalConfig
from thumbgen.metadata import SourceMetadata
from thumbgen.s3_config import S3Config
from thumbgen.thumbnail_generator import ThumbnailGenerator


def s3_output(**kwargs):
    defaults = dict(endpoint='http://minio:9000', bucket='thumbs', prefix='webp')
    defaults.update(kwargs)
    return S3Config(**defaults)


class TestConverterIdentity:
    """Tests for converter_identity."""

    def test_stable(self):
        a = ConverterConfig(WebpConfig(quality=70), s3_output())
        b = ConverterConfig(WebpConfig(quality=70), s3_output())
        assert converter_identity(a) == converter_identity(b)
        assert converter_identity(a).isdigit()

    def test_changes_with_encoder_settings(self):
        base = converter_identity(ConverterConfig(WebpConfig(quality=70), s3_output()))
        assert converter_identity(ConverterConfig(WebpConfig(quality=71), s3_output())) != base
        resized = WebpConfig(quality=70, size=SizeConfig(max_width=100))
        assert converter_identity(ConverterConfig(resized, s3_output())) != base

    def test_changes_with_type(self):
        webp = converter_identity(ConverterConfig(WebpConfig(quality=80), s3_output()))
        jpeg = converter_identity(ConverterConfig(JpegConfig(quality=80), s3_output()))
        assert webp != jpeg

    def test_changes_with_output_location(self):
        a = converter_identity(ConverterConfig(WebpConfig(), s3_output(prefix='a')))
        b = converter_identity(ConverterConfig(WebpConfig(), s3_output(prefix='b')))
        assert a != b

    def test_ignores_credentials(self):
        a = converter_identity(ConverterConfig(WebpConfig(), s3_output(access_key='k1', secret_key='s1')))
        b = converter_identity(ConverterConfig(WebpConfig(), s3_output(access_key='k2', secret_key='s2')))
        assert a == b


class TestConverter:
    """Tests for converting and writing artifacts."""

    @pytest.fixture
    def local_converter(self, tmp_path, logger):
        config = ConverterConfig(
            WebpConfig(quality=60, size=SizeConfig(max_width=50)),
            LocalConfig(root_path=str(tmp_path / 'out')),
        )
        return create_converter(config, logger=logger)

    def test_output_path_for(self, local_converter):
        assert local_converter.output_path_for('a/b/photo.JPG') == 'a/b/photo.webp'
        assert local_converter.output_path_for('photo.tar.png') == 'photo.tar.webp'
        assert local_converter.output_path_for('dir.v2/photo') == 'dir.v2/photo.webp'

    def test_describe(self, local_converter):
        description = local_converter.describe()
        assert 'webp' in description
        assert '50x*' in description

    def test_convert_and_write(self, local_converter, sample_png_bytes):
        metadata = SourceMetadata(
            path='x/pic.png',
            identity='file:///in/x/pic.png',
            fingerprint='65f1a2b3',
            content_type='image/png',
            size=len(sample_png_bytes),
            modified='2026-01-01T00:00:00',
        )

        size = local_converter.convert_and_write(metadata, io.BytesIO(sample_png_bytes), 'x/pic.webp')

        assert size > 0
        assert local_converter.exists('x/pic.webp')
        assert local_converter.read_provenance('x/pic.webp').source_fingerprint == '65f1a2b3'
        with open(local_converter.output.full_path('x/pic.webp'), 'rb') as f:
            img = Image.open(f)
            assert img.format == 'WEBP'
            assert img.size == (50, 25)

    def test_unsupported_source_writes_nothing(self, local_converter):
        metadata = SourceMetadata(
            path='doc.pdf',
            identity='file:///in/doc.pdf',
            fingerprint='1',
            content_type='application/pdf',
            size=3,
            modified='2026-01-01T00:00:00',
        )

        with pytest.raises(UnsupportedFormatError):
            local_converter.convert_and_write(metadata, io.BytesIO(b'pdf'), 'doc.webp')

        assert not local_converter.exists('doc.webp')

    def test_create_jpeg_converter(self, tmp_path):
        config = ConverterConfig(JpegConfig(quality=90), LocalConfig(root_path=str(tmp_path)))
        conv = create_converter(config)

        assert isinstance(conv, Converter)
        assert isinstance(conv.output, LocalClient)
        assert isinstance(conv.thumb_gen, ThumbnailGenerator)
        assert conv.thumb_gen.output_format == 'JPEG'
        assert conv.type == 'jpeg'
        assert conv.extension == 'jpg'
