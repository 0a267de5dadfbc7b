"""
Pytest fixtures for thumbgen tests.
"""

import io
import threading
import time

import pytest

from thumbgen.errors import EncodeError, NotFoundError, StorageIOError
from thumbgen.metadata import ProvenanceRecord, SourceMetadata


class FakeInputClient:
    """In-memory input storage that counts every call."""

    def __init__(self, files=None):
        # path -> (content, fingerprint, content_type)
        self.files = dict(files or {})
        self.fail_metadata = set()
        self.fail_read = set()
        self.metadata_calls = []
        self.reader_calls = []
        self._lock = threading.Lock()

    def put(self, path, content, fingerprint, content_type='image/png'):
        self.files[path] = (content, fingerprint, content_type)

    def identity(self, path):
        return f"mem://input/{path}"

    def scan(self):
        return sorted(self.files)

    def fetch_metadata(self, path):
        with self._lock:
            self.metadata_calls.append(path)
        if path in self.fail_metadata:
            raise StorageIOError(f"metadata unavailable: {path}")
        if path not in self.files:
            raise NotFoundError(f"missing: {path}")
        content, fingerprint, content_type = self.files[path]
        return SourceMetadata(
            path=path,
            identity=self.identity(path),
            fingerprint=fingerprint,
            content_type=content_type,
            size=len(content),
            modified='2026-01-01T00:00:00',
            storage_type='memory',
        )

    def open_reader(self, path):
        with self._lock:
            self.reader_calls.append(path)
        if path in self.fail_read:
            raise StorageIOError(f"read failed: {path}")
        return io.BytesIO(self.files[path][0])


class FakeOutputClient:
    """In-memory artifact storage that records provenance with each write."""

    def __init__(self):
        # path -> (data, content_type, source_fingerprint)
        self.objects = {}
        self.fail_provenance = set()
        self.writes = []
        self._lock = threading.Lock()

    def exists(self, path):
        return path in self.objects

    def read_provenance(self, path):
        if path in self.fail_provenance:
            raise StorageIOError(f"provenance unreadable: {path}")
        data, content_type, fingerprint = self.objects[path]
        return ProvenanceRecord(
            path=path,
            source_fingerprint=fingerprint,
            size=len(data),
            content_type=content_type,
            storage_type='memory',
        )

    def write(self, path, data, content_type, source_fingerprint):
        with self._lock:
            self.objects[path] = (data, content_type, source_fingerprint)
            self.writes.append(path)


class FakeConverter:
    """
    Converter double with the interface the scheduler uses.

    Output is the source content prefixed with the converter identity, so
    tests can tell which converter produced an artifact.
    """

    def __init__(self, identity='1001', extension='webp', output=None, delay=0.0):
        self.identity = identity
        self.extension = extension
        self.output = output or FakeOutputClient()
        self.delay = delay
        self.fail_paths = set()
        self.hook = None
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def describe(self):
        return f"fake {self.identity} [.{self.extension}]"

    def output_path_for(self, input_path):
        root = input_path.rsplit('.', 1)[0]
        return f"{root}.{self.extension}"

    def exists(self, output_path):
        return self.output.exists(output_path)

    def read_provenance(self, output_path):
        return self.output.read_provenance(output_path)

    def convert_and_write(self, metadata, reader, output_path):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.hook:
                self.hook(metadata)
            if self.delay:
                time.sleep(self.delay)
            if metadata.path in self.fail_paths:
                raise EncodeError(f"cannot encode {metadata.path}")
            data = f"{self.identity}:".encode() + reader.read()
            self.output.write(output_path, data, 'image/webp', metadata.fingerprint)
            return len(data)
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def input_client():
    """Fixture providing an input client with three sources."""
    client = FakeInputClient()
    client.put('a.png', b'aaaa', 'fp-a')
    client.put('b.jpg', b'bbbb', 'fp-b', 'image/jpeg')
    client.put('c.png', b'cccc', 'fp-c')
    return client


@pytest.fixture
def converter():
    """Fixture providing a fake converter with empty output storage."""
    return FakeConverter()


@pytest.fixture
def s3_config():
    """Fixture providing S3 configuration."""
    from thumbgen.s3_config import S3Config

    return S3Config(
        endpoint='https://test-endpoint.example.com:9000',
        bucket='test-bucket',
        prefix='attachments',
        access_key='test-access-key',
        secret_key='test-secret-key',
        region='us-east-1',
    )


@pytest.fixture
def mock_s3_client(s3_config):
    """Fixture providing an S3Client with mocked boto3."""
    from unittest.mock import MagicMock, patch
    from thumbgen.s3_client import S3Client

    mock_boto = MagicMock()
    with patch('thumbgen.s3_client.boto3.client', return_value=mock_boto):
        client = S3Client(s3_config, known_extensions=['jpg', 'png'])
        # Store reference to the mock for test setup
        client._mock_boto = mock_boto
        yield client


@pytest.fixture
def sample_image_bytes():
    """Fixture providing sample JPEG image bytes."""
    from PIL import Image

    img = Image.new('RGB', (100, 100), color='red')
    buffer = io.BytesIO()
    img.save(buffer, format='JPEG')
    return buffer.getvalue()


@pytest.fixture
def sample_png_bytes():
    """Fixture providing sample PNG image bytes with transparency."""
    from PIL import Image

    img = Image.new('RGBA', (120, 60), color=(255, 0, 0, 128))
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    return buffer.getvalue()


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    import logging
    return logging.getLogger('test')
