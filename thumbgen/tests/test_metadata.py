"""Tests for SourceMetadata and ProvenanceRecord."""

from thumbgen.metadata import ProvenanceRecord, SourceMetadata, format_bytes


class TestSourceMetadata:
    """Tests for SourceMetadata class."""

    def test_format_status(self):
        metadata = SourceMetadata(
            path='a/b.jpg',
            identity='s3://bucket/a/b.jpg',
            fingerprint='abc',
            content_type='image/jpeg',
            size=46285,
            modified='2026-01-01T00:00:00',
        )
        assert metadata.format_status() == 'a/b.jpg (image/jpeg, 45.2 KB)'


class TestProvenanceRecord:
    """Tests for ProvenanceRecord class."""

    def test_matches(self):
        record = ProvenanceRecord(path='b.webp', source_fingerprint='abc')
        assert record.matches('abc')
        assert not record.matches('def')

    def test_empty_fingerprint_never_matches(self):
        assert not ProvenanceRecord(path='b.webp', source_fingerprint='').matches('')


def test_format_bytes():
    assert format_bytes(None) == 'unknown'
    assert format_bytes(512) == '512.0 B'
    assert format_bytes(3 * 1024 * 1024) == '3.0 MB'
