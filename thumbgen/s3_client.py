"""
S3Client - S3/MinIO operations for scanning sources and writing artifacts.
"""

import logging
import mimetypes
import os
import threading
from typing import Dict, List, Optional, Set

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import NotFoundError, StorageIOError
from .metadata import ProvenanceRecord, SourceMetadata
from .s3_config import S3Config


GENERIC_CONTENT_TYPES = ('application/octet-stream', 'binary/octet-stream', '')


class S3Client:
    """
    Wrapper for S3/MinIO operations.

    Serves both as an input client (scan, fetch metadata, open readers) and
    as an output client (existence and provenance checks, uploads). Paths
    are relative to the configured prefix.
    """

    PROVENANCE_KEY = 'source-fingerprint'
    NOT_FOUND_CODES = ('404', 'NoSuchKey', 'NotFound')
    STORAGE_TYPE = 's3'

    def __init__(
        self,
        config: S3Config,
        known_extensions: Optional[List[str]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize S3 client.

        Args:
            config: S3 configuration
            known_extensions: Lower-case extensions (no dot) to include in scans;
                empty or None includes every object
            logger: Optional logger instance
        """
        self.config = config
        self.known_extensions: Set[str] = {e.lower().lstrip('.') for e in known_extensions or []}
        self.logger = logger or logging.getLogger(__name__)
        self._heads: Dict[str, dict] = {}
        self._heads_lock = threading.Lock()

        self._client = boto3.client(
            's3',
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'}
            ),
            verify=config.verify_ssl
        )

    def key_for(self, path: str) -> str:
        """Full object key for a prefix-relative path."""
        path = path.lstrip('/')
        if self.config.prefix:
            return f"{self.config.prefix}/{path}"
        return path

    def identity(self, path: str) -> str:
        """Backend-qualified identity of a source path."""
        return f"s3://{self.config.bucket}/{self.key_for(path)}"

    @classmethod
    def _is_not_found(cls, error: ClientError) -> bool:
        return error.response.get('Error', {}).get('Code') in cls.NOT_FOUND_CODES

    def _wants(self, key: str) -> bool:
        if key.endswith('/'):
            return False
        if not self.known_extensions:
            return True
        ext = os.path.splitext(key)[1].lower().lstrip('.')
        return ext in self.known_extensions

    # --- Input side ----------------------------------------------------------

    def scan(self) -> List[str]:
        """
        List all source objects under the prefix.

        Returns:
            Prefix-relative paths of objects with a known extension
        """
        prefix = f"{self.config.prefix}/" if self.config.prefix else ''
        paths = []
        count = 0

        try:
            paginator = self._client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self.config.bucket, Prefix=prefix):
                for obj in page.get('Contents', []):
                    count += 1
                    if count % 1000 == 0:
                        self.logger.info(f"  Scanned {count:,} objects ({len(paths):,} images)...")

                    key = obj['Key']
                    if self._wants(key):
                        paths.append(key[len(prefix):])
        except (ClientError, BotoCoreError) as e:
            raise StorageIOError(f"Failed to list s3://{self.config.bucket}/{prefix}: {e}") from e

        return paths

    def fetch_metadata(self, path: str) -> SourceMetadata:
        """Fetch metadata and content fingerprint of a source object."""
        key = self.key_for(path)
        try:
            response = self._client.head_object(Bucket=self.config.bucket, Key=key)
        except ClientError as e:
            if self._is_not_found(e):
                raise NotFoundError(f"Source object not found: {key}") from e
            raise StorageIOError(f"Failed to read metadata of {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageIOError(f"Failed to read metadata of {key}: {e}") from e

        content_type = response.get('ContentType', '')
        if content_type in GENERIC_CONTENT_TYPES:
            content_type = mimetypes.guess_type(path)[0] or 'application/octet-stream'

        etag = response.get('ETag', '').strip('"')

        return SourceMetadata(
            path=path,
            identity=self.identity(path),
            fingerprint=etag,
            content_type=content_type,
            size=response['ContentLength'],
            modified=response['LastModified'].isoformat(),
            storage_type=self.STORAGE_TYPE,
        )

    def open_reader(self, path: str):
        """Open a streaming reader on a source object. Caller must close it."""
        key = self.key_for(path)
        try:
            response = self._client.get_object(Bucket=self.config.bucket, Key=key)
        except ClientError as e:
            if self._is_not_found(e):
                raise NotFoundError(f"Source object not found: {key}") from e
            raise StorageIOError(f"Failed to open {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageIOError(f"Failed to open {key}: {e}") from e
        return response['Body']

    # --- Output side ---------------------------------------------------------

    def _head(self, key: str) -> Optional[dict]:
        try:
            return self._client.head_object(Bucket=self.config.bucket, Key=key)
        except ClientError as e:
            if self._is_not_found(e):
                return None
            raise StorageIOError(f"Failed to check {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageIOError(f"Failed to check {key}: {e}") from e

    def exists(self, path: str) -> bool:
        """
        Check if a non-empty artifact exists.

        The HEAD response of an existing artifact is kept for the
        read_provenance call that follows, so a staleness check costs one
        request.
        """
        key = self.key_for(path)
        response = self._head(key)
        if response is None or response.get('ContentLength', 0) <= 0:
            return False
        with self._heads_lock:
            self._heads[key] = response
        return True

    def read_provenance(self, path: str) -> ProvenanceRecord:
        """Read the provenance stored in an artifact's user metadata."""
        key = self.key_for(path)
        with self._heads_lock:
            response = self._heads.pop(key, None)
        if response is None:
            response = self._head(key)
        if response is None:
            raise NotFoundError(f"Artifact not found: {key}")

        return ProvenanceRecord(
            path=path,
            source_fingerprint=response.get('Metadata', {}).get(self.PROVENANCE_KEY, ''),
            size=response.get('ContentLength', 0),
            content_type=response.get('ContentType'),
            modified=response['LastModified'].isoformat() if response.get('LastModified') else None,
            storage_type=self.STORAGE_TYPE,
        )

    def write(
        self,
        path: str,
        data: bytes,
        content_type: str,
        source_fingerprint: str
    ) -> None:
        """
        Upload an artifact together with its provenance.

        A single PUT is atomic, so the object never appears half written.
        """
        key = self.key_for(path)
        with self._heads_lock:
            self._heads.pop(key, None)
        try:
            self._client.put_object(
                Bucket=self.config.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata={self.PROVENANCE_KEY: source_fingerprint},
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageIOError(f"Failed to upload {key}: {e}") from e
