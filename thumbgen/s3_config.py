"""
S3Config - Connection settings for an S3-compatible bucket (S3, MinIO, B2).
"""

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class S3Config:
    """
    S3 connection settings.

    Attributes:
        endpoint: Endpoint URL (None for AWS default)
        bucket: Bucket name
        prefix: Key prefix inside the bucket, without trailing slash
        access_key: Access key ID
        secret_key: Secret access key
        region: Region name
        verify_ssl: Verify TLS certificates
    """
    endpoint: Optional[str] = None
    bucket: Optional[str] = None
    prefix: str = ''
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: Optional[str] = None
    verify_ssl: bool = True

    def __post_init__(self):
        self.prefix = (self.prefix or '').strip('/')

    @classmethod
    def from_env(cls) -> 'S3Config':
        """Build configuration from S3_* environment variables."""
        verify = parse_bool(os.getenv('S3_VERIFY_SSL', 'true'))
        return cls(
            endpoint=os.getenv('S3_ENDPOINT') or None,
            bucket=os.getenv('S3_BUCKET') or None,
            prefix=os.getenv('S3_PREFIX', ''),
            access_key=os.getenv('S3_ACCESS_KEY') or None,
            secret_key=os.getenv('S3_SECRET_KEY') or None,
            region=os.getenv('S3_REGION') or None,
            verify_ssl=verify,
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'S3Config':
        """
        Create from a configuration block, falling back to the environment
        for anything the block leaves out.
        """
        env = cls.from_env()
        return cls(
            endpoint=data.get('endpoint') or env.endpoint,
            bucket=data.get('bucket') or env.bucket,
            prefix=data.get('prefix', env.prefix),
            access_key=data.get('access_key') or env.access_key,
            secret_key=data.get('secret_key') or env.secret_key,
            region=data.get('region') or env.region,
            verify_ssl=parse_bool(data.get('verify_ssl', env.verify_ssl)),
        )

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty if valid)."""
        errors = []
        if not self.bucket:
            errors.append("S3 bucket is required (config 'bucket' or S3_BUCKET)")
        if bool(self.access_key) != bool(self.secret_key):
            errors.append("S3 access key and secret key must be set together")
        if self.endpoint and not self.endpoint.startswith(('http://', 'https://')):
            errors.append(f"S3 endpoint must be an http(s) URL: {self.endpoint}")
        return errors

    def location(self) -> dict:
        """Storage location without credentials."""
        return {
            'type': 's3',
            'endpoint': self.endpoint,
            'bucket': self.bucket,
            'prefix': self.prefix,
        }


def parse_bool(value) -> bool:
    """Interpret a JSON or environment flag; 'false', 'no', 'off' and '0' are False."""
    if isinstance(value, str):
        return value.strip().lower() not in ('0', 'false', 'no', 'off')
    return bool(value)
