"""Storage configuration and backend selection.

Supports the local filesystem (development) and S3-compatible storage
(MinIO, AWS S3) behind the same port.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from ...config import Settings, get_settings
from ...domain.documents.ports.object_storage_port import ObjectStoragePort


@dataclass
class StorageConfig:
    """Configuration for object storage.

    Attributes:
        backend: "local" or "s3"
        local_root: Root directory for the local backend
        endpoint_url: S3 endpoint URL (None for AWS S3 regional endpoints)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: S3 bucket name
        region: AWS region
    """
    backend: str
    local_root: str
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    bucket_name: str
    region: str = "us-east-1"


def load_storage_config(settings: Optional[Settings] = None) -> StorageConfig:
    """Build storage configuration from application settings.

    Raises:
        ValueError: If the configuration is invalid
    """
    settings = settings or get_settings()
    config = StorageConfig(
        backend=settings.STORAGE_BACKEND.lower(),
        local_root=settings.LOCAL_STORAGE_ROOT,
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
    )
    validate_storage_config(config)
    return config


def validate_storage_config(config: StorageConfig) -> None:
    """Validate storage configuration.

    Raises:
        ValueError: If configuration is invalid
    """
    if config.backend not in ("local", "s3"):
        raise ValueError(f"Unknown STORAGE_BACKEND: {config.backend!r} (expected 'local' or 's3')")

    if config.backend == "local":
        if not config.local_root:
            raise ValueError("LOCAL_STORAGE_ROOT is required for the local backend")
        return

    if not config.access_key or not config.secret_key:
        raise ValueError("S3 credentials are required for the s3 backend")
    if not config.bucket_name:
        raise ValueError("S3_BUCKET_NAME is required for the s3 backend")
    if config.endpoint_url and not config.endpoint_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid endpoint_url: {config.endpoint_url}. Must start with http:// or https://"
        )


def build_storage(config: StorageConfig) -> ObjectStoragePort:
    """Instantiate the adapter selected by ``config.backend``."""
    if config.backend == "s3":
        from .s3_storage_adapter import S3StorageAdapter

        return S3StorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )

    from .local_storage_adapter import LocalStorageAdapter

    return LocalStorageAdapter(config.local_root)


@lru_cache()
def get_storage() -> ObjectStoragePort:
    """Process-wide storage adapter (also a FastAPI dependency)."""
    return build_storage(load_storage_config())
