"""Unit tests for storage configuration and backend selection"""

import pytest

from docvault.config import Settings
from docvault.infrastructure.storage.local_storage_adapter import LocalStorageAdapter
from docvault.infrastructure.storage.storage_config import (
    StorageConfig,
    build_storage,
    load_storage_config,
    validate_storage_config,
)


def s3_config(**overrides):
    values = dict(
        backend="s3",
        local_root="uploads",
        endpoint_url="http://localhost:9000",
        access_key="minioadmin",
        secret_key="minioadmin",
        bucket_name="docvault",
    )
    values.update(overrides)
    return StorageConfig(**values)


def test_load_local_config(tmp_path):
    config = load_storage_config(Settings(STORAGE_BACKEND="LOCAL", LOCAL_STORAGE_ROOT=str(tmp_path)))

    assert config.backend == "local"
    assert isinstance(build_storage(config), LocalStorageAdapter)


def test_unknown_backend_rejected():
    with pytest.raises(ValueError, match="Unknown STORAGE_BACKEND"):
        load_storage_config(Settings(STORAGE_BACKEND="ftp"))


def test_valid_s3_config():
    validate_storage_config(s3_config())


def test_s3_requires_credentials():
    with pytest.raises(ValueError, match="credentials"):
        validate_storage_config(s3_config(secret_key=""))


def test_s3_requires_bucket():
    with pytest.raises(ValueError, match="S3_BUCKET_NAME"):
        validate_storage_config(s3_config(bucket_name=""))


def test_s3_endpoint_must_be_http():
    with pytest.raises(ValueError, match="Invalid endpoint_url"):
        validate_storage_config(s3_config(endpoint_url="localhost:9000"))


def test_empty_endpoint_means_aws():
    config = load_storage_config(Settings(STORAGE_BACKEND="s3", S3_ENDPOINT_URL=""))

    assert config.endpoint_url is None
