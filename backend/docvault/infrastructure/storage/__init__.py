"""Object storage adapters and the configured-backend factory."""

from .storage_config import StorageConfig, get_storage, load_storage_config

__all__ = ["StorageConfig", "get_storage", "load_storage_config"]
