"""Object Storage Port - Domain interface for document content storage.

This port defines the contract for storing and retrieving version content.
Adapters implement it for the local filesystem or S3-compatible buckets.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO
from uuid import UUID


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


@dataclass
class StoredFile:
    """Metadata for a stored version file.

    Attributes:
        storage_key: Unique key (format: {owner_id}/{year}/{month}/{token}-{filename})
        sha256: SHA256 hash of file content (hex format)
        size_bytes: File size in bytes
        mime_type: MIME type of the file (e.g., 'application/pdf')
    """
    storage_key: str
    sha256: str
    size_bytes: int
    mime_type: str


class ObjectStoragePort(ABC):
    """Port interface for document content storage.

    Key Design Principles:
    - Every stored file gets its own key; versions never share content, so
      deleting a quarantined version cannot affect any other version
    - SHA256 calculated during upload for integrity
    - Idempotent deletes (deleting a missing key returns False)
    """

    @abstractmethod
    async def store_file(
        self,
        file: BinaryIO,
        owner_id: UUID,
        filename: str,
        mime_type: str,
    ) -> StoredFile:
        """Store a file and return its metadata.

        Raises:
            StorageError: If the backend write fails
            ValueError: If file is empty
        """
        pass

    @abstractmethod
    async def retrieve_file(self, storage_key: str) -> BinaryIO:
        """Open a stored file for reading (caller must close).

        Raises:
            FileNotFoundError: If file doesn't exist in storage
            StorageError: If retrieval fails
        """
        pass

    @abstractmethod
    async def delete_file(self, storage_key: str) -> bool:
        """Delete a stored file.

        Returns:
            bool: True if file was deleted, False if it didn't exist

        Raises:
            StorageError: If deletion fails
        """
        pass

    @abstractmethod
    async def file_exists(self, storage_key: str) -> bool:
        """Check if a file exists in storage."""
        pass

    @abstractmethod
    async def verify_ready(self) -> bool:
        """Check the backend is reachable and writable (used by /health).

        Raises:
            StorageError: If the backend is not usable
        """
        pass
