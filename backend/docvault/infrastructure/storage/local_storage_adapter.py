"""Local filesystem implementation of ObjectStoragePort.

Default backend for development and single-node deployments. Keys map to
paths below a root directory; the key layout is the same as on S3.
"""

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Union
from uuid import UUID

from ...domain.documents.ports.object_storage_port import (
    ObjectStoragePort,
    StorageError,
    StoredFile,
)
from .keys import generate_storage_key

logger = logging.getLogger(__name__)


class LocalStorageAdapter(ObjectStoragePort):
    """Stores version content as files under ``root``."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def _path_for(self, storage_key: str) -> Path:
        path = (self.root / storage_key).resolve()
        # Keys come from the database, but never let one escape the root
        if self.root not in path.parents:
            raise StorageError(f"Invalid storage key: {storage_key}")
        return path

    async def store_file(
        self,
        file: BinaryIO,
        owner_id: UUID,
        filename: str,
        mime_type: str,
    ) -> StoredFile:
        storage_key = generate_storage_key(owner_id, filename)
        path = self._path_for(storage_key)

        sha256_hash = hashlib.sha256()
        size_bytes = 0
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Write to a temp file first so a failed upload leaves nothing behind
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".upload-")
            with os.fdopen(fd, "wb") as out:
                while True:
                    chunk = file.read(8192)
                    if not chunk:
                        break
                    sha256_hash.update(chunk)
                    out.write(chunk)
                    size_bytes += len(chunk)

            if size_bytes == 0:
                raise ValueError("Cannot store empty file")

            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            logger.error(f"Local write failed: storage_key={storage_key}, error={e}")
            raise StorageError(f"Failed to store file: {e}")
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.info(f"Stored file: storage_key={storage_key}, size={size_bytes}")
        return StoredFile(
            storage_key=storage_key,
            sha256=sha256_hash.hexdigest(),
            size_bytes=size_bytes,
            mime_type=mime_type,
        )

    async def retrieve_file(self, storage_key: str) -> BinaryIO:
        path = self._path_for(storage_key)
        try:
            return open(path, "rb")
        except FileNotFoundError:
            logger.warning(f"File not found: storage_key={storage_key}")
            raise FileNotFoundError(f"File not found: {storage_key}")
        except OSError as e:
            raise StorageError(f"Failed to retrieve file: {e}")

    async def delete_file(self, storage_key: str) -> bool:
        path = self._path_for(storage_key)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.info(f"File not found for deletion: storage_key={storage_key}")
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete file: {e}")

        logger.info(f"Deleted file: storage_key={storage_key}")
        return True

    async def file_exists(self, storage_key: str) -> bool:
        return self._path_for(storage_key).is_file()

    async def verify_ready(self) -> bool:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Storage root not usable: {e}")
        if not os.access(self.root, os.W_OK):
            raise StorageError(f"Storage root not writable: {self.root}")
        return True
