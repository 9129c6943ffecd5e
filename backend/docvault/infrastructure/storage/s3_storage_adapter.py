"""S3 implementation of ObjectStoragePort (AWS S3, MinIO and compatibles).

Each version gets its own object; the key layout matches the local backend
so content can be moved between backends without rewriting rows.
"""

import hashlib
import logging
from typing import BinaryIO, Optional
from uuid import UUID

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from ...domain.documents.ports.object_storage_port import (
    ObjectStoragePort,
    StorageError,
    StoredFile,
)
from .keys import generate_storage_key

logger = logging.getLogger(__name__)

# head_object reports a missing key as "404", get_object as "NoSuchKey"
NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "Unknown")


class S3StorageAdapter(ObjectStoragePort):
    """Version content in a single S3 bucket.

    Object metadata carries the content SHA256 and the owning user so an
    operator can audit a bucket without the database.

    Example:
        config = load_storage_config()
        storage = build_storage(config)
        stored = await storage.store_file(f, owner_id, "contract.pdf", "application/pdf")
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
    ):
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")

        self.bucket_name = bucket_name
        logger.info(f"S3 storage ready: bucket={bucket_name}, endpoint={endpoint_url or 'AWS S3'}")

    def _call(self, operation: str, storage_key: str, **kwargs):
        """Run one client call against the bucket, mapping errors.

        Raises:
            FileNotFoundError: The key does not exist
            StorageError: Any other client error
        """
        method = getattr(self.s3_client, operation)
        try:
            return method(Bucket=self.bucket_name, Key=storage_key, **kwargs)
        except ClientError as e:
            code = _error_code(e)
            if code in NOT_FOUND_CODES:
                raise FileNotFoundError(f"File not found: {storage_key}")
            logger.error(f"S3 {operation} failed: storage_key={storage_key}, error={code}")
            raise StorageError(f"S3 {operation} failed: {code}")

    async def store_file(
        self,
        file: BinaryIO,
        owner_id: UUID,
        filename: str,
        mime_type: str,
    ) -> StoredFile:
        content = file.read()
        if not content:
            raise ValueError("Cannot store empty file")

        storage_key = generate_storage_key(owner_id, filename)
        sha256_hex = hashlib.sha256(content).hexdigest()

        self._call(
            "put_object",
            storage_key,
            Body=content,
            ContentType=mime_type,
            Metadata={"sha256": sha256_hex, "owner_id": str(owner_id)},
        )

        logger.info(f"Stored file: storage_key={storage_key}, size={len(content)}")
        return StoredFile(
            storage_key=storage_key,
            sha256=sha256_hex,
            size_bytes=len(content),
            mime_type=mime_type,
        )

    async def retrieve_file(self, storage_key: str) -> BinaryIO:
        # StreamingBody; the caller closes it
        return self._call("get_object", storage_key)["Body"]

    async def delete_file(self, storage_key: str) -> bool:
        # delete_object succeeds for missing keys, so look first to report it
        if not await self.file_exists(storage_key):
            logger.info(f"File not found for deletion: storage_key={storage_key}")
            return False

        self._call("delete_object", storage_key)
        logger.info(f"Deleted file: storage_key={storage_key}")
        return True

    async def file_exists(self, storage_key: str) -> bool:
        try:
            self._call("head_object", storage_key)
        except FileNotFoundError:
            return False
        return True

    async def verify_ready(self) -> bool:
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            code = _error_code(e)
            if code in NOT_FOUND_CODES:
                raise StorageError(
                    f"Bucket '{self.bucket_name}' does not exist. Create it first or update S3_BUCKET_NAME."
                )
            raise StorageError(f"Failed to verify bucket: {code}")
        return True
