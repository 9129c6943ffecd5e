"""Unit tests for the local filesystem storage adapter"""

import hashlib
import io
from datetime import datetime, timezone
from uuid import UUID

import pytest

from docvault.domain.documents.ports.object_storage_port import StorageError, StoredFile
from docvault.infrastructure.storage.keys import generate_storage_key
from docvault.infrastructure.storage.local_storage_adapter import LocalStorageAdapter

OWNER_ID = UUID("a1b2c3d4-e5f6-7890-abcd-ef1234567890")


@pytest.fixture
def adapter(tmp_path):
    return LocalStorageAdapter(tmp_path / "vault")


class TestStorageKeys:

    def test_layout(self):
        key = generate_storage_key(OWNER_ID, "Q3 report.pdf", now=datetime(2026, 3, 7, tzinfo=timezone.utc))

        owner, year, month, name = key.split("/")
        assert owner == str(OWNER_ID)
        assert (year, month) == ("2026", "03")
        token, filename = name.split("-", 1)
        assert len(token) == 16
        assert filename == "Q3_report.pdf"

    def test_keys_are_unique_for_identical_uploads(self):
        assert generate_storage_key(OWNER_ID, "a.pdf") != generate_storage_key(OWNER_ID, "a.pdf")


class TestLocalStorage:

    @pytest.mark.asyncio
    async def test_store_and_retrieve(self, adapter):
        content = b"X" * (20 * 1024)

        stored = await adapter.store_file(io.BytesIO(content), OWNER_ID, "big.pdf", "application/pdf")

        assert isinstance(stored, StoredFile)
        assert stored.storage_key.startswith(str(OWNER_ID))
        assert stored.size_bytes == len(content)
        assert stored.sha256 == hashlib.sha256(content).hexdigest()

        stream = await adapter.retrieve_file(stored.storage_key)
        try:
            assert stream.read() == content
        finally:
            stream.close()

    @pytest.mark.asyncio
    async def test_identical_content_gets_separate_objects(self, adapter):
        first = await adapter.store_file(io.BytesIO(b"same"), OWNER_ID, "a.pdf", "application/pdf")
        second = await adapter.store_file(io.BytesIO(b"same"), OWNER_ID, "a.pdf", "application/pdf")

        assert first.storage_key != second.storage_key
        await adapter.delete_file(first.storage_key)
        assert await adapter.file_exists(second.storage_key) is True

    @pytest.mark.asyncio
    async def test_empty_file_rejected_without_leftovers(self, adapter):
        with pytest.raises(ValueError, match="Cannot store empty file"):
            await adapter.store_file(io.BytesIO(b""), OWNER_ID, "empty.pdf", "application/pdf")

        assert [p for p in adapter.root.rglob("*") if p.is_file()] == []

    @pytest.mark.asyncio
    async def test_retrieve_missing(self, adapter):
        with pytest.raises(FileNotFoundError):
            await adapter.retrieve_file(f"{OWNER_ID}/2026/01/missing.pdf")

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, adapter):
        stored = await adapter.store_file(io.BytesIO(b"data"), OWNER_ID, "a.pdf", "application/pdf")

        assert await adapter.delete_file(stored.storage_key) is True
        assert await adapter.delete_file(stored.storage_key) is False
        assert await adapter.file_exists(stored.storage_key) is False

    @pytest.mark.asyncio
    async def test_keys_cannot_escape_root(self, adapter):
        with pytest.raises(StorageError, match="Invalid storage key"):
            await adapter.retrieve_file("../../etc/passwd")

    @pytest.mark.asyncio
    async def test_verify_ready_creates_root(self, adapter):
        assert await adapter.verify_ready() is True
        assert adapter.root.is_dir()
