"""Unit tests for LocalFileStorage."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.providers.storage.local_file_storage import LocalFileStorage
from src.utils.errors import NotFoundError


class TestLocalFileStorage:
    @pytest.mark.asyncio
    async def test_save_uses_generated_name_and_keeps_extension(
        self, file_storage: LocalFileStorage, tmp_path: Path
    ) -> None:
        path = await file_storage.save(b"%PDF-1.4 data", "Ethics Handbook.PDF")

        saved = Path(path)
        assert saved.parent == tmp_path / "uploads"
        assert saved.suffix == ".pdf"
        assert "Ethics" not in saved.name
        assert saved.read_bytes() == b"%PDF-1.4 data"

    @pytest.mark.asyncio
    async def test_same_filename_twice_gives_distinct_paths(
        self, file_storage: LocalFileStorage
    ) -> None:
        first = await file_storage.save(b"one", "doc.pdf")
        second = await file_storage.save(b"two", "doc.pdf")
        assert first != second

    @pytest.mark.asyncio
    async def test_read_round_trip(self, file_storage: LocalFileStorage) -> None:
        path = await file_storage.save(b"content", "doc.pdf")
        assert await file_storage.read(path) == b"content"

    @pytest.mark.asyncio
    async def test_read_missing_raises(self, file_storage: LocalFileStorage, tmp_path: Path) -> None:
        with pytest.raises(NotFoundError):
            await file_storage.read(str(tmp_path / "missing.pdf"))

    @pytest.mark.asyncio
    async def test_delete(self, file_storage: LocalFileStorage) -> None:
        path = await file_storage.save(b"content", "doc.pdf")

        assert Path(path).is_file()
        assert await file_storage.delete(path) is True
        assert not Path(path).exists()

    @pytest.mark.asyncio
    async def test_delete_missing_returns_false(
        self, file_storage: LocalFileStorage, tmp_path: Path
    ) -> None:
        assert await file_storage.delete(str(tmp_path / "missing.pdf")) is False
