"""Local-disk storage for uploaded document files.

Files are written as ``<upload_dir>/<uuid4><ext>`` so two uploads with the
same original filename never collide.  Blocking filesystem calls run via
``asyncio.to_thread`` to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path

import structlog

from src.interfaces.file_storage import IFileStorage
from src.utils.errors import NotFoundError

logger = structlog.get_logger(logger_name=__name__)


class LocalFileStorage(IFileStorage):
    """Stores uploaded files under a single directory on local disk."""

    def __init__(self, upload_dir: str | Path = "uploads/documents") -> None:
        self._upload_dir = Path(upload_dir)

    async def save(self, data: bytes, original_filename: str) -> str:
        extension = Path(original_filename).suffix.lower()
        path = self._upload_dir / f"{uuid.uuid4()}{extension}"
        await asyncio.to_thread(self._write_sync, path, data)
        logger.info("file_saved", path=str(path), bytes=len(data))
        return str(path)

    async def read(self, path: str) -> bytes:
        try:
            return await asyncio.to_thread(Path(path).read_bytes)
        except FileNotFoundError as exc:
            raise NotFoundError(
                message=f"Document file not found: {path}",
                provider_name="local_storage",
            ) from exc

    async def delete(self, path: str) -> bool:
        try:
            await asyncio.to_thread(Path(path).unlink)
        except FileNotFoundError:
            logger.warning("file_already_absent", path=path)
            return False
        logger.info("file_deleted", path=path)
        return True

    # -- Sync helpers (executed via asyncio.to_thread) ----------------------

    @staticmethod
    def _write_sync(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
