"""Abstract base class for backing-file storage of uploaded documents."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: LocalFileStorage (src/providers/storage/)
class IFileStorage(ABC):
    """Contract for storing, reading, and removing uploaded files."""

    @abstractmethod
    async def save(self, data: bytes, original_filename: str) -> str:
        """Persist *data* under a collision-free name and return its path.

        The stored name keeps the extension of *original_filename*.
        """

    @abstractmethod
    async def read(self, path: str) -> bytes:
        """Return the file's bytes.

        Raises
        ------
        src.utils.errors.NotFoundError
            If nothing is stored at *path*.
        """

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Remove the file.  Returns ``False`` if it was already absent."""
