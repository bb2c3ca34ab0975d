"""File storage adapters for uploaded documents."""

from src.providers.storage.local_file_storage import LocalFileStorage

__all__ = ["LocalFileStorage"]
