import os
from pathlib import Path

from .base import BaseStorage, StorageError


class LocalStorage(BaseStorage):
    """A client for writing storage objects to the local filesystem."""

    def __init__(self, base_dir: str = "data/transcripts"):
        self.base_dir = Path(base_dir)

    def _get_absolute_filename(self, path: str) -> Path:
        """Constructs the absolute filename in local storage.

        Args:
            path (str): Object key relative to the base directory.

        Return:
            Path: The absolute path of the object.
        """
        return (self.base_dir / path.lstrip("/")).resolve()

    def exists(self, path: str) -> bool:
        return os.path.isfile(self._get_absolute_filename(path))

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Saves bytes under the base directory. The content type is not stored.

        Returns:
            str: The object key, as with cloud storage.
        """
        filepath = self._get_absolute_filename(path)
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(filepath, "wb") as file:
                file.write(data)
        except OSError as e:
            raise StorageError(f"Error saving file to local storage: {e}") from e
        return path

    def download(self, path: str) -> bytes:
        try:
            with open(self._get_absolute_filename(path), "rb") as file:
                return file.read()
        except OSError as e:
            raise StorageError(f"Error reading file from local storage: {e}") from e
