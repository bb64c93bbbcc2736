from abc import ABC, abstractmethod


class StorageError(RuntimeError):
    """Raised when an object cannot be written to or read from storage."""


class BaseStorage(ABC):
    """
    Abstract base class for storage interface.

    This class defines the common interface for both local and cloud storage
    implementations. Paths are object keys relative to the storage root
    (bucket or base directory), e.g. ``<show_id>/<episode_id>.jsonl.gz``.
    """

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Writes an object to storage.

        Args:
            path (str): Object key relative to the storage root.
            data (bytes): Raw object content.
            content_type (str): MIME type recorded with the object, where the
                backend supports it.

        Returns:
            str: The key or location of the stored object.

        Raises:
            StorageError: If the write fails.
        """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """
        Check if an object exists.

        Args:
            path (str): Object key relative to the storage root.

        Returns:
            bool: True if the object exists, False otherwise.
        """

    @abstractmethod
    def download(self, path: str) -> bytes:
        """Reads an object back from storage.

        Raises:
            StorageError: If the object is missing or cannot be read.
        """
