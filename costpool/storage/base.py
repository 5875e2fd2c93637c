"""Abstract blob storage backend interface."""

from abc import ABC, abstractmethod
from typing import BinaryIO


class BlobStore(ABC):
    """Abstract storage backend for uploaded source files."""

    @abstractmethod
    def open_stream(self, bucket: str, path: str) -> BinaryIO:
        """
        Open a blob for sequential binary reading.

        The returned stream must be closed by the caller and is usable as a
        context manager. Only a bounded window of the blob is buffered.

        Args:
            bucket: Bucket / container name
            path: Object path inside the bucket

        Returns:
            Readable binary stream

        Raises:
            SourceReadError: If the blob cannot be opened
        """
        pass

    @abstractmethod
    def exists(self, bucket: str, path: str) -> bool:
        """
        Check if a blob exists.

        Args:
            bucket: Bucket / container name
            path: Object path inside the bucket

        Returns:
            True if the blob exists, False otherwise
        """
        pass
