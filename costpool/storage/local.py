"""Local filesystem storage backend."""

import re
from pathlib import Path
from typing import BinaryIO

from costpool.exceptions import SourceReadError
from costpool.storage.base import BlobStore


class LocalBlobStore(BlobStore):
    """Local filesystem storage backend.

    Buckets are directories directly under ``base_dir``.
    """

    def __init__(self, base_dir: Path):
        """
        Initialize local storage backend.

        Args:
            base_dir: Base directory holding one sub-directory per bucket
        """
        self.base_dir = Path(base_dir).resolve()

    def _validate_bucket(self, bucket: str) -> None:
        """
        Validate bucket name to prevent path traversal.

        Raises:
            ValueError: If bucket contains invalid characters
        """
        # Only allow alphanumeric, underscore, hyphen, and dot
        if not re.match(r"^[a-zA-Z0-9_.-]+$", bucket) or bucket in (".", ".."):
            raise ValueError(f"Invalid bucket: {bucket}. Only alphanumeric, underscore, hyphen, and dot are allowed.")

    def _get_blob_path(self, bucket: str, path: str) -> Path:
        """
        Get validated filesystem path for a blob.

        Raises:
            ValueError: If bucket or path escapes the base directory
        """
        self._validate_bucket(bucket)
        bucket_dir = (self.base_dir / bucket).resolve()
        blob_path = (bucket_dir / path).resolve()

        # Check that resolved path is within the bucket directory
        try:
            blob_path.relative_to(bucket_dir)
        except ValueError:
            raise ValueError(f"Invalid blob path: {bucket}/{path}")

        return blob_path

    def open_stream(self, bucket: str, path: str) -> BinaryIO:
        """Open a local file for buffered binary reading."""
        blob_path = self._get_blob_path(bucket, path)
        try:
            return open(blob_path, "rb")
        except OSError as e:
            raise SourceReadError(f"Cannot open {bucket}/{path}: {e}") from e

    def exists(self, bucket: str, path: str) -> bool:
        try:
            return self._get_blob_path(bucket, path).is_file()
        except ValueError:
            return False

    def write_bytes(self, bucket: str, path: str, data: bytes) -> Path:
        """Store a blob (used when staging uploads locally)."""
        blob_path = self._get_blob_path(bucket, path)
        blob_path.parent.mkdir(parents=True, exist_ok=True)
        blob_path.write_bytes(data)
        return blob_path
