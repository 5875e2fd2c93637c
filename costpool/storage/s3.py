"""AWS S3 storage backend."""

import io
import logging
from typing import BinaryIO, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from costpool.exceptions import SourceReadError
from costpool.storage.base import BlobStore

logger = logging.getLogger(__name__)

# Read-ahead window for streamed object bodies
DEFAULT_READ_BUFFER_SIZE = 1024 * 1024


class _S3BodyReader(io.RawIOBase):
    """Raw stream over an S3 object body that reports transport errors as SourceReadError."""

    def __init__(self, body, uri: str):
        self._body = body
        self._uri = uri

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        try:
            chunk = self._body.read(len(buffer))
        except (BotoCoreError, ClientError, OSError) as e:
            raise SourceReadError(f"Failed reading {self._uri}: {e}") from e
        size = len(chunk)
        buffer[:size] = chunk
        return size

    def close(self) -> None:
        if not self.closed:
            self._body.close()
        super().close()


class S3BlobStore(BlobStore):
    """AWS S3 storage backend."""

    def __init__(self, region_name: Optional[str] = None, client=None,
                 buffer_size: int = DEFAULT_READ_BUFFER_SIZE):
        """
        Initialize S3 storage backend.

        Args:
            region_name: Optional AWS region
            client: Optional pre-built boto3 S3 client
            buffer_size: Read-ahead buffer size in bytes
        """
        self.s3_client = client or boto3.client("s3", region_name=region_name)
        self.buffer_size = buffer_size

    def open_stream(self, bucket: str, path: str) -> BinaryIO:
        """Open an S3 object as a buffered, streaming binary reader."""
        uri = f"s3://{bucket}/{path}"
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=path)
        except (BotoCoreError, ClientError) as e:
            raise SourceReadError(f"Cannot open {uri}: {e}") from e

        logger.debug(f"Streaming {uri} ({response.get('ContentLength')} bytes)")
        return io.BufferedReader(_S3BodyReader(response["Body"], uri), buffer_size=self.buffer_size)

    def exists(self, bucket: str, path: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=bucket, Key=path)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise
