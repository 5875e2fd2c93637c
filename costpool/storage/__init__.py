"""Storage abstraction layer for uploaded source files."""

from costpool.storage.base import BlobStore
from costpool.storage.factory import get_blob_store
from costpool.storage.local import LocalBlobStore
from costpool.storage.s3 import S3BlobStore

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "S3BlobStore",
    "get_blob_store",
]
