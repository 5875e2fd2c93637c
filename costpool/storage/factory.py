"""Storage backend factory."""

from pathlib import Path

from costpool.config import get_config
from costpool.storage.base import BlobStore
from costpool.storage.local import LocalBlobStore
from costpool.storage.s3 import S3BlobStore


def get_blob_store() -> BlobStore:
    """
    Get blob storage backend based on configuration.

    Configuration via environment variables:
    - STORAGE_TYPE: "local" or "s3" (default: "local")
    - For S3:
      - S3_REGION: Optional AWS region
    - For local:
      - LOCAL_BASE_DIR: Directory holding one sub-directory per bucket (default: "blobs")

    Returns:
        Blob store instance

    Raises:
        ValueError: If storage type is invalid
    """
    config = get_config()

    storage_type = config.storage_type.lower()

    if storage_type == "s3":
        return S3BlobStore(region_name=config.s3_region)

    elif storage_type == "local":
        return LocalBlobStore(base_dir=Path(config.local_base_dir))

    else:
        raise ValueError(f"Unknown storage type: {storage_type}. Must be 'local' or 's3'")
