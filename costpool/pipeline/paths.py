"""Parsing of upload source paths."""

from costpool.constants import UPLOADS_PREFIX
from costpool.exceptions import InvalidSourcePath
from costpool.models import SourceLocation

# uploads / tenant / pipeline / job / filename
_MIN_SEGMENTS = 5


def parse_source_path(bucket: str, path: str) -> SourceLocation:
    """
    Parse ``uploads/{tenantId}/{pipelineId}/{jobId}/{filename}``.

    Args:
        bucket: Bucket holding the upload
        path: Object path inside the bucket

    Returns:
        SourceLocation with the tenant, pipeline and job identifiers

    Raises:
        InvalidSourcePath: If the bucket is empty, the path does not start
            with ``uploads`` or a segment is missing or empty
    """
    if not bucket:
        raise InvalidSourcePath("Missing bucket name")
    if not path:
        raise InvalidSourcePath("Missing file path")

    parts = path.split("/")
    if len(parts) < _MIN_SEGMENTS or parts[0] != UPLOADS_PREFIX:
        raise InvalidSourcePath(
            f"Invalid file path structure: {path}. "
            f"Expected '{UPLOADS_PREFIX}/{{tenantId}}/{{pipelineId}}/{{jobId}}/{{filename}}'."
        )
    if any(not part for part in parts[1:]):
        raise InvalidSourcePath(f"Invalid file path structure: {path}. Empty path segment.")

    return SourceLocation(
        bucket=bucket,
        path=path,
        tenant_id=parts[1],
        pipeline_id=parts[2],
        job_id=parts[3],
        filename="/".join(parts[4:]),
    )
