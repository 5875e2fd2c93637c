"""Constants for the classification pipeline."""


class JobStatus:
    """Job status constants."""
    READING = "reading"
    PROCESSING_BATCH_PREFIX = "processing_batch_"
    COMPLETED = "completed"
    FAILED = "failed"

    TERMINAL = frozenset({COMPLETED, FAILED})

    @classmethod
    def processing_batch(cls, batch_number: int) -> str:
        return f"{cls.PROCESSING_BATCH_PREFIX}{batch_number}"


# Fallback classification
UNCLASSIFIED = "Unclassified"
FALLBACK_REASONING = "response missing or unparseable"
DEFAULT_REASONING = "No reasoning provided."

# Default configuration values
DEFAULT_BATCH_SIZE = 50
DEFAULT_WRITER_BUFFER_SIZE = 500

# Source paths
UPLOADS_PREFIX = "uploads"

# Taxonomy record location
DEFINITIONS_COLLECTION = "definitions"
DEFAULT_DEFINITIONS_DOCUMENT = "hierarchical"

# Correlation keys sent to the oracle
CORRELATION_KEY_PREFIX = "row_"


def correlation_key(row_index: int) -> str:
    """Deterministic per-row key used to map oracle output back to rows."""
    return f"{CORRELATION_KEY_PREFIX}{row_index}"
