"""Buffered, idempotent sink for per-row results."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, List

from costpool.constants import DEFAULT_WRITER_BUFFER_SIZE
from costpool.database import ClassificationStore
from costpool.exceptions import WriterFlushError
from costpool.models import RowResult

logger = logging.getLogger(__name__)


class BufferedResultWriter:
    """Collects row results and persists them in the background.

    Results are keyed by row_index, so a repeated index (inside the buffer or
    already in the store) overwrites instead of duplicating. Full buffers are
    handed to a single background thread; close() is the barrier that waits
    for every pending flush.
    """

    def __init__(
        self,
        store: ClassificationStore,
        tenant_id: str,
        job_id: str,
        buffer_size: int = DEFAULT_WRITER_BUFFER_SIZE,
    ):
        if buffer_size < 1:
            raise ValueError(f"buffer_size must be at least 1, got {buffer_size}")

        self.store = store
        self.tenant_id = tenant_id
        self.job_id = job_id
        self.buffer_size = buffer_size

        self._buffer: Dict[int, RowResult] = {}
        self._pending: List[Future] = []
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"writer-{job_id}")
        self._closed = False
        self.rows_written = 0

    def write(self, result: RowResult) -> None:
        """Buffer a row result; schedules a background flush when the buffer is full."""
        if self._closed:
            raise RuntimeError("Cannot write to a closed result writer")

        self._buffer[result.row_index] = result
        if len(self._buffer) >= self.buffer_size:
            self._schedule_flush()

    def _schedule_flush(self) -> None:
        if not self._buffer:
            return
        chunk = list(self._buffer.values())
        self._buffer = {}
        self._pending.append(self._executor.submit(self._flush_chunk, chunk))

    def _flush_chunk(self, chunk: List[RowResult]) -> int:
        written = self.store.upsert_row_results(self.tenant_id, self.job_id, chunk)
        with self._lock:
            self.rows_written += written
        logger.debug(
            f"Flushed {written} rows for job {self.job_id} "
            f"(rows {chunk[0].row_index}..{chunk[-1].row_index})"
        )
        return written

    def close(self) -> None:
        """
        Flush remaining results and block until every write is acknowledged.

        Raises:
            WriterFlushError: If any flush failed
        """
        if self._closed:
            return
        self._closed = True

        self._schedule_flush()
        errors = []
        try:
            for future in self._pending:
                error = future.exception()
                if error is not None:
                    errors.append(error)
        finally:
            self._pending = []
            self._executor.shutdown(wait=True)

        if errors:
            for error in errors:
                logger.error(f"Row write failed for job {self.job_id}: {error}")
            raise WriterFlushError(
                f"{len(errors)} row write batch(es) failed for job {self.job_id}: {errors[0]}"
            ) from errors[0]

        logger.info(f"All {self.rows_written} row results persisted for job {self.job_id}")

    def __enter__(self) -> "BufferedResultWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
            return

        # Keep what was already classified, but let the original error propagate
        try:
            self.close()
        except WriterFlushError:
            logger.exception(f"Flushing buffered rows failed while job {self.job_id} was aborting")
