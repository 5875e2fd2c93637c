"""Job lifecycle tracking on the job record."""

import logging
from datetime import datetime
from typing import Optional

from costpool.constants import JobStatus
from costpool.database import ClassificationStore
from costpool.exceptions import InvalidStateTransition

logger = logging.getLogger(__name__)


class JobStateTracker:
    """Moves a job through reading -> processing_batch_N -> completed | failed.

    Transitions only move forward within a run; ``failed`` is reachable from
    any non-terminal state. A re-invoked job starts a new run with start().
    """

    def __init__(self, store: ClassificationStore, tenant_id: str, job_id: str):
        self.store = store
        self.tenant_id = tenant_id
        self.job_id = job_id
        self.status: Optional[str] = None
        self.batch_number = 0

    def _require_active(self, new_status: str) -> None:
        if self.status is None or self.status in JobStatus.TERMINAL:
            raise InvalidStateTransition(
                f"Cannot transition job {self.job_id} from '{self.status}' to '{new_status}'"
            )

    def _update(self, **fields) -> None:
        self.store.upsert_job(self.tenant_id, self.job_id, **fields)
        self.status = fields["status"]
        logger.info(f"Job {self.tenant_id}/{self.job_id} status: {self.status}")

    def start(self, original_filename: str) -> None:
        """Mark the job as reading and reset run metadata."""
        if self.status is not None:
            raise InvalidStateTransition(
                f"Job {self.job_id} already started (status '{self.status}')"
            )
        self._update(
            original_filename=original_filename,
            status=JobStatus.READING,
            created_at=datetime.utcnow(),
            total_rows=None,
            error=None,
        )

    def begin_batch(self, batch_number: int) -> None:
        """Mark the job as processing the given (1-based) batch."""
        new_status = JobStatus.processing_batch(batch_number)
        self._require_active(new_status)
        if batch_number <= self.batch_number:
            raise InvalidStateTransition(
                f"Batch {batch_number} does not follow batch {self.batch_number} for job {self.job_id}"
            )
        self._update(status=new_status)
        self.batch_number = batch_number

    def complete(self, total_rows: int) -> None:
        """Mark the job completed; call only after all row results are durable."""
        self._require_active(JobStatus.COMPLETED)
        self._update(status=JobStatus.COMPLETED, total_rows=total_rows, error=None)

    def fail(self, message: str) -> None:
        """Mark the job failed with a human-readable error."""
        if self.status in JobStatus.TERMINAL:
            raise InvalidStateTransition(
                f"Cannot transition job {self.job_id} from '{self.status}' to '{JobStatus.FAILED}'"
            )
        self._update(status=JobStatus.FAILED, error=message)
