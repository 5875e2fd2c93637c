"""Document store for taxonomy, job, row result and pipeline records."""

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from costpool.database.models import (
    DefinitionDocument,
    Job,
    PipelineConfig,
    RowAuditEvent,
    RowResultRecord,
)
from costpool.database.schema import get_session_factory, init_database
from costpool.models import RowResult

logger = logging.getLogger(__name__)

# Job columns that callers may set through upsert_job
_JOB_FIELDS = {
    "original_filename",
    "status",
    "total_rows",
    "error",
    "created_at",
}


class ClassificationStore:
    """Manages persistence of classification jobs and their results.

    Every write addresses a record by its natural key, so repeated writes
    overwrite instead of duplicating.
    """

    def __init__(self, db_path: Path, echo: bool = False):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database file
            echo: Whether to echo SQL queries (for debugging)
        """
        self.db_path = db_path
        self.engine = init_database(db_path, echo=echo)
        self.Session = get_session_factory(self.engine)

    @contextmanager
    def _get_session(self, commit: bool = True):
        """
        Context manager for database sessions.

        Args:
            commit: Whether to commit on successful exit (default: True)
        """
        session = self.Session()
        try:
            yield session
            if commit:
                session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()

    # Taxonomy record

    def get_definitions(self, document_id: str) -> Optional[Dict[str, Any]]:
        """Return the stored taxonomy mapping, or None if the record is absent."""
        with self._get_session(commit=False) as session:
            document = session.get(DefinitionDocument, document_id)
            return document.data if document else None

    def save_definitions(self, document_id: str, data: Dict[str, Any]) -> None:
        """Create or replace the taxonomy record."""
        with self._get_session() as session:
            session.merge(DefinitionDocument(
                document_id=document_id,
                data=data,
                updated_at=datetime.utcnow(),
            ))
        logger.info(f"Saved definitions document '{document_id}' with {len(data)} cost pools")

    # Job records

    def upsert_job(self, tenant_id: str, job_id: str, **fields: Any) -> Dict[str, Any]:
        """
        Create or update a job record, touching only the given fields.

        Args:
            tenant_id: Tenant identifier
            job_id: Job identifier
            **fields: Column values (original_filename, status, total_rows,
                error, created_at)

        Returns:
            The job record after the update
        """
        unknown = set(fields) - _JOB_FIELDS
        if unknown:
            raise ValueError(f"Unknown job fields: {sorted(unknown)}")

        with self._get_session() as session:
            job = session.get(Job, (tenant_id, job_id))
            if job is None:
                job = Job(tenant_id=tenant_id, job_id=job_id, created_at=datetime.utcnow())
                session.add(job)
            for name, value in fields.items():
                setattr(job, name, value)
            job.updated_at = datetime.utcnow()
            session.flush()
            return job.to_dict()

    def get_job(self, tenant_id: str, job_id: str) -> Optional[Dict[str, Any]]:
        with self._get_session(commit=False) as session:
            job = session.get(Job, (tenant_id, job_id))
            return job.to_dict() if job else None

    # Row result records

    def upsert_row_results(self, tenant_id: str, job_id: str, results: Iterable[RowResult]) -> int:
        """
        Write row results keyed by row_index, overwriting existing records.

        Args:
            tenant_id: Tenant identifier
            job_id: Job identifier
            results: Row results to persist

        Returns:
            Number of records written
        """
        count = 0
        with self._get_session() as session:
            for result in results:
                classification = result.classification
                session.merge(RowResultRecord(
                    tenant_id=tenant_id,
                    job_id=job_id,
                    row_index=result.row_index,
                    original_data=dict(result.original_data),
                    cost_pool=classification.cost_pool,
                    cost_sub_pool=classification.cost_sub_pool,
                    confidence=float(classification.confidence),
                    reasoning=classification.reasoning,
                    manually_edited=result.manually_edited,
                    updated_at=datetime.utcnow(),
                ))
                count += 1
        return count

    def get_row_result(self, tenant_id: str, job_id: str, row_index: int) -> Optional[Dict[str, Any]]:
        with self._get_session(commit=False) as session:
            record = session.get(RowResultRecord, (tenant_id, job_id, row_index))
            return record.to_dict() if record else None

    def list_row_results(self, tenant_id: str, job_id: str) -> List[Dict[str, Any]]:
        """Return all row results of a job ordered by row_index."""
        with self._get_session(commit=False) as session:
            records = (
                session.query(RowResultRecord)
                .filter(
                    RowResultRecord.tenant_id == tenant_id,
                    RowResultRecord.job_id == job_id,
                )
                .order_by(RowResultRecord.row_index)
                .all()
            )
            return [record.to_dict() for record in records]

    def count_row_results(self, tenant_id: str, job_id: str) -> int:
        with self._get_session(commit=False) as session:
            return (
                session.query(RowResultRecord)
                .filter(
                    RowResultRecord.tenant_id == tenant_id,
                    RowResultRecord.job_id == job_id,
                )
                .count()
            )

    def update_row_classification(
        self,
        tenant_id: str,
        job_id: str,
        row_index: int,
        cost_pool: str,
        cost_sub_pool: str,
        changed_by: Optional[str] = None,
    ) -> Optional[List[Dict[str, Any]]]:
        """
        Apply a manual classification change and record its audit trail.

        The row update and its audit events commit in one transaction.

        Returns:
            List of audit events written (empty if nothing changed), or None
            if the row does not exist
        """
        with self._get_session() as session:
            record = session.get(RowResultRecord, (tenant_id, job_id, row_index))
            if record is None:
                return None

            timestamp = datetime.utcnow()
            events = []
            for field_name, new_value in (("cost_pool", cost_pool), ("cost_sub_pool", cost_sub_pool)):
                old_value = getattr(record, field_name)
                if old_value == new_value:
                    continue
                setattr(record, field_name, new_value)
                event = RowAuditEvent(
                    tenant_id=tenant_id,
                    job_id=job_id,
                    row_index=row_index,
                    field=field_name,
                    old_value=old_value,
                    new_value=new_value,
                    changed_by=changed_by,
                    timestamp=timestamp,
                )
                session.add(event)
                events.append(event)

            if events:
                record.manually_edited = True
                record.updated_at = timestamp
            session.flush()
            return [event.to_dict() for event in events]

    def list_audit_events(self, tenant_id: str, job_id: str, row_index: int) -> List[Dict[str, Any]]:
        with self._get_session(commit=False) as session:
            events = (
                session.query(RowAuditEvent)
                .filter(
                    RowAuditEvent.tenant_id == tenant_id,
                    RowAuditEvent.job_id == job_id,
                    RowAuditEvent.row_index == row_index,
                )
                .order_by(RowAuditEvent.id)
                .all()
            )
            return [event.to_dict() for event in events]

    # Pipeline configuration

    def get_pipeline_config(self, tenant_id: str, pipeline_id: str) -> Optional[Dict[str, Any]]:
        with self._get_session(commit=False) as session:
            pipeline = session.get(PipelineConfig, (tenant_id, pipeline_id))
            return pipeline.configuration if pipeline else None

    def save_pipeline_config(self, tenant_id: str, pipeline_id: str, configuration: Dict[str, Any]) -> None:
        with self._get_session() as session:
            session.merge(PipelineConfig(
                tenant_id=tenant_id,
                pipeline_id=pipeline_id,
                configuration=configuration,
                updated_at=datetime.utcnow(),
            ))
