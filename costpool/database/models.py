"""SQLAlchemy models for the classification document store."""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class DefinitionDocument(Base):
    """Model for the taxonomy record (definitions/{document_id})."""

    __tablename__ = "definitions"

    document_id = Column(String(255), primary_key=True)
    data = Column(JSON, nullable=False)  # pool name -> {definition, sub_pools}
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<DefinitionDocument(document_id={self.document_id})>"


class Job(Base):
    """Model for one end-to-end classification run over an uploaded file."""

    __tablename__ = "jobs"

    tenant_id = Column(String(255), primary_key=True)
    job_id = Column(String(255), primary_key=True)
    original_filename = Column(String(500), nullable=True)
    status = Column(String(50), nullable=False)
    total_rows = Column(Integer, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.job_id,
            "originalFilename": self.original_filename,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "status": self.status,
            "totalRows": self.total_rows,
            "error": self.error,
        }

    def __repr__(self):
        return f"<Job(tenant={self.tenant_id}, id={self.job_id}, status={self.status})>"


class RowResultRecord(Base):
    """Model for one classified row, keyed by (tenant_id, job_id, row_index)."""

    __tablename__ = "row_results"

    tenant_id = Column(String(255), primary_key=True)
    job_id = Column(String(255), primary_key=True)
    row_index = Column(Integer, primary_key=True, autoincrement=False)
    original_data = Column(JSON, nullable=False)
    cost_pool = Column(String(255), nullable=False)
    cost_sub_pool = Column(String(255), nullable=False)
    confidence = Column(Float, nullable=False, default=0.0)
    reasoning = Column(Text, nullable=True)
    manually_edited = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_rows_job_pool", "tenant_id", "job_id", "cost_pool"),
    )

    def to_dict(self) -> dict:
        return {
            "original_data": self.original_data,
            "cost_pool": self.cost_pool,
            "cost_sub_pool": self.cost_sub_pool,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "row_index": self.row_index,
            "manually_edited": bool(self.manually_edited),
        }

    def __repr__(self):
        return (
            f"<RowResultRecord(job={self.job_id}, row={self.row_index}, "
            f"pool={self.cost_pool}, sub_pool={self.cost_sub_pool})>"
        )


class RowAuditEvent(Base):
    """Model for the audit trail of manual classification changes."""

    __tablename__ = "row_audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(255), nullable=False)
    job_id = Column(String(255), nullable=False)
    row_index = Column(Integer, nullable=False)
    field = Column(String(50), nullable=False)  # "cost_pool" or "cost_sub_pool"
    old_value = Column(String(255), nullable=True)
    new_value = Column(String(255), nullable=True)
    changed_by = Column(String(255), nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ["tenant_id", "job_id", "row_index"],
            ["row_results.tenant_id", "row_results.job_id", "row_results.row_index"],
        ),
        Index("idx_audit_row", "tenant_id", "job_id", "row_index"),
    )

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "oldValue": self.old_value,
            "newValue": self.new_value,
            "changedBy": self.changed_by,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


class PipelineConfig(Base):
    """Model for per-tenant pipeline configuration (e.g. sourceColumnsForAI)."""

    __tablename__ = "pipeline_configs"

    tenant_id = Column(String(255), primary_key=True)
    pipeline_id = Column(String(255), primary_key=True)
    configuration = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<PipelineConfig(tenant={self.tenant_id}, pipeline={self.pipeline_id})>"
