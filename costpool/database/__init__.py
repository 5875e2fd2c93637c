"""Database module for storing jobs, row results and taxonomy records."""

from costpool.database.db_manager import ClassificationStore
from costpool.database.models import Job, RowResultRecord

__all__ = ["ClassificationStore", "Job", "RowResultRecord"]
