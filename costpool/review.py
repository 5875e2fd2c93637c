"""Manual reclassification of persisted rows by reviewers."""

import logging
from typing import Any, Dict, List, Optional

from costpool.database import ClassificationStore
from costpool.exceptions import InvalidClassification, RowNotFound
from costpool.taxonomy import TaxonomyCache

logger = logging.getLogger(__name__)


class ReviewService:
    """Applies reviewer corrections with taxonomy validation and an audit trail."""

    def __init__(self, store: ClassificationStore, taxonomy_cache: TaxonomyCache):
        self.store = store
        self.taxonomy_cache = taxonomy_cache

    def update_row_classification(
        self,
        tenant_id: str,
        job_id: str,
        row_index: int,
        cost_pool: str,
        cost_sub_pool: str,
        changed_by: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Change a row's cost pool / sub-pool.

        Args:
            tenant_id: Tenant identifier
            job_id: Job identifier
            row_index: Row to update
            cost_pool: New cost pool (or "Unclassified")
            cost_sub_pool: New cost sub-pool (or "Unclassified")
            changed_by: Reviewer identity recorded in the audit trail

        Returns:
            Audit events written; empty if the row already had these values

        Raises:
            InvalidClassification: If the pair is not valid for the taxonomy
            RowNotFound: If the row result does not exist
        """
        taxonomy = self.taxonomy_cache.get()
        if not taxonomy.is_valid_pair(cost_pool, cost_sub_pool):
            raise InvalidClassification(
                f"'{cost_pool}' / '{cost_sub_pool}' is not a valid cost pool / sub-pool pair"
            )

        events = self.store.update_row_classification(
            tenant_id,
            job_id,
            row_index,
            cost_pool,
            cost_sub_pool,
            changed_by=changed_by,
        )
        if events is None:
            raise RowNotFound(f"Row {row_index} not found for job {job_id}")

        if events:
            logger.info(
                f"Row {row_index} of job {job_id} reclassified by {changed_by or 'unknown'}: "
                f"{cost_pool} / {cost_sub_pool}"
            )
        return events
