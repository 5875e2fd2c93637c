"""Process-local cache for the cost pool taxonomy."""

import logging
import threading
from typing import Optional

from costpool.constants import DEFAULT_DEFINITIONS_DOCUMENT, DEFINITIONS_COLLECTION
from costpool.database import ClassificationStore
from costpool.exceptions import DefinitionsMissing
from costpool.models import Taxonomy

logger = logging.getLogger(__name__)


class TaxonomyCache:
    """Loads the taxonomy record once and serves it until invalidated.

    Concurrent readers are safe: population happens under a lock and the
    cached Taxonomy is immutable.
    """

    def __init__(self, store: ClassificationStore, document_id: str = DEFAULT_DEFINITIONS_DOCUMENT):
        self.store = store
        self.document_id = document_id
        self._taxonomy: Optional[Taxonomy] = None
        self._lock = threading.Lock()

    def get(self) -> Taxonomy:
        """
        Return the cached taxonomy, fetching it on first use.

        Raises:
            DefinitionsMissing: If no taxonomy record exists or it has no pools
            InvalidTaxonomy: If the record does not have the expected shape
        """
        taxonomy = self._taxonomy
        if taxonomy is not None:
            return taxonomy

        with self._lock:
            if self._taxonomy is None:
                self._taxonomy = self._load()
            return self._taxonomy

    def invalidate(self) -> None:
        """Drop the cached taxonomy so the next get() re-fetches it."""
        with self._lock:
            self._taxonomy = None
        logger.info("Taxonomy cache invalidated")

    def reload(self) -> Taxonomy:
        """Invalidate and fetch the taxonomy immediately."""
        self.invalidate()
        return self.get()

    @property
    def is_loaded(self) -> bool:
        return self._taxonomy is not None

    def _load(self) -> Taxonomy:
        logger.info(f"Fetching definitions: {DEFINITIONS_COLLECTION}/{self.document_id}")
        data = self.store.get_definitions(self.document_id)
        if not data:
            raise DefinitionsMissing(
                f"Definitions document {DEFINITIONS_COLLECTION}/{self.document_id} not found. "
                f"Import a taxonomy with 'costpool import-taxonomy' first."
            )

        taxonomy = Taxonomy.from_dict(data)
        logger.info(f"Loaded definitions for {len(taxonomy)} cost pools.")
        return taxonomy
