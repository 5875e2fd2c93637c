"""Taxonomy loading and caching."""

from costpool.taxonomy.cache import TaxonomyCache
from costpool.taxonomy.loader import (
    import_taxonomy,
    load_taxonomy_csv,
    load_taxonomy_file,
    load_taxonomy_yaml,
)

__all__ = [
    "TaxonomyCache",
    "import_taxonomy",
    "load_taxonomy_csv",
    "load_taxonomy_file",
    "load_taxonomy_yaml",
]
