"""Build the cost pool taxonomy from definition files and store it.

Two source formats are supported:

* A hierarchical definitions CSV with one row per sub-pool and the columns
  ``cost_pool``, ``cost_pool_definition``, ``cost_sub_pool`` and
  ``cost_sub_pool_definition``.
* A YAML file holding the stored record shape directly (pool name ->
  ``definition`` / ``sub_pools``), optionally nested under a ``data`` key.
"""

import logging
from pathlib import Path
from typing import Dict, Union

import pandas as pd
import yaml

from costpool.constants import DEFAULT_DEFINITIONS_DOCUMENT
from costpool.database import ClassificationStore
from costpool.exceptions import InvalidTaxonomy
from costpool.models import Taxonomy

logger = logging.getLogger(__name__)

REQUIRED_DEFINITION_COLUMNS = [
    "cost_pool",
    "cost_pool_definition",
    "cost_sub_pool",
    "cost_sub_pool_definition",
]


def load_taxonomy_csv(csv_path: Union[str, Path]) -> Taxonomy:
    """
    Load a taxonomy from a hierarchical definitions CSV.

    Rows without a cost pool or sub-pool name are skipped. A pool's
    definition comes from its first row; sub-pools keep file order.

    Args:
        csv_path: Path to the definitions CSV

    Returns:
        Taxonomy built from the file

    Raises:
        InvalidTaxonomy: If required columns are missing or no pools were found
    """
    df = pd.read_csv(
        csv_path,
        dtype=str,
        keep_default_na=False,
        encoding="utf-8-sig",
    )
    df.columns = [str(col).strip() for col in df.columns]

    missing = [col for col in REQUIRED_DEFINITION_COLUMNS if col not in df.columns]
    if missing:
        raise InvalidTaxonomy(f"Definitions CSV {csv_path} is missing columns: {missing}")

    structured: Dict[str, dict] = {}
    skipped = 0
    for row in df[REQUIRED_DEFINITION_COLUMNS].itertuples(index=False):
        pool_name = row.cost_pool.strip()
        sub_pool_name = row.cost_sub_pool.strip()
        if not pool_name or not sub_pool_name:
            skipped += 1
            continue

        pool = structured.setdefault(pool_name, {
            "definition": row.cost_pool_definition.strip(),
            "sub_pools": [],
        })
        pool["sub_pools"].append({
            "name": sub_pool_name,
            "definition": row.cost_sub_pool_definition.strip(),
        })

    if skipped:
        logger.warning(f"Skipped {skipped} definition rows without a cost pool or sub-pool")
    if not structured:
        raise InvalidTaxonomy(f"No definitions were found in {csv_path}")

    logger.info(f"Finished parsing {csv_path}. Found {len(structured)} cost pools.")
    return Taxonomy.from_dict(structured)


def load_taxonomy_yaml(yaml_path: Union[str, Path]) -> Taxonomy:
    """Load a taxonomy stored in the record shape as YAML."""
    with open(yaml_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if isinstance(data, dict) and isinstance(data.get("data"), dict):
        data = data["data"]

    taxonomy = Taxonomy.from_dict(data)
    if not len(taxonomy):
        raise InvalidTaxonomy(f"No definitions were found in {yaml_path}")
    return taxonomy


def load_taxonomy_file(path: Union[str, Path]) -> Taxonomy:
    """Load a taxonomy from a .csv or .yaml/.yml file."""
    suffix = Path(path).suffix.lower()
    if suffix == ".csv":
        return load_taxonomy_csv(path)
    if suffix in (".yaml", ".yml"):
        return load_taxonomy_yaml(path)
    raise InvalidTaxonomy(f"Unsupported taxonomy file type: {suffix or path}")


def import_taxonomy(
    path: Union[str, Path],
    store: ClassificationStore,
    document_id: str = DEFAULT_DEFINITIONS_DOCUMENT,
) -> Taxonomy:
    """
    Load a taxonomy file and save it as the taxonomy record.

    Running processes keep their cached taxonomy until their cache is
    invalidated.
    """
    taxonomy = load_taxonomy_file(path)
    store.save_definitions(document_id, taxonomy.to_dict())
    return taxonomy
