"""Validation of oracle answers against the taxonomy.

The oracle's pool and sub-pool names are never trusted: a classification is
accepted only if the exact pair exists in the taxonomy. Anything else becomes
the Unclassified fallback.
"""

import math
from typing import Any

from costpool.constants import DEFAULT_REASONING
from costpool.models import Classification, Taxonomy
from costpool.pipeline.oracle import OracleOutcome, Parsed


def coerce_confidence(value: Any) -> float:
    """Coerce a confidence value to a float in [0.0, 1.0]; 0.0 if unusable."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(confidence):
        return 0.0
    return min(max(confidence, 0.0), 1.0)


def validate_entry(entry: Any, taxonomy: Taxonomy) -> Classification:
    """
    Validate one oracle entry.

    Args:
        entry: Value the oracle returned for a correlation key (or None)
        taxonomy: Source of truth for pools and sub-pools

    Returns:
        Accepted classification, or the fallback classification
    """
    if not isinstance(entry, dict):
        return Classification.fallback()

    cost_pool = entry.get("cost_pool")
    if not taxonomy.has_pool(cost_pool):
        return Classification.fallback()

    cost_sub_pool = entry.get("cost_sub_pool")
    if not taxonomy.has_sub_pool(cost_pool, cost_sub_pool):
        return Classification.fallback()

    reasoning = entry.get("reasoning")
    return Classification(
        cost_pool=cost_pool,
        cost_sub_pool=cost_sub_pool,
        confidence=coerce_confidence(entry.get("confidence")),
        reasoning=str(reasoning) if reasoning else DEFAULT_REASONING,
    )


def validate_row(outcome: OracleOutcome, key: str, taxonomy: Taxonomy) -> Classification:
    """Resolve the classification for the row identified by ``key``."""
    if not isinstance(outcome, Parsed):
        return Classification.fallback()
    return validate_entry(outcome.mapping.get(key), taxonomy)
