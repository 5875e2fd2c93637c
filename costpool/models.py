"""Data models for the classification pipeline."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from costpool.constants import UNCLASSIFIED, FALLBACK_REASONING
from costpool.exceptions import InvalidTaxonomy


@dataclass(frozen=True)
class SubPool:
    """A cost sub-pool and its human-readable definition."""

    name: str
    definition: str = ""


@dataclass(frozen=True)
class CostPool:
    """A cost pool with its ordered sub-pools."""

    name: str
    definition: str = ""
    sub_pools: Tuple[SubPool, ...] = ()

    def sub_pool_names(self) -> List[str]:
        return [sub_pool.name for sub_pool in self.sub_pools]

    def has_sub_pool(self, name: str) -> bool:
        return any(sub_pool.name == name for sub_pool in self.sub_pools)


class Taxonomy:
    """Immutable cost pool hierarchy used as AI context and validation source.

    Pools keep the order in which they were loaded so prompts are stable
    across runs.
    """

    def __init__(self, pools: Mapping[str, CostPool]):
        self._pools = MappingProxyType(dict(pools))

    @classmethod
    def from_dict(cls, data: Any) -> "Taxonomy":
        """
        Build a taxonomy from the stored record shape.

        Args:
            data: Mapping of pool name -> {"definition": str,
                "sub_pools": [{"name": str, "definition": str}, ...]}

        Returns:
            Taxonomy instance

        Raises:
            InvalidTaxonomy: If the record does not have the expected shape
        """
        if not isinstance(data, Mapping):
            raise InvalidTaxonomy(
                f"Taxonomy must be a mapping of cost pools, got {type(data).__name__}"
            )

        pools = {}
        for pool_name, pool_data in data.items():
            if not isinstance(pool_data, Mapping):
                raise InvalidTaxonomy(f"Cost pool '{pool_name}' must be a mapping")
            raw_sub_pools = pool_data.get("sub_pools") or []
            if not isinstance(raw_sub_pools, list):
                raise InvalidTaxonomy(f"Cost pool '{pool_name}' sub_pools must be a list")

            sub_pools = []
            for raw in raw_sub_pools:
                if not isinstance(raw, Mapping) or not raw.get("name"):
                    raise InvalidTaxonomy(
                        f"Cost pool '{pool_name}' has a sub-pool without a name"
                    )
                sub_pools.append(
                    SubPool(name=str(raw["name"]), definition=str(raw.get("definition") or ""))
                )

            pools[str(pool_name)] = CostPool(
                name=str(pool_name),
                definition=str(pool_data.get("definition") or ""),
                sub_pools=tuple(sub_pools),
            )
        return cls(pools)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Convert to the stored record shape."""
        return {
            pool.name: {
                "definition": pool.definition,
                "sub_pools": [
                    {"name": sub_pool.name, "definition": sub_pool.definition}
                    for sub_pool in pool.sub_pools
                ],
            }
            for pool in self._pools.values()
        }

    def pool(self, name: str) -> Optional[CostPool]:
        return self._pools.get(name)

    def has_pool(self, name: Any) -> bool:
        return isinstance(name, str) and name in self._pools

    def has_sub_pool(self, pool_name: Any, sub_pool_name: Any) -> bool:
        if not self.has_pool(pool_name) or not isinstance(sub_pool_name, str):
            return False
        return self._pools[pool_name].has_sub_pool(sub_pool_name)

    def is_valid_pair(self, pool_name: Any, sub_pool_name: Any) -> bool:
        """Check the Classification invariant for a pool / sub-pool pair."""
        if pool_name == UNCLASSIFIED:
            return sub_pool_name == UNCLASSIFIED
        return self.has_sub_pool(pool_name, sub_pool_name)

    def pool_names(self) -> List[str]:
        return list(self._pools)

    def __iter__(self) -> Iterator[CostPool]:
        return iter(self._pools.values())

    def __len__(self) -> int:
        return len(self._pools)

    def __contains__(self, name: object) -> bool:
        return name in self._pools

    def __repr__(self):
        return f"<Taxonomy(pools={len(self._pools)})>"


@dataclass(frozen=True)
class SourceRow:
    """One parsed row of the source file."""

    index: int
    fields: Dict[str, str]


@dataclass(frozen=True)
class Classification:
    """Cost pool classification for a single row."""

    cost_pool: str
    cost_sub_pool: str
    confidence: float = 0.0
    reasoning: str = ""

    @classmethod
    def fallback(cls, reasoning: str = FALLBACK_REASONING) -> "Classification":
        return cls(
            cost_pool=UNCLASSIFIED,
            cost_sub_pool=UNCLASSIFIED,
            confidence=0.0,
            reasoning=reasoning,
        )

    @property
    def is_fallback(self) -> bool:
        return self.cost_pool == UNCLASSIFIED


@dataclass
class RowResult:
    """Persisted outcome for one source row."""

    row_index: int
    original_data: Dict[str, str]
    classification: Classification
    manually_edited: bool = False

    def to_dict(self) -> dict:
        """Convert to the external row record shape."""
        return {
            "original_data": dict(self.original_data),
            "cost_pool": self.classification.cost_pool,
            "cost_sub_pool": self.classification.cost_sub_pool,
            "confidence": self.classification.confidence,
            "reasoning": self.classification.reasoning,
            "row_index": self.row_index,
            "manually_edited": self.manually_edited,
        }


@dataclass(frozen=True)
class SourceLocation:
    """Parsed upload location of a source file."""

    bucket: str
    path: str
    tenant_id: str
    pipeline_id: str
    job_id: str
    filename: str


@dataclass
class JobSummary:
    """Outcome of a completed job run."""

    tenant_id: str
    job_id: str
    total_rows: int
    batches: int
    fallback_rows: int = 0
    failed_batches: List[int] = field(default_factory=list)
