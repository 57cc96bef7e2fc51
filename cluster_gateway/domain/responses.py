"""
Response value objects delivered to futures and listeners.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class IndexResponse:
    index: str
    type: str
    id: str
    version: int = 1
    created: bool = True


@dataclass(frozen=True)
class DeleteResponse:
    index: str
    type: str
    id: str
    found: bool = True


@dataclass(frozen=True)
class DeleteByQueryResponse:
    """Number of deleted documents per index."""

    deleted: Mapping[str, int] = field(default_factory=dict)

    @property
    def total_deleted(self) -> int:
        return sum(self.deleted.values())


@dataclass(frozen=True)
class GetResponse:
    index: str
    type: str
    id: str
    exists: bool
    source: Optional[Mapping[str, Any]] = None
    version: Optional[int] = None


@dataclass(frozen=True)
class CountResponse:
    count: int
    successful_shards: int = 0
    failed_shards: int = 0


@dataclass(frozen=True)
class SearchHit:
    index: str
    type: str
    id: str
    score: float
    source: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class SearchResponse:
    """Response of search, search scroll and more-like-this."""

    hits: Tuple[SearchHit, ...] = ()
    total_hits: int = 0
    took_ms: int = 0
    scroll_id: Optional[str] = None


@dataclass(frozen=True)
class TermFreq:
    term: str
    doc_freq: int


@dataclass(frozen=True)
class TermsResponse:
    """Terms per field, ordered by document frequency."""

    fields: Mapping[str, Tuple[TermFreq, ...]] = field(default_factory=dict)

    def terms(self, field_name: str) -> Tuple[TermFreq, ...]:
        return self.fields.get(field_name, ())


@dataclass(frozen=True)
class NodeCacheClearResult:
    """Outcome of a realm cache clear on a single node."""

    cleared: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class ClearRealmCacheResponse:
    """
    Per-node breakdown of a realm cache clear.

    Some nodes failing is still a successful response; the dispatcher
    turns it into a failure only when every targeted node failed.
    """

    nodes: Mapping[str, NodeCacheClearResult]

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))

    def acknowledged_nodes(self) -> Tuple[str, ...]:
        return tuple(sorted(node for node, result in self.nodes.items() if result.cleared))

    def failed_nodes(self) -> Dict[str, Optional[str]]:
        return {node: result.error for node, result in self.nodes.items() if not result.cleared}

    def all_failed(self) -> bool:
        return not self.acknowledged_nodes()
