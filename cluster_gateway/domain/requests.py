"""
Request value objects and their builder functions.

Requests are validated when they are built, so a malformed request raises
``ValidationError`` in the caller's thread and is never submitted.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, FrozenSet, Iterable, Mapping, Optional, Tuple

from cluster_gateway.exceptions import ValidationError


def _require_name(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be a non-empty string", details={"field": name})
    return value


def _names(values: Any, name: str, allow_empty: bool = False) -> Tuple[str, ...]:
    if isinstance(values, str):
        values = (values,)
    if values is not None and not isinstance(values, Iterable):
        raise ValidationError(
            f"{name} must be a string or an iterable of strings", details={"field": name}
        )
    result = tuple(values or ())
    if not result and not allow_empty:
        raise ValidationError(f"{name} must not be empty", details={"field": name})
    for value in result:
        _require_name(value, name)
    return result


def _require_int(value: Any, name: str, minimum: int = 0) -> int:
    # bool is an int subclass but never a valid size or offset
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer", details={"field": name})
    if value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}", details={"field": name})
    return value


def _require_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number", details={"field": name})
    return value


def _frozen_mapping(value: Any, name: str) -> Optional[Mapping[str, Any]]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ValidationError(f"{name} must be a mapping", details={"field": name})
    return MappingProxyType(dict(value))


@dataclass(frozen=True)
class IndexRequest:
    """Index a JSON source under ``index``/``type``; the id is generated when omitted."""

    index: str
    type: str
    source: Mapping[str, Any]
    id: Optional[str] = None
    create: bool = False

    def __post_init__(self) -> None:
        _require_name(self.index, "index")
        _require_name(self.type, "type")
        if self.id is not None:
            _require_name(self.id, "id")
        if self.source is None:
            raise ValidationError("source must be a mapping", details={"field": "source"})
        object.__setattr__(self, "source", _frozen_mapping(self.source, "source"))


@dataclass(frozen=True)
class DeleteRequest:
    """Delete one document by index, type and id."""

    index: str
    type: str
    id: str

    def __post_init__(self) -> None:
        _require_name(self.index, "index")
        _require_name(self.type, "type")
        _require_name(self.id, "id")


@dataclass(frozen=True)
class DeleteByQueryRequest:
    """Delete every document matching ``query`` in one or more indices."""

    indices: Tuple[str, ...]
    query: Mapping[str, Any]
    types: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "indices", _names(self.indices, "indices"))
        object.__setattr__(self, "types", _names(self.types, "types", allow_empty=True))
        if not isinstance(self.query, Mapping) or not self.query:
            raise ValidationError("query must be a non-empty mapping", details={"field": "query"})
        object.__setattr__(self, "query", _frozen_mapping(self.query, "query"))


@dataclass(frozen=True)
class GetRequest:
    """Fetch the indexed source of one document."""

    index: str
    type: str
    id: str
    fields: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _require_name(self.index, "index")
        _require_name(self.type, "type")
        _require_name(self.id, "id")
        object.__setattr__(self, "fields", _names(self.fields, "fields", allow_empty=True))


@dataclass(frozen=True)
class CountRequest:
    """Count documents matching ``query``; no query counts everything."""

    indices: Tuple[str, ...]
    query: Optional[Mapping[str, Any]] = None
    types: Tuple[str, ...] = ()
    min_score: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "indices", _names(self.indices, "indices"))
        object.__setattr__(self, "types", _names(self.types, "types", allow_empty=True))
        object.__setattr__(self, "query", _frozen_mapping(self.query, "query"))
        if self.min_score is not None and _require_number(self.min_score, "min_score") < 0:
            raise ValidationError("min_score must be >= 0", details={"field": "min_score"})


@dataclass(frozen=True)
class SearchRequest:
    """Search one or more indices; ``scroll`` keeps a cursor alive for scrolling."""

    indices: Tuple[str, ...]
    source: Optional[Mapping[str, Any]] = None
    types: Tuple[str, ...] = ()
    from_: int = 0
    size: int = 10
    scroll: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "indices", _names(self.indices, "indices"))
        object.__setattr__(self, "types", _names(self.types, "types", allow_empty=True))
        object.__setattr__(self, "source", _frozen_mapping(self.source, "source"))
        _require_int(self.from_, "from_")
        _require_int(self.size, "size")
        if self.scroll is not None:
            _require_name(self.scroll, "scroll")


@dataclass(frozen=True)
class SearchScrollRequest:
    """Continue a previous scrollable search."""

    scroll_id: str
    scroll: Optional[str] = None

    def __post_init__(self) -> None:
        _require_name(self.scroll_id, "scroll_id")
        if self.scroll is not None:
            _require_name(self.scroll, "scroll")


@dataclass(frozen=True)
class TermsRequest:
    """Terms of ``fields`` and their document frequencies."""

    indices: Tuple[str, ...]
    fields: Tuple[str, ...]
    size: int = 10
    min_freq: int = 1
    max_freq: Optional[int] = None
    prefix: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "indices", _names(self.indices, "indices"))
        object.__setattr__(self, "fields", _names(self.fields, "fields"))
        _require_int(self.size, "size", minimum=1)
        _require_int(self.min_freq, "min_freq")
        if self.max_freq is not None and _require_int(self.max_freq, "max_freq") < self.min_freq:
            raise ValidationError("max_freq must be >= min_freq", details={"field": "max_freq"})


@dataclass(frozen=True)
class MoreLikeThisRequest:
    """Search for documents similar to the document ``index``/``type``/``id``."""

    index: str
    type: str
    id: str
    fields: Tuple[str, ...] = ()
    percent_terms_to_match: Optional[float] = None
    search_size: int = 10

    def __post_init__(self) -> None:
        _require_name(self.index, "index")
        _require_name(self.type, "type")
        _require_name(self.id, "id")
        object.__setattr__(self, "fields", _names(self.fields, "fields", allow_empty=True))
        if self.percent_terms_to_match is not None and not (
            0 <= _require_number(self.percent_terms_to_match, "percent_terms_to_match") <= 1
        ):
            raise ValidationError(
                "percent_terms_to_match must be within [0, 1]",
                details={"field": "percent_terms_to_match"},
            )
        _require_int(self.search_size, "search_size")


@dataclass(frozen=True)
class ClearRealmCacheRequest:
    """
    Evict cached authentication entries on every node of the cluster.

    An empty ``usernames`` set evicts every user of the named realms.
    """

    realms: FrozenSet[str]
    usernames: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "realms", frozenset(_names(self.realms, "realms")))
        object.__setattr__(
            self, "usernames", frozenset(_names(self.usernames, "usernames", allow_empty=True))
        )


def index_request(
    index: str, type: str, source: Mapping[str, Any], id: Optional[str] = None, create: bool = False
) -> IndexRequest:
    return IndexRequest(index=index, type=type, source=source, id=id, create=create)


def delete_request(index: str, type: str, id: str) -> DeleteRequest:
    return DeleteRequest(index=index, type=type, id=id)


def delete_by_query_request(
    indices: Iterable[str], query: Mapping[str, Any], types: Iterable[str] = ()
) -> DeleteByQueryRequest:
    return DeleteByQueryRequest(indices=indices, query=query, types=types)


def get_request(index: str, type: str, id: str, fields: Iterable[str] = ()) -> GetRequest:
    return GetRequest(index=index, type=type, id=id, fields=fields)


def count_request(
    indices: Iterable[str],
    query: Optional[Mapping[str, Any]] = None,
    types: Iterable[str] = (),
    min_score: Optional[float] = None,
) -> CountRequest:
    return CountRequest(indices=indices, query=query, types=types, min_score=min_score)


def search_request(indices: Iterable[str], source: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> SearchRequest:
    return SearchRequest(indices=indices, source=source, **kwargs)


def search_scroll_request(scroll_id: str, scroll: Optional[str] = None) -> SearchScrollRequest:
    return SearchScrollRequest(scroll_id=scroll_id, scroll=scroll)


def terms_request(indices: Iterable[str], fields: Iterable[str], **kwargs: Any) -> TermsRequest:
    return TermsRequest(indices=indices, fields=fields, **kwargs)


def more_like_this_request(index: str, type: str, id: str, **kwargs: Any) -> MoreLikeThisRequest:
    return MoreLikeThisRequest(index=index, type=type, id=id, **kwargs)


def clear_realm_cache_request(
    realms: Iterable[str], usernames: Iterable[str] = ()
) -> ClearRealmCacheRequest:
    return ClearRealmCacheRequest(realms=realms, usernames=usernames)
