"""
Operation descriptors: the closed set of operation kinds and the immutable
value handed from the client to the dispatcher.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Type

from cluster_gateway.domain.requests import (
    ClearRealmCacheRequest,
    CountRequest,
    DeleteByQueryRequest,
    DeleteRequest,
    GetRequest,
    IndexRequest,
    MoreLikeThisRequest,
    SearchRequest,
    SearchScrollRequest,
    TermsRequest,
)
from cluster_gateway.exceptions import ValidationError


class OperationKind(Enum):
    """Every operation the gateway can dispatch."""

    INDEX = "index"
    DELETE = "delete"
    DELETE_BY_QUERY = "delete_by_query"
    GET = "get"
    COUNT = "count"
    SEARCH = "search"
    SEARCH_SCROLL = "search_scroll"
    TERMS = "terms"
    MORE_LIKE_THIS = "more_like_this"
    ADMIN_CLEAR_REALM_CACHE = "admin_clear_realm_cache"

    @property
    def request_type(self) -> Type[Any]:
        return _REQUEST_TYPES[self]

    @property
    def is_admin(self) -> bool:
        return self.value.startswith("admin_")


_REQUEST_TYPES = {
    OperationKind.INDEX: IndexRequest,
    OperationKind.DELETE: DeleteRequest,
    OperationKind.DELETE_BY_QUERY: DeleteByQueryRequest,
    OperationKind.GET: GetRequest,
    OperationKind.COUNT: CountRequest,
    OperationKind.SEARCH: SearchRequest,
    OperationKind.SEARCH_SCROLL: SearchScrollRequest,
    OperationKind.TERMS: TermsRequest,
    OperationKind.MORE_LIKE_THIS: MoreLikeThisRequest,
    OperationKind.ADMIN_CLEAR_REALM_CACHE: ClearRealmCacheRequest,
}


@dataclass(frozen=True)
class OperationDescriptor:
    """One requested action and its parameters. Never mutated after construction."""

    kind: OperationKind
    request: Any

    @classmethod
    def of(cls, kind: OperationKind, request: Any) -> "OperationDescriptor":
        """
        Build a descriptor, checking that ``request`` matches ``kind``.

        Raises:
            ValidationError: If the request is missing or of the wrong type
        """
        if request is None:
            raise ValidationError(f"{kind.value} requires a request", details={"kind": kind.value})
        if not isinstance(request, kind.request_type):
            raise ValidationError(
                f"{kind.value} expects {kind.request_type.__name__}, got {type(request).__name__}",
                details={"kind": kind.value},
            )
        return cls(kind=kind, request=request)
