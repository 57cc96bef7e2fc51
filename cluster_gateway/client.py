"""
Client: one-stop interface for performing operations against the cluster.

All operations are asynchronous by nature and come in two flavors. Called
with only a request, a method returns an ``ActionFuture``. Called with a
request and an ``ActionListener``, the listener is notified with the
outcome; the same future is still returned and may be ignored or used
alongside the listener. Both flavors go through one dispatcher submission.
"""

from typing import Any, Optional

from cluster_gateway.config import GatewayConfig
from cluster_gateway.domain.dispatcher import DispatcherInterface
from cluster_gateway.domain.listener import ActionListener
from cluster_gateway.domain.observability import ObservabilitySink
from cluster_gateway.domain.operations import OperationDescriptor, OperationKind
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
from cluster_gateway.domain.responses import (
    ClearRealmCacheResponse,
    CountResponse,
    DeleteByQueryResponse,
    DeleteResponse,
    GetResponse,
    IndexResponse,
    SearchResponse,
    TermsResponse,
)
from cluster_gateway.domain.transport import Transport
from cluster_gateway.exceptions import ValidationError
from cluster_gateway.infrastructure.dispatcher import Dispatcher
from cluster_gateway.infrastructure.future import ActionFuture


class _Facade:
    def __init__(self, dispatcher: DispatcherInterface) -> None:
        self._dispatcher = dispatcher

    def _execute(
        self, kind: OperationKind, request: Any, listener: Optional[ActionListener]
    ) -> ActionFuture:
        descriptor = OperationDescriptor.of(kind, request)
        future, _ = self._dispatcher.submit(descriptor, listener)
        return future


class AdminClient(_Facade):
    """Administrative operations, with the same two flavors as ``Client``."""

    def clear_realm_cache(
        self,
        request: ClearRealmCacheRequest,
        listener: Optional[ActionListener] = None,
    ) -> "ActionFuture[ClearRealmCacheResponse]":
        """
        Evict users from the authentication cache of the named realms on every node.

        The response lists which nodes acknowledged. It is a failure only when
        no node acknowledged.

        Args:
            request: The clear realm cache request
            listener: A listener to be notified with the result
        """
        return self._execute(OperationKind.ADMIN_CLEAR_REALM_CACHE, request, listener)


class Client(_Facade):
    """
    Gateway to a cluster reached through ``transport``.

    Holds only its dispatcher; create as many clients as needed. Pass either
    a ``transport``, from which a dispatcher is built with ``config`` and
    ``sink``, or a ready ``dispatcher``, but not both.

    Raises:
        ValidationError: If neither or both of ``transport`` and ``dispatcher`` are given
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        config: Optional[GatewayConfig] = None,
        sink: Optional[ObservabilitySink] = None,
        dispatcher: Optional[DispatcherInterface] = None,
    ) -> None:
        if (transport is None) == (dispatcher is None):
            raise ValidationError("Client needs exactly one of transport or dispatcher")
        super().__init__(dispatcher or Dispatcher(transport, config=config, sink=sink))
        self._admin = AdminClient(self._dispatcher)

    def close(self) -> None:
        """Closes the client. Operations still pending fail with ``GatewayClosedError``."""
        self._dispatcher.close()

    def admin(self) -> AdminClient:
        """The admin client that can be used to perform administrative operations."""
        return self._admin

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def index(
        self, request: IndexRequest, listener: Optional[ActionListener] = None
    ) -> "ActionFuture[IndexResponse]":
        """
        Index a JSON source associated with a given index and type.

        The id is optional, if it is not provided, one will be generated automatically.

        Args:
            request: The index request
            listener: A listener to be notified with a result
        """
        return self._execute(OperationKind.INDEX, request, listener)

    def delete(
        self, request: DeleteRequest, listener: Optional[ActionListener] = None
    ) -> "ActionFuture[DeleteResponse]":
        """Deletes a document from the index based on the index, type and id."""
        return self._execute(OperationKind.DELETE, request, listener)

    def delete_by_query(
        self, request: DeleteByQueryRequest, listener: Optional[ActionListener] = None
    ) -> "ActionFuture[DeleteByQueryResponse]":
        """Deletes all documents from one or more indices based on a query."""
        return self._execute(OperationKind.DELETE_BY_QUERY, request, listener)

    def get(
        self, request: GetRequest, listener: Optional[ActionListener] = None
    ) -> "ActionFuture[GetResponse]":
        """Gets the JSON source that was indexed from an index with a type and id."""
        return self._execute(OperationKind.GET, request, listener)

    def count(
        self, request: CountRequest, listener: Optional[ActionListener] = None
    ) -> "ActionFuture[CountResponse]":
        """A count of all the documents matching a specific query."""
        return self._execute(OperationKind.COUNT, request, listener)

    def search(
        self, request: SearchRequest, listener: Optional[ActionListener] = None
    ) -> "ActionFuture[SearchResponse]":
        """Search across one or more indices and one or more types with a query."""
        return self._execute(OperationKind.SEARCH, request, listener)

    def search_scroll(
        self, request: SearchScrollRequest, listener: Optional[ActionListener] = None
    ) -> "ActionFuture[SearchResponse]":
        """A search scroll request to continue searching a previous scrollable search request."""
        return self._execute(OperationKind.SEARCH_SCROLL, request, listener)

    def terms(
        self, request: TermsRequest, listener: Optional[ActionListener] = None
    ) -> "ActionFuture[TermsResponse]":
        """
        Terms of specific fields in one or more indices, with their document
        frequencies (in how many documents each term exists).
        """
        return self._execute(OperationKind.TERMS, request, listener)

    def more_like_this(
        self, request: MoreLikeThisRequest, listener: Optional[ActionListener] = None
    ) -> "ActionFuture[SearchResponse]":
        """Search for documents that are "like" a specific document."""
        return self._execute(OperationKind.MORE_LIKE_THIS, request, listener)
