"""
Domain interface for the Dispatcher component.
"""

from typing import TYPE_CHECKING, NewType, Optional, Protocol, Tuple, runtime_checkable

from cluster_gateway.domain.listener import ActionListener
from cluster_gateway.domain.operations import OperationDescriptor

if TYPE_CHECKING:
    from cluster_gateway.infrastructure.future import ActionFuture

CancelToken = NewType("CancelToken", int)


@runtime_checkable
class DispatcherInterface(Protocol):
    """
    Interface for the Dispatcher component.
    Defines the contract that all Dispatcher implementations must follow.
    """

    def submit(
        self,
        descriptor: OperationDescriptor,
        listener: Optional[ActionListener] = None,
    ) -> Tuple["ActionFuture", CancelToken]:
        """
        Submit an operation without blocking.

        Args:
            descriptor: The operation to perform
            listener: Optional listener notified exactly once on completion

        Returns:
            The future for the operation and the token used to cancel it
        """
        ...

    def cancel(self, token: CancelToken) -> bool:
        """
        Cancel a pending operation.

        Returns:
            True if the cancellation decided the outcome, False if the
            operation had already completed
        """
        ...

    def close(self) -> None:
        """Fail every pending operation and release resources."""
        ...
