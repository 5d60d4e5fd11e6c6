"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection
    - Repository.get returns a detached copy; changes are visible only after save()
    - Repository.lock(id) serializes mutations of one entity id; different ids never contend

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no inheritance
    - Async in Protocol: implementations do IO (database, gateway, queues)
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from decimal import Decimal
from typing import Hashable, Protocol, TypeVar

from tramites.core.domain_types import CitizenId, DebtId
from tramites.core.entities import GatewayResult, Procedure, RetryDirective

T = TypeVar("T")


class Repository(Protocol[T]):
    """Indexed entity store with per-id mutual exclusion — implemented by shell."""
    async def get(self, entity_id: Hashable) -> T | None: ...
    async def save(self, entity: T) -> None: ...
    async def query(self, predicate: Callable[[T], bool]) -> list[T]: ...
    async def next_id(self) -> int: ...
    def lock(self, entity_id: Hashable) -> AbstractAsyncContextManager[None]: ...


class NotificationPort(Protocol):
    """Citizen-facing notifications (email/SMS). Fire-and-forget."""
    async def notify(self, message: str, citizen_id: CitizenId) -> None: ...


class ReminderScheduler(Protocol):
    """Installment reminders. Fire-and-forget."""
    async def schedule(self, debt_id: DebtId, installment_count: int) -> None: ...


class RetryScheduler(Protocol):
    """Queue that re-attempts declined payments. Fire-and-forget."""
    async def schedule(self, directive: RetryDirective) -> None: ...


class RefundPort(Protocol):
    """Reverses a procedure charge; raising aborts the cancellation.

    void() undoes a refund whose cancellation could not be stored.
    """
    async def refund(self, procedure: Procedure, amount: Decimal) -> None: ...
    async def void(self, procedure: Procedure, amount: Decimal) -> None: ...


class PaymentGateway(Protocol):
    """The only nondeterministic dependency of the payment flow."""
    async def charge(self, method: str, amount: Decimal) -> GatewayResult: ...
