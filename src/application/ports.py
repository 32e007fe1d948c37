"""
Ports to external collaborators.

Persistence, event delivery and the partner roster live outside the core;
handlers depend only on these protocols. In-memory implementations are in
``src.adapters.memory``.
"""

from typing import List, Optional, Protocol, TypeVar

from src.core.domain.afe import Afe
from src.core.domain.approval import ApprovalRecord, Partner
from src.core.events import DomainEvent


class AggregateRoot(Protocol):
    """What handlers need from an aggregate."""

    @property
    def id(self) -> str: ...

    @property
    def organization_id(self) -> str: ...

    @property
    def version(self) -> int: ...

    def drain_events(self) -> List[DomainEvent]: ...


A = TypeVar("A", bound=AggregateRoot)


class AggregateRepository(Protocol[A]):
    def find_by_id(self, aggregate_id: str, organization_id: str) -> Optional[A]:
        """Aggregate owned by ``organization_id``, or None (other tenants are invisible)."""
        ...

    def save(self, aggregate: A, expected_version: Optional[int]) -> None:
        """
        Persist with optimistic concurrency.

        ``expected_version`` is the version the caller loaded (None for a new
        aggregate).

        Raises:
            VersionConflictError: stored version differs from expected_version
        """
        ...


class EventPublisher(Protocol):
    def publish(self, event: DomainEvent) -> None: ...


class ApprovalRecordRepository(Protocol):
    def find_by_afe_and_partner(self, afe_id: str, partner_id: str) -> Optional[ApprovalRecord]: ...

    def find_by_afe(self, afe_id: str) -> List[ApprovalRecord]: ...

    def save(self, record: ApprovalRecord) -> None:
        """
        Raises:
            DuplicateApprovalError: another record exists for (afe_id, partner_id)
        """
        ...


class PartnerRoster(Protocol):
    def partners_for_afe(self, afe: Afe) -> List[Partner]:
        """Working-interest owners of the well/lease the AFE is for."""
        ...
