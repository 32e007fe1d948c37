"""
In-memory adapters for the application ports.

Repositories store the persisted record form (``to_persistence`` /
``to_record``) and rehydrate on every read, so callers never share a mutable
aggregate with the store and every read passes the record contracts.
"""

from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

import structlog

from src.core.domain.afe import Afe
from src.core.domain.approval import ApprovalRecord, Partner
from src.core.errors import DuplicateApprovalError, VersionConflictError
from src.core.events import DomainEvent

logger = structlog.get_logger(__name__)

A = TypeVar("A")


class InMemoryAggregateRepository(Generic[A]):
    """Tenant-scoped aggregate store with optimistic concurrency."""

    def __init__(self, aggregate_cls: Type[A]):
        """
        Args:
            aggregate_cls: aggregate class providing ``from_persistence``
        """
        self.aggregate_cls = aggregate_cls
        self._records: Dict[str, Dict[str, Any]] = {}

    def find_by_id(self, aggregate_id: str, organization_id: str) -> Optional[A]:
        record = self._records.get(aggregate_id)
        if record is None or record["organization_id"] != organization_id:
            return None
        return self.aggregate_cls.from_persistence(dict(record))

    def save(self, aggregate: A, expected_version: Optional[int]) -> None:
        """
        Raises:
            VersionConflictError: stored version is not ``expected_version``
                (or the aggregate already exists when ``expected_version`` is None)
        """
        stored = self._records.get(aggregate.id)
        if expected_version is None:
            if stored is not None:
                raise VersionConflictError(aggregate.id, 0, stored["version"])
        else:
            actual = stored["version"] if stored is not None else 0
            if actual != expected_version:
                raise VersionConflictError(aggregate.id, expected_version, actual)

        self._records[aggregate.id] = aggregate.to_persistence()
        logger.debug(
            "aggregate_saved",
            aggregate=self.aggregate_cls.__name__,
            aggregate_id=aggregate.id,
            version=aggregate.version,
        )

    def __len__(self) -> int:
        return len(self._records)


class InMemoryApprovalRecordRepository:
    """Approval records keyed by (afe_id, partner_id)."""

    def __init__(self) -> None:
        self._records: Dict[Tuple[str, str], Dict[str, Any]] = {}

    def find_by_afe_and_partner(self, afe_id: str, partner_id: str) -> Optional[ApprovalRecord]:
        record = self._records.get((afe_id, partner_id))
        return ApprovalRecord.from_record(record) if record is not None else None

    def find_by_afe(self, afe_id: str) -> List[ApprovalRecord]:
        return [
            ApprovalRecord.from_record(record)
            for (stored_afe_id, _), record in self._records.items()
            if stored_afe_id == afe_id
        ]

    def save(self, record: ApprovalRecord) -> None:
        """
        Insert, or overwrite the record with the same id.

        Raises:
            DuplicateApprovalError: a different record exists for (afe_id, partner_id)
        """
        key = (record.afe_id, record.partner_id)
        existing = self._records.get(key)
        if existing is not None and existing["id"] != record.id:
            raise DuplicateApprovalError(record.afe_id, record.partner_id)
        self._records[key] = record.to_record()


class InMemoryEventBus:
    """Collects published events; optionally fails every publish."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.fail_with = fail_with
        self.published: List[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.published.append(event)

    def event_types(self) -> List[str]:
        return [event.event_type for event in self.published]


class StaticPartnerRoster:
    """Fixed roster, either for every AFE or looked up per AFE id."""

    def __init__(
        self,
        partners: Sequence[Partner] = (),
        by_afe: Optional[Dict[str, Sequence[Partner]]] = None,
    ):
        self._partners = list(partners)
        self._by_afe = {afe_id: list(p) for afe_id, p in (by_afe or {}).items()}

    def partners_for_afe(self, afe: Afe) -> List[Partner]:
        return list(self._by_afe.get(afe.id, self._partners))
