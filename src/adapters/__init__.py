"""Adapters implementing the application ports."""

from src.adapters.memory import (
    InMemoryAggregateRepository,
    InMemoryApprovalRecordRepository,
    InMemoryEventBus,
    StaticPartnerRoster,
)

__all__ = [
    "InMemoryAggregateRepository",
    "InMemoryApprovalRecordRepository",
    "InMemoryEventBus",
    "StaticPartnerRoster",
]
