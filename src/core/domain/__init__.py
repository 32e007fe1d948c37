"""
Domain aggregates and value objects.

Contains the AFE, LeaseOperatingStatement, CurativeItem and Permit aggregates,
partner approval models and the domain event catalogue.
"""

from src.core.domain.afe import Afe, AfeStatus, AfeType
from src.core.domain.approval import (
    ApprovalRecord,
    ApprovalStatus,
    Partner,
    PartnerApprovalRequirement,
)
from src.core.domain.curative_item import CurativeItem, CurativePriority, CurativeStatus
from src.core.domain.lease_operating_statement import (
    ExpenseLineItem,
    ExpenseType,
    LeaseOperatingStatement,
    LosStatus,
    StatementMonth,
)
from src.core.domain.permit import Permit, PermitStatus, PermitType

__all__ = [
    # AFE
    "Afe",
    "AfeStatus",
    "AfeType",
    # Approval
    "ApprovalRecord",
    "ApprovalStatus",
    "Partner",
    "PartnerApprovalRequirement",
    # Curative
    "CurativeItem",
    "CurativePriority",
    "CurativeStatus",
    # LOS
    "ExpenseLineItem",
    "ExpenseType",
    "LeaseOperatingStatement",
    "LosStatus",
    "StatementMonth",
    # Permit
    "Permit",
    "PermitStatus",
    "PermitType",
]
