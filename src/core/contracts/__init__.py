"""
Contract Validation Module

JSON Schema contracts for the persisted form of every aggregate.
"""

from .validators import (
    AfeRecordValidator,
    ApprovalRecordValidator,
    ContractValidator,
    CurativeItemRecordValidator,
    LeaseOperatingStatementRecordValidator,
    PermitRecordValidator,
    SchemaLoader,
    validate_afe_record,
    validate_approval_record,
    validate_curative_item_record,
    validate_lease_operating_statement_record,
    validate_permit_record,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "AfeRecordValidator",
    "LeaseOperatingStatementRecordValidator",
    "CurativeItemRecordValidator",
    "PermitRecordValidator",
    "ApprovalRecordValidator",
    # Functions
    "validate_afe_record",
    "validate_lease_operating_statement_record",
    "validate_curative_item_record",
    "validate_permit_record",
    "validate_approval_record",
]
