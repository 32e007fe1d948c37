"""
Application layer: commands, ports and the handlers that run them.
"""

from src.application.commands import (
    ApproveAfeCommand,
    CloseAfeCommand,
    CreateAfeCommand,
    EvaluateAfeApprovalQuery,
    FinalizeLosCommand,
    RecordPartnerApprovalCommand,
    RejectAfeCommand,
    RenewPermitCommand,
    ResolveAfeApprovalCommand,
    SubmitAfeCommand,
    UpdateCurativeItemStatusCommand,
)
from src.application.handlers import (
    AggregateCommandHandler,
    ApproveAfeHandler,
    CloseAfeHandler,
    CreateAfeHandler,
    EvaluateAfeApprovalHandler,
    FinalizeLosHandler,
    RecordPartnerApprovalHandler,
    RejectAfeHandler,
    RenewPermitHandler,
    ResolveAfeApprovalHandler,
    SubmitAfeHandler,
    UpdateCurativeItemStatusHandler,
    publish_all,
)
from src.application.ports import (
    AggregateRepository,
    AggregateRoot,
    ApprovalRecordRepository,
    EventPublisher,
    PartnerRoster,
)

__all__ = [
    # Commands
    "CreateAfeCommand",
    "SubmitAfeCommand",
    "ApproveAfeCommand",
    "RejectAfeCommand",
    "CloseAfeCommand",
    "RecordPartnerApprovalCommand",
    "EvaluateAfeApprovalQuery",
    "ResolveAfeApprovalCommand",
    "FinalizeLosCommand",
    "UpdateCurativeItemStatusCommand",
    "RenewPermitCommand",
    # Handlers
    "AggregateCommandHandler",
    "CreateAfeHandler",
    "SubmitAfeHandler",
    "ApproveAfeHandler",
    "RejectAfeHandler",
    "CloseAfeHandler",
    "RecordPartnerApprovalHandler",
    "EvaluateAfeApprovalHandler",
    "ResolveAfeApprovalHandler",
    "FinalizeLosHandler",
    "UpdateCurativeItemStatusHandler",
    "RenewPermitHandler",
    "publish_all",
    # Ports
    "AggregateRoot",
    "AggregateRepository",
    "EventPublisher",
    "ApprovalRecordRepository",
    "PartnerRoster",
]
