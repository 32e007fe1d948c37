"""AFE partner approval workflow."""

from src.workflow.approval_workflow import (
    ApprovalWorkflowConfig,
    ApprovalWorkflowEvaluator,
    ApprovalWorkflowResult,
)

__all__ = [
    "ApprovalWorkflowConfig",
    "ApprovalWorkflowEvaluator",
    "ApprovalWorkflowResult",
]
