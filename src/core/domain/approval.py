"""
Partner approval models

- Partner: roster entry with its working interest in the AFE's well/lease
- PartnerApprovalRequirement: derived per evaluation for each partner
- ApprovalRecord: a partner's response to one AFE (one record per AFE/partner)

Immutable Pydantic models. Working interests are fractions in [0, 1].
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from src.core.contracts.validators import validate_approval_record
from src.core.domain.serialization import dump_datetime, dump_money, load_datetime, load_money
from src.core.math.numerical_safeguards import validate_fraction
from src.core.money.monetary_value import DEFAULT_CURRENCY, MonetaryValue


class ApprovalStatus(str, Enum):
    """Partner response to an AFE"""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _check_working_interest(v: float) -> float:
    validate_fraction(v, "working_interest")
    return float(v)


class Partner(BaseModel):
    """Working-interest owner (read-only roster entry)."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    working_interest: float = Field(..., description="Fraction of the venture in [0, 1]")

    model_config = {"frozen": True}

    @field_validator("working_interest", mode="before")
    @classmethod
    def validate_working_interest(cls, v: Any) -> float:
        return _check_working_interest(v)


class PartnerApprovalRequirement(BaseModel):
    """
    What the workflow expects from one partner for one AFE.

    ``approval_threshold`` is the AFE's estimated cost; ``is_required`` marks a
    major partner whose response is mandatory.
    """

    partner_id: str = Field(..., min_length=1)
    partner_name: str = Field(..., min_length=1)
    working_interest: float
    approval_threshold: MonetaryValue
    is_required: bool

    model_config = {"frozen": True}

    @field_validator("working_interest", mode="before")
    @classmethod
    def validate_working_interest(cls, v: Any) -> float:
        return _check_working_interest(v)


class ApprovalRecord(BaseModel):
    """A partner's response to an AFE."""

    id: str = Field(default_factory=lambda: str(uuid4()), min_length=1)
    afe_id: str = Field(..., min_length=1)
    partner_id: str = Field(..., min_length=1)
    status: ApprovalStatus = ApprovalStatus.PENDING
    approved_amount: Optional[MonetaryValue] = None
    comments: Optional[str] = None
    approval_date: Optional[datetime] = None
    approved_by_user_id: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def is_completed(self) -> bool:
        return self.status != ApprovalStatus.PENDING

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "afe_id": self.afe_id,
            "partner_id": self.partner_id,
            "status": self.status.value,
            "approved_amount": dump_money(self.approved_amount),
            "currency": (
                self.approved_amount.currency if self.approved_amount else DEFAULT_CURRENCY
            ),
            "comments": self.comments,
            "approval_date": dump_datetime(self.approval_date),
            "approved_by_user_id": self.approved_by_user_id,
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "ApprovalRecord":
        """
        Raises:
            jsonschema.ValidationError: record violates the approval_record contract
        """
        validate_approval_record(data)
        return cls(
            id=data["id"],
            afe_id=data["afe_id"],
            partner_id=data["partner_id"],
            status=data["status"],
            approved_amount=load_money(data.get("approved_amount"), data["currency"]),
            comments=data.get("comments"),
            approval_date=load_datetime(data.get("approval_date")),
            approved_by_user_id=data.get("approved_by_user_id"),
        )
