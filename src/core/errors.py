"""
Domain error taxonomy.

Three families of local, synchronous failures:
- validation errors: malformed money, out-of-range fractions, bad inputs
- invalid-transition errors: status change missing from a transition table,
  or a violated precondition of a lifecycle operation
- conflict errors: duplicate approval records, optimistic-concurrency mismatches

None of them are retried by the core.
"""


class DomainError(Exception):
    """Base class for every error raised by the ledger core."""


# =============================================================================
# VALIDATION
# =============================================================================


class DomainValidationError(DomainError, ValueError):
    """Input violates a value-object or operation invariant."""


class CurrencyMismatchError(DomainValidationError):
    """Arithmetic or comparison attempted between two currencies."""

    def __init__(self, left: str, right: str):
        self.left = left
        self.right = right
        super().__init__(
            f"Cannot perform operation on different currencies: {left} and {right}"
        )


# =============================================================================
# TRANSITIONS
# =============================================================================


class InvalidTransitionError(DomainError):
    """Status change not allowed by the aggregate's transition table."""

    def __init__(
        self,
        message: str,
        aggregate: str | None = None,
        from_status: str | None = None,
        to_status: str | None = None,
    ):
        self.aggregate = aggregate
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(message)

    @classmethod
    def for_edge(cls, aggregate: str, from_status: str, to_status: str) -> "InvalidTransitionError":
        """Error for a (from, to) pair absent from a transition table."""
        return cls(
            f"Invalid status transition from {from_status} to {to_status}",
            aggregate=aggregate,
            from_status=from_status,
            to_status=to_status,
        )


class WorkflowNotSatisfiedError(InvalidTransitionError):
    """Partner consensus does not support the requested AFE decision."""


# =============================================================================
# CONFLICTS
# =============================================================================


class ConflictError(DomainError):
    """Write rejected because it conflicts with existing state."""


class DuplicateApprovalError(ConflictError):
    """A partner already has an approval record for this AFE."""

    def __init__(self, afe_id: str, partner_id: str):
        self.afe_id = afe_id
        self.partner_id = partner_id
        super().__init__(
            f"Partner {partner_id} already has an approval record for AFE {afe_id}"
        )


class VersionConflictError(ConflictError):
    """Stored aggregate version differs from the version the caller loaded."""

    def __init__(self, aggregate_id: str, expected_version: int, actual_version: int):
        self.aggregate_id = aggregate_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Version conflict for {aggregate_id}: expected {expected_version}, "
            f"found {actual_version}"
        )


# =============================================================================
# LOOKUP
# =============================================================================


class AggregateNotFoundError(DomainError, LookupError):
    """Aggregate does not exist or belongs to another organization."""

    def __init__(self, aggregate: str, aggregate_id: str):
        self.aggregate = aggregate
        self.aggregate_id = aggregate_id
        super().__init__(f"{aggregate} {aggregate_id} not found")
