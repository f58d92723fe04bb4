"""
Domain exceptions raised by the service layer.

Routes translate these into HTTP responses; the balance and settlement
computations never raise them.
"""


class GastosError(Exception):
    """Base class for all application errors."""


class NotFoundError(GastosError, LookupError):
    """A requested entity does not exist."""
    entity = "Resource"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} not found: {entity_id}")


class GroupNotFoundError(NotFoundError):
    entity = "Group"


class ExpenseNotFoundError(NotFoundError):
    entity = "Expense"


class MemberNotFoundError(NotFoundError):
    entity = "Member"


class InvalidMembershipError(GastosError, ValueError):
    """Payer or participants are not members of the owning group."""


class RateProviderError(GastosError):
    """The exchange rate provider is unreachable or returned unusable data."""
