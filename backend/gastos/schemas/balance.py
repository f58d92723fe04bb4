"""
Pydantic schemas for balances and settlement suggestions.
"""
from pydantic import BaseModel
from typing import List
from gastos.schemas.common import Money


class Balance(BaseModel):
    """A member's position in a group, in the group's base currency."""
    member_id: str
    member_name: str
    total_paid: Money  # What they paid
    total_share: Money  # What they should pay
    net: Money  # total_paid - total_share; positive means they are owed money


class Settlement(BaseModel):
    """A suggested transfer that reduces outstanding debt."""
    from_member_id: str  # Who owes
    from_name: str
    to_member_id: str  # Who is owed
    to_name: str
    amount: Money


class BalanceSummary(BaseModel):
    """Complete balance information for a group."""
    balances: List[Balance]
    settlements: List[Settlement]
    has_fallback_rates: bool = False  # Some expense was converted with a degraded rate
