"""
Pydantic schemas for group statistics.
"""
from pydantic import BaseModel
from typing import List
from gastos.schemas.common import Money


class PersonStatistic(BaseModel):
    """Expenses aggregated by payer."""
    person_id: str
    person_name: str
    total_amount: Money
    count: int


class CategoryStatistic(BaseModel):
    """Expenses aggregated by category."""
    category: str
    total_amount: Money
    count: int
    percentage: Money  # Share of the grand total (0-100), 1 decimal


class MonthStatistic(BaseModel):
    """Expenses aggregated by calendar month."""
    month: str  # YYYY-MM
    year: int
    month_number: int
    month_name: str
    total_amount: Money
    count: int


class TotalStatistic(BaseModel):
    """Grand totals for a group."""
    total: Money
    count: int
    average: Money
    currency: str
    has_fallback_rates: bool = False  # Some expense was converted with a degraded rate


class GroupSummary(BaseModel):
    """All statistics for a group in a single payload."""
    total: TotalStatistic
    by_person: List[PersonStatistic]
    by_category: List[CategoryStatistic]
    by_month: List[MonthStatistic]
    member_count: int
    expense_count: int
