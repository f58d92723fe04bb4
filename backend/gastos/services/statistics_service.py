"""
Statistics service: aggregated expense data for charts and analytics.

All passes read the same normalized expense records. Running sums stay
unrounded; amounts are rounded to 2 decimals when a result row is built.
"""
import calendar
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from gastos.core.utils import millis_to_datetime, round_money, round_percentage
from gastos.schemas.expense import ExpenseRecord
from gastos.schemas.statistics import (
    CategoryStatistic,
    GroupSummary,
    MonthStatistic,
    PersonStatistic,
    TotalStatistic,
)
from gastos.services.balance_service import UNKNOWN_MEMBER
from gastos.services.expense_service import list_expense_records
from gastos.services.group_service import get_group
from gastos.services.member_service import get_name_map

DEFAULT_CATEGORY = "General"

STATISTIC_TYPES = ("person", "category", "month", "total", "summary")


def expenses_by_person(
    expenses: Sequence[ExpenseRecord],
    names: Optional[Mapping[str, str]] = None,
) -> List[PersonStatistic]:
    """Expenses grouped by payer, largest total first."""
    names = names or {}
    totals: Dict[str, Decimal] = {}
    counts: Dict[str, int] = {}
    for expense in expenses:
        totals[expense.payer_id] = totals.get(expense.payer_id, Decimal(0)) + expense.normalized_amount
        counts[expense.payer_id] = counts.get(expense.payer_id, 0) + 1

    result = [
        PersonStatistic(
            person_id=payer_id,
            person_name=names.get(payer_id, UNKNOWN_MEMBER),
            total_amount=round_money(total),
            count=counts[payer_id],
        )
        for payer_id, total in totals.items()
    ]
    result.sort(key=lambda item: item.total_amount, reverse=True)
    return result


def expenses_by_category(expenses: Sequence[ExpenseRecord]) -> List[CategoryStatistic]:
    """Expenses grouped by category with their share of the grand total."""
    totals: Dict[str, Decimal] = {}
    counts: Dict[str, int] = {}
    grand_total = Decimal(0)
    for expense in expenses:
        category = expense.category or DEFAULT_CATEGORY
        totals[category] = totals.get(category, Decimal(0)) + expense.normalized_amount
        counts[category] = counts.get(category, 0) + 1
        grand_total += expense.normalized_amount

    result = []
    for category, total in totals.items():
        percentage = total * 100 / grand_total if grand_total else Decimal(0)
        result.append(CategoryStatistic(
            category=category,
            total_amount=round_money(total),
            count=counts[category],
            percentage=round_percentage(percentage),
        ))
    result.sort(key=lambda item: item.total_amount, reverse=True)
    return result


def expenses_by_month(expenses: Sequence[ExpenseRecord]) -> List[MonthStatistic]:
    """Expenses grouped by UTC calendar month, oldest first."""
    months: Dict[str, dict] = {}
    for expense in expenses:
        moment = millis_to_datetime(expense.effective_millis)
        key = f"{moment.year}-{moment.month:02d}"
        bucket = months.setdefault(key, {
            "year": moment.year,
            "month_number": moment.month,
            "total": Decimal(0),
            "count": 0,
        })
        bucket["total"] += expense.normalized_amount
        bucket["count"] += 1

    return [
        MonthStatistic(
            month=key,
            year=bucket["year"],
            month_number=bucket["month_number"],
            month_name=calendar.month_abbr[bucket["month_number"]],
            total_amount=round_money(bucket["total"]),
            count=bucket["count"],
        )
        for key, bucket in sorted(months.items())
    ]


def total_expenses(expenses: Sequence[ExpenseRecord], base_currency: str) -> TotalStatistic:
    """Grand total, count and average for a group."""
    total = sum((expense.normalized_amount for expense in expenses), Decimal(0))
    count = len(expenses)
    average = total / count if count else Decimal(0)
    return TotalStatistic(
        total=round_money(total),
        count=count,
        average=round_money(average),
        currency=base_currency,
        has_fallback_rates=any(expense.is_fallback_rate for expense in expenses),
    )


def expenses_in_range(
    expenses: Sequence[ExpenseRecord],
    start_millis: Optional[int] = None,
    end_millis: Optional[int] = None,
) -> List[ExpenseRecord]:
    """Expenses that happened within [start_millis, end_millis]; open bounds are unbounded."""
    return [
        expense for expense in expenses
        if (start_millis is None or expense.effective_millis >= start_millis)
        and (end_millis is None or expense.effective_millis <= end_millis)
    ]


def group_summary(
    expenses: Sequence[ExpenseRecord],
    base_currency: str,
    member_count: int,
    names: Optional[Mapping[str, str]] = None,
) -> GroupSummary:
    return GroupSummary(
        total=total_expenses(expenses, base_currency),
        by_person=expenses_by_person(expenses, names),
        by_category=expenses_by_category(expenses),
        by_month=expenses_by_month(expenses),
        member_count=member_count,
        expense_count=len(expenses),
    )


def get_group_statistics(
    group_id: str,
    statistic_type: str,
    db: Session,
    start_millis: Optional[int] = None,
    end_millis: Optional[int] = None,
):
    """
    Compute one statistic for a stored group.

    Args:
        group_id: Group to aggregate
        statistic_type: One of STATISTIC_TYPES
        db: Database session
        start_millis: Optional lower bound on the expense timestamp
        end_millis: Optional upper bound on the expense timestamp

    Raises:
        GroupNotFoundError: if the group does not exist
        ValueError: if statistic_type is not supported
    """
    if statistic_type not in STATISTIC_TYPES:
        raise ValueError(
            f"Invalid statistic type '{statistic_type}'. Use: {', '.join(STATISTIC_TYPES)}"
        )

    group = get_group(group_id, db)
    expenses = expenses_in_range(list_expense_records(group, db), start_millis, end_millis)

    if statistic_type == "category":
        return expenses_by_category(expenses)
    if statistic_type == "month":
        return expenses_by_month(expenses)
    if statistic_type == "total":
        return total_expenses(expenses, group.base_currency)

    names = get_name_map({e.payer_id for e in expenses}, db)
    if statistic_type == "person":
        return expenses_by_person(expenses, names)
    return group_summary(expenses, group.base_currency, len(group.member_ids), names)
