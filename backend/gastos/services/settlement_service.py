"""
Settlement service for suggesting transfers that settle a group's debts.
"""
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from gastos.core.config import settings
from gastos.core.utils import round_money
from gastos.schemas.balance import Balance, BalanceSummary, Settlement
from gastos.services.balance_service import compute_balances
from gastos.services.expense_service import list_expense_records
from gastos.services.group_service import get_group
from gastos.services.member_service import get_name_map

# Amounts at or below this are rounding noise, not debt
NEGLIGIBLE_AMOUNT = Decimal("0.01")


def plan_settlements(balances: Sequence[Balance]) -> List[Settlement]:
    """
    Minimize the number of transfers needed to settle debts.

    Greedy matching of the largest creditor with the largest debtor. Both
    queues are ordered by initial amount, ties keeping their input order, and
    the current creditor and debtor stay in play until what they have left
    drops below 0.01. The input balances are not modified.
    """
    # Separate creditors (positive balance) and debtors (negative balance)
    creditors = [[b.member_id, b.member_name, b.net] for b in balances if b.net > NEGLIGIBLE_AMOUNT]
    # Store as positive for easier calculation
    debtors = [[b.member_id, b.member_name, -b.net] for b in balances if b.net < -NEGLIGIBLE_AMOUNT]

    # Sort in descending order; the sort is stable so ties keep input order
    creditors.sort(key=lambda x: x[2], reverse=True)
    debtors.sort(key=lambda x: x[2], reverse=True)

    settlements = []
    cred_idx = 0
    debt_idx = 0

    while cred_idx < len(creditors) and debt_idx < len(debtors):
        creditor = creditors[cred_idx]
        debtor = debtors[debt_idx]

        # Transfer the minimum of what's owed and what's needed
        amount = min(creditor[2], debtor[2])
        if amount > NEGLIGIBLE_AMOUNT:
            settlements.append(Settlement(
                from_member_id=debtor[0],
                from_name=debtor[1],
                to_member_id=creditor[0],
                to_name=creditor[1],
                amount=round_money(amount),
            ))

        creditor[2] -= amount
        debtor[2] -= amount
        if creditor[2] < NEGLIGIBLE_AMOUNT:
            cred_idx += 1
        if debtor[2] < NEGLIGIBLE_AMOUNT:
            debt_idx += 1

    return settlements


def summarize_balances(
    members: Sequence[str],
    expenses,
    names=None,
    share_model: str = "group",
) -> BalanceSummary:
    """Combine balance calculation and settlement suggestions."""
    balances = compute_balances(members, expenses, names=names, share_model=share_model)
    return BalanceSummary(
        balances=balances,
        settlements=plan_settlements(balances),
        has_fallback_rates=any(expense.is_fallback_rate for expense in expenses),
    )


def get_group_balance_summary(
    group_id: str,
    db: Session,
    share_model: Optional[str] = None,
) -> BalanceSummary:
    """
    Load a group from the store and compute its balances and settlements.
    Raises GroupNotFoundError if the group does not exist.
    """
    group = get_group(group_id, db)
    members = group.member_ids
    expenses = list_expense_records(group, db)
    names = get_name_map(members, db)
    return summarize_balances(
        members,
        expenses,
        names=names,
        share_model=share_model or settings.SHARE_MODEL,
    )
