"""
Balance service: who paid what versus their fair share.
"""
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from gastos.core.utils import round_money
from gastos.schemas.balance import Balance
from gastos.schemas.expense import ExpenseRecord

UNKNOWN_MEMBER = "Unknown"

SHARE_MODEL_GROUP = "group"
SHARE_MODEL_PARTICIPANTS = "participants"


def compute_balances(
    members: Sequence[str],
    expenses: Sequence[ExpenseRecord],
    names: Optional[Mapping[str, str]] = None,
    share_model: str = SHARE_MODEL_GROUP,
) -> List[Balance]:
    """
    Calculate each member's net balance (total paid minus fair share).

    With the "group" share model the whole group spend is divided equally
    across every member, regardless of each expense's participants. With
    "participants" each expense is divided among its own participants.

    Sums are accumulated unrounded; only the returned fields are rounded to
    2 decimals. Results follow the order of ``members``. The caller
    guarantees payers and participants belong to ``members``.
    """
    if not members:
        return []
    names = names or {}

    paid: Dict[str, Decimal] = {member_id: Decimal(0) for member_id in members}
    share: Dict[str, Decimal] = {member_id: Decimal(0) for member_id in members}

    for expense in expenses:
        if expense.payer_id in paid:
            paid[expense.payer_id] += expense.normalized_amount

    if share_model == SHARE_MODEL_PARTICIPANTS:
        for expense in expenses:
            participants = [p for p in expense.participant_ids if p in share]
            if not participants:
                continue
            per_person = expense.normalized_amount / len(participants)
            for participant_id in participants:
                share[participant_id] += per_person
    elif share_model == SHARE_MODEL_GROUP:
        total_spend = sum((expense.normalized_amount for expense in expenses), Decimal(0))
        per_member = total_spend / len(paid)
        for member_id in share:
            share[member_id] = per_member
    else:
        raise ValueError(f"Unknown share model: {share_model}")

    return [
        Balance(
            member_id=member_id,
            member_name=names.get(member_id, UNKNOWN_MEMBER),
            total_paid=round_money(paid[member_id]),
            total_share=round_money(share[member_id]),
            net=round_money(paid[member_id] - share[member_id]),
        )
        for member_id in paid
    ]
