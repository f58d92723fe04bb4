"""
Expense service for expense-related business logic.
"""
import logging
from typing import List
from sqlalchemy.orm import Session
from gastos.core.exceptions import ExpenseNotFoundError, InvalidMembershipError
from gastos.core.utils import datetime_to_millis, now_millis
from gastos.models.expense import Expense, ExpenseParticipant
from gastos.models.group import Group
from gastos.schemas.expense import ExpenseCreate, ExpenseRecord, ExpenseResponse, ExpenseUpdate
from gastos.services.fx_service import CurrencyNormalizer
from gastos.services.group_service import get_group

logger = logging.getLogger(__name__)


def _check_membership(group: Group, payer_id: str, participant_ids: List[str]) -> None:
    members = set(group.member_ids)
    if payer_id not in members:
        raise InvalidMembershipError(f"Payer {payer_id} is not a member of group {group.id}")
    outsiders = [p for p in participant_ids if p not in members]
    if outsiders:
        raise InvalidMembershipError(
            f"Participants not in group {group.id}: {', '.join(outsiders)}"
        )


def apply_normalization(expense: Expense, base_currency: str, normalizer: CurrencyNormalizer) -> None:
    """Convert the expense amount into ``base_currency`` and cache the result on the row."""
    conversion = normalizer.normalize(expense.amount, expense.currency, base_currency)
    expense.normalized_amount = conversion.amount
    expense.exchange_rate = conversion.rate.rate
    expense.rate_source = conversion.rate.source
    expense.is_fallback_rate = conversion.rate.is_fallback
    if conversion.is_fallback:
        logger.warning(
            f"Expense {expense.id or '(new)'} converted {expense.currency} -> {base_currency} "
            f"with a {conversion.rate.source} rate; accuracy is degraded"
        )


def create_expense(
    group_id: str,
    data: ExpenseCreate,
    db: Session,
    normalizer: CurrencyNormalizer,
) -> Expense:
    """Create an expense with participants and its normalized amount."""
    group = get_group(group_id, db)
    participant_ids = list(dict.fromkeys(data.participant_ids))
    _check_membership(group, data.payer_id, participant_ids)

    expense = Expense(
        group_id=group.id,
        payer_id=data.payer_id,
        amount=data.amount,
        currency=data.currency,
        description=data.description,
        category=data.category,
        timestamp_millis=data.timestamp_millis if data.timestamp_millis is not None else now_millis(),
    )
    apply_normalization(expense, group.base_currency, normalizer)
    expense.participants = [ExpenseParticipant(member_id=p) for p in participant_ids]

    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


def list_expenses(group_id: str, db: Session) -> List[Expense]:
    group = get_group(group_id, db)
    return _ordered_expenses(group, db)


def _ordered_expenses(group: Group, db: Session) -> List[Expense]:
    return (
        db.query(Expense)
        .filter(Expense.group_id == group.id)
        .order_by(Expense.created_at, Expense.id)
        .all()
    )


def get_expense(group_id: str, expense_id: str, db: Session) -> Expense:
    get_group(group_id, db)
    expense = db.query(Expense).filter(
        Expense.id == expense_id,
        Expense.group_id == group_id
    ).first()
    if not expense:
        raise ExpenseNotFoundError(expense_id)
    return expense


def update_expense(
    group_id: str,
    expense_id: str,
    data: ExpenseUpdate,
    db: Session,
    normalizer: CurrencyNormalizer,
) -> Expense:
    """Update an expense; amount or currency changes recompute the normalized amount."""
    expense = get_expense(group_id, expense_id, db)
    group = expense.group

    payer_id = data.payer_id if data.payer_id is not None else expense.payer_id
    participant_ids = (
        list(dict.fromkeys(data.participant_ids))
        if data.participant_ids is not None
        else expense.participant_ids
    )
    _check_membership(group, payer_id, participant_ids)

    expense.payer_id = payer_id
    if data.participant_ids is not None:
        existing = {p.member_id: p for p in expense.participants}
        expense.participants = [
            existing.get(p) or ExpenseParticipant(member_id=p) for p in participant_ids
        ]

    if data.description is not None:
        expense.description = data.description
    if data.category is not None:
        expense.category = data.category
    if data.timestamp_millis is not None:
        expense.timestamp_millis = data.timestamp_millis

    if data.amount is not None or data.currency is not None:
        if data.amount is not None:
            expense.amount = data.amount
        if data.currency is not None:
            expense.currency = data.currency
        apply_normalization(expense, group.base_currency, normalizer)

    db.commit()
    db.refresh(expense)
    return expense


def delete_expense(group_id: str, expense_id: str, db: Session) -> None:
    expense = get_expense(group_id, expense_id, db)
    db.delete(expense)
    db.commit()


def to_record(expense: Expense, base_currency: str) -> ExpenseRecord:
    """Snapshot a stored expense as the immutable record the computations consume."""
    return ExpenseRecord(
        id=expense.id,
        payer_id=expense.payer_id,
        amount=expense.amount,
        currency=expense.currency,
        base_currency=base_currency,
        normalized_amount=expense.normalized_amount,
        participant_ids=expense.participant_ids,
        category=expense.category,
        timestamp_millis=expense.timestamp_millis,
        created_at_millis=datetime_to_millis(expense.created_at),
        is_fallback_rate=bool(expense.is_fallback_rate),
    )


def list_expense_records(group: Group, db: Session) -> List[ExpenseRecord]:
    return [to_record(e, group.base_currency) for e in _ordered_expenses(group, db)]


def to_expense_response(expense: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        id=expense.id,
        group_id=expense.group_id,
        description=expense.description,
        amount=expense.amount,
        currency=expense.currency,
        normalized_amount=expense.normalized_amount,
        base_currency=expense.group.base_currency,
        exchange_rate=expense.exchange_rate,
        rate_source=expense.rate_source,
        is_fallback_rate=expense.is_fallback_rate,
        payer_id=expense.payer_id,
        participant_ids=expense.participant_ids,
        category=expense.category,
        timestamp_millis=expense.timestamp_millis,
        created_at=expense.created_at,
    )
