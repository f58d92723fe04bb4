"""
Group service for group-related business logic.
"""
import logging
from typing import List, Sequence
from sqlalchemy.orm import Session
from gastos.core.config import settings
from gastos.core.exceptions import GroupNotFoundError, InvalidMembershipError
from gastos.models.group import Group, GroupMember
from gastos.models.member import Member
from gastos.schemas.group import GroupCreate, GroupResponse, GroupUpdate
from gastos.services.fx_service import CurrencyNormalizer

logger = logging.getLogger(__name__)


def _unique(ids: Sequence[str]) -> List[str]:
    """Drop duplicates, keeping first occurrence order."""
    return list(dict.fromkeys(ids))


def _validate_members(member_ids: Sequence[str], db: Session) -> None:
    if not member_ids:
        return
    found = {row[0] for row in db.query(Member.id).filter(Member.id.in_(member_ids)).all()}
    invalid = [m for m in member_ids if m not in found]
    if invalid:
        raise InvalidMembershipError(f"Invalid member IDs: {', '.join(invalid)}")


def _set_members(group: Group, member_ids: Sequence[str]) -> None:
    existing = {m.member_id: m for m in group.memberships}
    group.memberships = [
        existing.get(member_id) or GroupMember(member_id=member_id)
        for member_id in member_ids
    ]
    for position, membership in enumerate(group.memberships):
        membership.position = position


def create_group(data: GroupCreate, db: Session) -> Group:
    member_ids = _unique(data.members)
    _validate_members(member_ids, db)

    group = Group(
        name=data.name,
        description=data.description,
        base_currency=data.base_currency or settings.DEFAULT_BASE_CURRENCY,
    )
    _set_members(group, member_ids)
    db.add(group)
    db.commit()
    db.refresh(group)
    logger.info(f"Created group {group.id} ({group.base_currency}) with {len(member_ids)} members")
    return group


def list_groups(db: Session) -> List[Group]:
    return db.query(Group).order_by(Group.created_at).all()


def get_group(group_id: str, db: Session) -> Group:
    group = db.query(Group).filter(Group.id == group_id).first()
    if not group:
        raise GroupNotFoundError(group_id)
    return group


def update_group(
    group_id: str,
    data: GroupUpdate,
    db: Session,
    normalizer: CurrencyNormalizer,
) -> Group:
    """
    Update a group's data. Changing the base currency renormalizes every
    expense of the group into the new currency.
    """
    # Imported here: expense_service depends on this module
    from gastos.services.expense_service import apply_normalization

    group = get_group(group_id, db)

    if data.members is not None:
        member_ids = _unique(data.members)
        _validate_members(member_ids, db)
        referenced = set()
        for expense in group.expenses:
            referenced.add(expense.payer_id)
            referenced.update(expense.participant_ids)
        removed = referenced - set(member_ids)
        if removed:
            raise InvalidMembershipError(
                f"Members still referenced by expenses: {', '.join(sorted(removed))}"
            )
        _set_members(group, member_ids)

    if data.name is not None:
        group.name = data.name
    if data.description is not None:
        group.description = data.description

    if data.base_currency is not None and data.base_currency != group.base_currency:
        logger.info(f"Group {group.id} base currency {group.base_currency} -> {data.base_currency}")
        group.base_currency = data.base_currency
        for expense in group.expenses:
            apply_normalization(expense, group.base_currency, normalizer)

    db.commit()
    db.refresh(group)
    return group


def delete_group(group_id: str, db: Session) -> None:
    group = get_group(group_id, db)
    db.delete(group)
    db.commit()


def to_group_response(group: Group) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        description=group.description or "",
        base_currency=group.base_currency,
        members=group.member_ids,
        created_at=group.created_at,
        updated_at=group.updated_at,
    )
