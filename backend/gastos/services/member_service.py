"""
Member directory service.
"""
import logging
from typing import Dict, Iterable, List
from sqlalchemy.orm import Session
from gastos.core.exceptions import InvalidMembershipError, MemberNotFoundError
from gastos.models.group import GroupMember
from gastos.models.member import Member
from gastos.schemas.member import MemberCreate, MemberUpdate

logger = logging.getLogger(__name__)


def create_member(data: MemberCreate, db: Session) -> Member:
    member = Member(name=data.name.strip(), email=data.email)
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info(f"Created member {member.id} ({member.name})")
    return member


def list_members(db: Session) -> List[Member]:
    return db.query(Member).order_by(Member.created_at, Member.name).all()


def get_member(member_id: str, db: Session) -> Member:
    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        raise MemberNotFoundError(member_id)
    return member


def update_member(member_id: str, data: MemberUpdate, db: Session) -> Member:
    member = get_member(member_id, db)
    if data.name is not None:
        member.name = data.name.strip()
    if data.email is not None:
        member.email = data.email
    db.commit()
    db.refresh(member)
    return member


def delete_member(member_id: str, db: Session) -> None:
    """Delete a member that no longer belongs to any group."""
    member = get_member(member_id, db)
    in_groups = db.query(GroupMember).filter(GroupMember.member_id == member_id).count()
    if in_groups:
        raise InvalidMembershipError(f"Member {member_id} still belongs to {in_groups} group(s)")
    db.delete(member)
    db.commit()


def get_name_map(member_ids: Iterable[str], db: Session) -> Dict[str, str]:
    """
    Resolve member ids to display names. Ids that are not found are simply
    missing from the map; report builders substitute a placeholder.
    """
    ids = set(member_ids)
    if not ids:
        return {}
    rows = db.query(Member.id, Member.name).filter(Member.id.in_(ids)).all()
    return {member_id: name for member_id, name in rows}
