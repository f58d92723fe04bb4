"""
Group model for shared expense activities.
"""
from sqlalchemy import Column, String, Text, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from gastos.db.base import BaseModel


class Group(BaseModel):
    """Group model representing a shared expense activity."""
    __tablename__ = "groups"

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    base_currency = Column(String(3), nullable=False, default="ARS")  # All balances are reported in this currency

    # Relationships
    memberships = relationship(
        "GroupMember",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="GroupMember.position",
    )
    expenses = relationship("Expense", back_populates="group", cascade="all, delete-orphan")

    @property
    def member_ids(self) -> list:
        """Member ids in the order they joined the group."""
        return [m.member_id for m in self.memberships]


class GroupMember(BaseModel):
    """Junction table for Group and Member many-to-many relationship."""
    __tablename__ = "group_members"

    group_id = Column(String(36), ForeignKey("groups.id"), nullable=False, index=True)
    member_id = Column(String(36), ForeignKey("members.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    # Relationships
    group = relationship("Group", back_populates="memberships")
    member = relationship("Member", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint('group_id', 'member_id', name='uq_group_member'),
    )
