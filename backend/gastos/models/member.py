"""
Member model for people who share expenses.
"""
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from gastos.db.base import BaseModel


class Member(BaseModel):
    """A person who can belong to groups and pay for expenses."""
    __tablename__ = "members"

    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, unique=True)

    # Relationships
    memberships = relationship("GroupMember", back_populates="member", cascade="all, delete-orphan")
