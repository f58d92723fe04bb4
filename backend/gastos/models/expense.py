"""
Expense model for tracking shared spending.
"""
from sqlalchemy import Column, String, Numeric, ForeignKey, Text, Boolean, BigInteger
from sqlalchemy.orm import relationship
from gastos.db.base import BaseModel


class Expense(BaseModel):
    """Expense model representing a single spending event."""
    __tablename__ = "expenses"

    group_id = Column(String(36), ForeignKey("groups.id"), nullable=False, index=True)
    payer_id = Column(String(36), ForeignKey("members.id"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    normalized_amount = Column(Numeric(24, 8), nullable=False)  # Unrounded amount in the group's base currency
    exchange_rate = Column(Numeric(24, 12), nullable=False)  # 1 currency = exchange_rate base_currency
    rate_source = Column(String(20), nullable=False)
    is_fallback_rate = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)
    timestamp_millis = Column(BigInteger, nullable=True, index=True)  # When the expense happened

    # Relationships
    group = relationship("Group", back_populates="expenses")
    payer = relationship("Member", foreign_keys=[payer_id])
    participants = relationship("ExpenseParticipant", back_populates="expense", cascade="all, delete-orphan")

    @property
    def participant_ids(self) -> list:
        return [p.member_id for p in self.participants]


class ExpenseParticipant(BaseModel):
    """Junction table for Expense and Member many-to-many relationship."""
    __tablename__ = "expense_participants"

    expense_id = Column(String(36), ForeignKey("expenses.id"), nullable=False, index=True)
    member_id = Column(String(36), ForeignKey("members.id"), nullable=False, index=True)

    # Relationships
    expense = relationship("Expense", back_populates="participants")
    member = relationship("Member")
