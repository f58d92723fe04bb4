"""Models package - Import all models for SQLAlchemy registration."""
from gastos.models.member import Member
from gastos.models.group import Group, GroupMember
from gastos.models.expense import Expense, ExpenseParticipant

__all__ = [
    "Member",
    "Group",
    "GroupMember",
    "Expense",
    "ExpenseParticipant",
]
