"""
Pydantic schemas for Expense entity.
"""
from pydantic import BaseModel, Field
from typing import Annotated, List, Optional
from datetime import datetime
from decimal import Decimal
from gastos.schemas.common import CurrencyCode, Money


class ExpenseCreate(BaseModel):
    """Schema for expense creation."""
    description: Optional[str] = None
    amount: Decimal = Field(gt=0, decimal_places=2)  # Stored to the cent
    currency: CurrencyCode
    payer_id: str
    participant_ids: List[str] = Field(min_length=1)  # Member IDs who share this expense
    category: Optional[str] = None
    timestamp_millis: Optional[int] = None  # Defaults to creation time


class ExpenseUpdate(BaseModel):
    """Schema for expense update."""
    description: Optional[str] = None
    amount: Optional[Annotated[Decimal, Field(gt=0, decimal_places=2)]] = None
    currency: Optional[CurrencyCode] = None
    payer_id: Optional[str] = None
    participant_ids: Optional[Annotated[List[str], Field(min_length=1)]] = None
    category: Optional[str] = None
    timestamp_millis: Optional[int] = None


class ExpenseResponse(BaseModel):
    """Schema for expense response."""
    id: str
    group_id: str
    description: Optional[str] = None
    amount: Money
    currency: str
    normalized_amount: Money  # Amount in the group's base currency
    base_currency: str
    exchange_rate: Money
    rate_source: str
    is_fallback_rate: bool  # True when the amount was converted with a degraded rate
    payer_id: str
    participant_ids: List[str]
    category: Optional[str] = None
    timestamp_millis: Optional[int] = None
    created_at: datetime


class ExpenseRecord(BaseModel):
    """
    Immutable, already-normalized expense as consumed by the balance,
    settlement and statistics computations.
    """
    id: str
    payer_id: str
    amount: Decimal
    currency: str
    base_currency: str
    normalized_amount: Decimal
    participant_ids: List[str]
    category: Optional[str] = None
    timestamp_millis: Optional[int] = None
    created_at_millis: int
    is_fallback_rate: bool = False

    model_config = {"frozen": True}

    @property
    def effective_millis(self) -> int:
        """When the expense happened, falling back to when it was recorded."""
        if self.timestamp_millis is not None:
            return self.timestamp_millis
        return self.created_at_millis
