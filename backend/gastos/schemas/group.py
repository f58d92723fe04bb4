"""
Pydantic schemas for Group entity.
"""
from pydantic import BaseModel, Field
from typing import Annotated, List, Optional
from datetime import datetime
from gastos.schemas.common import CurrencyCode


class GroupCreate(BaseModel):
    """Schema for group creation."""
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    base_currency: Optional[CurrencyCode] = None  # Defaults to DEFAULT_BASE_CURRENCY
    members: List[str] = []


class GroupUpdate(BaseModel):
    """Schema for group update."""
    name: Optional[Annotated[str, Field(min_length=1, max_length=200)]] = None
    description: Optional[str] = None
    base_currency: Optional[CurrencyCode] = None
    members: Optional[List[str]] = None


class GroupResponse(BaseModel):
    """Schema for group response."""
    id: str
    name: str
    description: str
    base_currency: str
    members: List[str]
    created_at: datetime
    updated_at: datetime
