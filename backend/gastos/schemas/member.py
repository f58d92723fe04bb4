"""
Pydantic schemas for Member entity.
"""
from pydantic import BaseModel, Field
from typing import Annotated, Optional
from datetime import datetime


class MemberCreate(BaseModel):
    """Schema for member creation."""
    name: str = Field(min_length=1, max_length=100)
    email: Optional[str] = None


class MemberUpdate(BaseModel):
    """Schema for member update."""
    name: Optional[Annotated[str, Field(min_length=1, max_length=100)]] = None
    email: Optional[str] = None


class MemberResponse(BaseModel):
    """Schema for member response."""
    id: str
    name: str
    email: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
