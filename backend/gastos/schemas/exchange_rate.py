"""
Pydantic schemas for exchange rates.
"""
from pydantic import BaseModel
from typing import Optional
from decimal import Decimal
from gastos.schemas.common import Money


class ExchangeRate(BaseModel):
    """Rate for an ordered currency pair (1 from_currency = rate to_currency)."""
    from_currency: str
    to_currency: str
    rate: Money
    obtained_at_millis: int
    is_fallback: bool = False
    source: str  # same_currency, api, cache, fallback, inverse_fallback, default

    model_config = {"frozen": True}


class Conversion(BaseModel):
    """An amount converted with a specific rate."""
    amount: Decimal
    rate: ExchangeRate

    model_config = {"frozen": True}

    @property
    def is_fallback(self) -> bool:
        return self.rate.is_fallback


class QuotaResponse(BaseModel):
    """Provider plan quota."""
    plan_type: Optional[str] = None
    requests_remaining: int
    requests_limit: int
    requests_this_month: int
