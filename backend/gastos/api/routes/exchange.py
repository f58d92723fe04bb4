"""
Exchange rate routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Query, status
from gastos.api.dependencies import get_normalizer
from gastos.schemas.common import CurrencyCode
from gastos.schemas.exchange_rate import ExchangeRate, QuotaResponse
from gastos.services.fx_service import CurrencyNormalizer

router = APIRouter(prefix="/exchange", tags=["exchange"])


@router.get("", response_model=ExchangeRate)
async def get_exchange_rate(
    from_currency: Annotated[CurrencyCode, Query(alias="from")],
    to_currency: Annotated[CurrencyCode, Query(alias="to")],
    normalizer: CurrencyNormalizer = Depends(get_normalizer)
):
    """
    Exchange rate between two currencies, e.g. GET /exchange?from=USD&to=ARS.
    Codes must be three letters; anything else is rejected with 422.
    is_fallback is set when the live provider could not be used.
    """
    return normalizer.rate(from_currency, to_currency)


@router.get("/quota", response_model=QuotaResponse)
async def get_quota(normalizer: CurrencyNormalizer = Depends(get_normalizer)):
    """Remaining requests on the exchange rate provider plan."""
    quota = getattr(normalizer.provider, "quota", None)
    data = quota() if quota else None
    if data is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Exchange rate quota is unavailable"
        )
    return data
