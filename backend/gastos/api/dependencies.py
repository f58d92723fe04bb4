"""
Shared FastAPI dependencies.
"""
from fastapi import Request
from gastos.services.fx_service import CurrencyNormalizer


def get_normalizer(request: Request) -> CurrencyNormalizer:
    """The application's currency normalizer (one rate cache per app instance)."""
    return request.app.state.normalizer
