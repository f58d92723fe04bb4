"""
Shared field types for Pydantic schemas.
"""
from decimal import Decimal
from typing import Annotated
from pydantic import AfterValidator, PlainSerializer


def _currency_code(v: str) -> str:
    if len(v) != 3 or not (v.isascii() and v.isalpha()):
        raise ValueError("Currency codes must have 3 letters (e.g. USD, ARS)")
    return v.upper()


# Decimal in Python, plain JSON number on the wire (the frontend does arithmetic on it)
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

CurrencyCode = Annotated[str, AfterValidator(_currency_code)]
