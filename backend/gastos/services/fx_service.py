"""
Foreign exchange service for currency conversion.

Amounts are normalized into a group's base currency with live rates from
ExchangeRate-API, a time-bounded in-memory cache and a static fallback table.
Provider failures never propagate: the result is flagged with
``is_fallback`` instead so callers can warn about degraded accuracy.
"""
import logging
import threading
import time
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Iterable, Optional, Tuple

import httpx

from gastos.core.config import Settings, settings as default_settings
from gastos.core.exceptions import RateProviderError
from gastos.schemas.exchange_rate import Conversion, ExchangeRate

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

# Fallback rates (updated November 2025)
FALLBACK_RATES: Dict[Tuple[str, str], Decimal] = {
    ("USD", "ARS"): Decimal("1400"),
    ("USD", "EUR"): Decimal("0.95"),
    ("USD", "BRL"): Decimal("4.95"),
    ("USD", "GBP"): Decimal("0.79"),
    ("USD", "MXN"): Decimal("17.2"),
    ("USD", "COP"): Decimal("4100"),
    ("USD", "CLP"): Decimal("920"),
    ("ARS", "USD"): Decimal("0.000714"),
    ("EUR", "USD"): Decimal("1.05"),
    ("BRL", "USD"): Decimal("0.20"),
    ("GBP", "USD"): Decimal("1.27"),
    ("MXN", "USD"): Decimal("0.058"),
    ("COP", "USD"): Decimal("0.00024"),
    ("CLP", "USD"): Decimal("0.0011"),
}


def _millis(clock: Clock) -> int:
    return int(clock() * 1000)


class RateCache:
    """
    Thread-safe cache of provider rates keyed by the ordered pair
    (from_currency, to_currency). Entries older than ``ttl_seconds`` are
    treated as absent. Concurrent writers for the same pair simply replace
    each other.
    """

    def __init__(self, ttl_seconds: int = 3600, clock: Clock = time.time):
        self.ttl_millis = ttl_seconds * 1000
        self._clock = clock
        self._entries: Dict[Tuple[str, str], ExchangeRate] = {}
        self._lock = threading.Lock()

    def get(self, from_currency: str, to_currency: str) -> Optional[ExchangeRate]:
        key = (from_currency, to_currency)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if _millis(self._clock) - entry.obtained_at_millis >= self.ttl_millis:
                del self._entries[key]
                return None
            return entry

    def set(self, rate: ExchangeRate) -> None:
        with self._lock:
            self._entries[(rate.from_currency, rate.to_currency)] = rate

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ExchangeRateApiProvider:
    """
    Client for ExchangeRate-API v6.

    API Documentation:
    - Pair conversion: https://www.exchangerate-api.com/docs/pair-conversion-requests
    - Quota: https://www.exchangerate-api.com/docs/request-quota-endpoint
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://v6.exchangerate-api.com/v6",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def _get_json(self, path: str) -> dict:
        if not self.api_key:
            logger.error("EXCHANGE_RATE_API_KEY is not configured. Please set it in .env file.")
            raise RateProviderError("EXCHANGE_RATE_API_KEY is required for ExchangeRate-API")

        url = f"{self.base_url}/{self.api_key}/{path}"
        try:
            response = self._client.get(url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error with ExchangeRate-API: {e.response.status_code}")
            raise RateProviderError(f"ExchangeRate-API HTTP error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            # Network errors and timeouts
            logger.error(f"HTTP error with ExchangeRate-API: {e}")
            raise RateProviderError(f"ExchangeRate-API network error: {e}") from e
        except ValueError as e:
            logger.error(f"ExchangeRate-API returned a non-JSON body: {e}")
            raise RateProviderError("ExchangeRate-API returned malformed data") from e

        if not isinstance(data, dict):
            raise RateProviderError("ExchangeRate-API returned malformed data")
        return data

    def fetch_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """
        Fetch the rate for 1 unit of ``from_currency`` expressed in
        ``to_currency``. Raises RateProviderError on any failure.
        """
        logger.info(f"Fetching exchange rate from ExchangeRate-API: {from_currency} -> {to_currency}")
        data = self._get_json(f"pair/{from_currency}/{to_currency}")

        # Response format: {"result": "success", "conversion_rate": 1400.5, ...}
        if data.get("result") != "success":
            error_msg = data.get("error-type", "Unknown error")
            logger.error(f"ExchangeRate-API returned error: {error_msg}")
            raise RateProviderError(f"ExchangeRate-API error: {error_msg}")

        raw_rate = data.get("conversion_rate")
        if raw_rate is None:
            raise RateProviderError("No conversion_rate in API response")
        try:
            rate = Decimal(str(raw_rate))
        except InvalidOperation as e:
            raise RateProviderError(f"Invalid conversion_rate: {raw_rate!r}") from e
        if not rate.is_finite() or rate <= 0:
            raise RateProviderError(f"Invalid exchange rate: {rate}")

        logger.info(f"Rate from ExchangeRate-API: 1 {from_currency} = {rate} {to_currency}")
        return rate

    def quota(self) -> Optional[dict]:
        """Return plan quota information, or None if it cannot be fetched."""
        try:
            data = self._get_json("quota")
            remaining = int(data["requests_remaining"])
            limit = int(data["plan_quota"])
        except (RateProviderError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Error checking API quota: {e}")
            return None
        return {
            "plan_type": data.get("plan_type"),
            "requests_remaining": remaining,
            "requests_limit": limit,
            "requests_this_month": limit - remaining,
        }

    def close(self) -> None:
        self._client.close()


class CurrencyNormalizer:
    """
    Converts amounts between currencies.

    Lookup order for a pair: same currency (rate 1), cache, provider, then
    the fallback chain (direct static rate, inverse static rate, 1:1).
    Only provider rates are cached, so a fallback is retried on the next call.
    """

    def __init__(
        self,
        provider,
        cache: Optional[RateCache] = None,
        clock: Clock = time.time,
        fallback_rates: Optional[Dict[Tuple[str, str], Decimal]] = None,
    ):
        self.provider = provider
        self._clock = clock
        self.cache = cache if cache is not None else RateCache(clock=clock)
        self.fallback_rates = FALLBACK_RATES if fallback_rates is None else fallback_rates

    def rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        from_upper = from_currency.upper()
        to_upper = to_currency.upper()

        if from_upper == to_upper:
            return ExchangeRate(
                from_currency=from_upper,
                to_currency=to_upper,
                rate=Decimal(1),
                obtained_at_millis=_millis(self._clock),
                source="same_currency",
            )

        cached = self.cache.get(from_upper, to_upper)
        if cached is not None:
            logger.debug(f"Using cached rate for {from_upper} -> {to_upper}")
            return cached.model_copy(update={"source": "cache"})

        try:
            value = self.provider.fetch_rate(from_upper, to_upper)
        except RateProviderError as e:
            logger.error(f"Error fetching exchange rate for {from_upper} to {to_upper}: {e}")
            return self._fallback_rate(from_upper, to_upper)

        result = ExchangeRate(
            from_currency=from_upper,
            to_currency=to_upper,
            rate=value,
            obtained_at_millis=_millis(self._clock),
            source="api",
        )
        self.cache.set(result)
        return result

    def _fallback_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        direct = self.fallback_rates.get((from_currency, to_currency))
        inverse = self.fallback_rates.get((to_currency, from_currency))
        if direct is not None:
            value, source = direct, "fallback"
        elif inverse:
            value, source = Decimal(1) / inverse, "inverse_fallback"
        else:
            value, source = Decimal(1), "default"

        logger.warning(f"Using {source} rate for {from_currency} -> {to_currency}: {value}")
        return ExchangeRate(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=value,
            obtained_at_millis=_millis(self._clock),
            is_fallback=True,
            source=source,
        )

    def normalize(self, amount: Decimal, from_currency: str, to_currency: str) -> Conversion:
        """Convert ``amount`` and keep the rate used, so degraded results can be surfaced."""
        rate = self.rate(from_currency, to_currency)
        if rate.source == "same_currency":
            return Conversion(amount=amount, rate=rate)
        return Conversion(amount=amount * rate.rate, rate=rate)

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        """Convert ``amount``; no rounding is applied."""
        return self.normalize(amount, from_currency, to_currency).amount

    def rates(self, base_currency: str, target_currencies: Iterable[str]) -> Dict[str, ExchangeRate]:
        """Get rates from one base currency to several targets."""
        return {target.upper(): self.rate(base_currency, target) for target in target_currencies}

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Exchange rate cache cleared")


def build_normalizer(config: Settings = default_settings) -> CurrencyNormalizer:
    """Create a normalizer wired to ExchangeRate-API from application settings."""
    provider = ExchangeRateApiProvider(
        api_key=config.EXCHANGE_RATE_API_KEY,
        base_url=config.EXCHANGE_RATE_API_URL,
        timeout=config.FX_TIMEOUT_SECONDS,
    )
    return CurrencyNormalizer(provider, cache=RateCache(ttl_seconds=config.FX_CACHE_TTL_SECONDS))
