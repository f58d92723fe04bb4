"""
Tests for currency normalization.
"""
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import httpx
import pytest

from gastos.core.exceptions import RateProviderError
from gastos.services.fx_service import (
    CurrencyNormalizer,
    ExchangeRateApiProvider,
    RateCache,
)


class TestCurrencyNormalizer:
    """Rate lookup, caching and the fallback chain."""

    def test_same_currency_is_identity(self, normalizer, provider):
        """Converting to the same currency returns the amount untouched."""
        amount = Decimal("123.456789")
        assert normalizer.convert(amount, "usd", "USD") == amount
        rate = normalizer.rate("ARS", "ars")
        assert rate.rate == Decimal(1)
        assert rate.source == "same_currency"
        assert not rate.is_fallback
        assert provider.calls == []

    def test_convert_multiplies_without_rounding(self, normalizer):
        assert normalizer.convert(Decimal("10.005"), "USD", "ARS") == Decimal("10005.000")

    def test_provider_rate_is_cached(self, normalizer, provider):
        first = normalizer.rate("USD", "ARS")
        second = normalizer.rate("USD", "ARS")
        assert first.source == "api"
        assert second.source == "cache"
        assert second.rate == first.rate
        assert provider.calls == [("USD", "ARS")]

    def test_cache_entry_expires_after_ttl(self, normalizer, provider, clock):
        normalizer.rate("USD", "ARS")
        clock.advance(3599)
        normalizer.rate("USD", "ARS")
        assert len(provider.calls) == 1

        clock.advance(1)
        provider.rates[("USD", "ARS")] = Decimal("1100")
        rate = normalizer.rate("USD", "ARS")
        assert rate.rate == Decimal("1100")
        assert len(provider.calls) == 2

    def test_cache_is_keyed_by_ordered_pair(self, normalizer, provider):
        assert normalizer.rate("USD", "ARS").rate == Decimal("1000")
        assert normalizer.rate("ARS", "USD").rate == Decimal("0.001")
        assert provider.calls == [("USD", "ARS"), ("ARS", "USD")]

    def test_direct_fallback_rate(self, clock):
        normalizer = CurrencyNormalizer(_FailingProvider(), clock=clock)
        rate = normalizer.rate("USD", "EUR")
        assert rate.rate == Decimal("0.95")
        assert rate.is_fallback
        assert rate.source == "fallback"

    def test_inverse_fallback_rate(self, clock):
        normalizer = CurrencyNormalizer(
            _FailingProvider(),
            clock=clock,
            fallback_rates={("USD", "JPY"): Decimal("150")},
        )
        rate = normalizer.rate("JPY", "USD")
        assert rate.rate == Decimal(1) / Decimal("150")
        assert rate.is_fallback
        assert rate.source == "inverse_fallback"

    def test_unknown_pair_degrades_to_one_to_one(self, clock):
        """Provider down and no static rate: amount x 1, flagged, no exception."""
        normalizer = CurrencyNormalizer(_FailingProvider(), clock=clock)
        conversion = normalizer.normalize(Decimal("5000"), "JPY", "COP")
        assert conversion.amount == Decimal("5000")
        assert conversion.is_fallback
        assert conversion.rate.source == "default"
        assert normalizer.convert(Decimal("5000"), "JPY", "COP") == Decimal("5000")

    def test_fallback_rates_are_not_cached(self, clock):
        provider = _FailingProvider()
        normalizer = CurrencyNormalizer(provider, clock=clock)
        normalizer.rate("USD", "EUR")
        normalizer.rate("USD", "EUR")
        assert provider.calls == 2
        assert len(normalizer.cache) == 0

    def test_rates_for_several_targets(self, normalizer):
        rates = normalizer.rates("USD", ["ars", "USD"])
        assert set(rates) == {"ARS", "USD"}
        assert rates["ARS"].rate == Decimal("1000")
        assert rates["USD"].rate == Decimal(1)

    def test_clear_cache_forces_refetch(self, normalizer, provider):
        normalizer.rate("USD", "ARS")
        normalizer.clear_cache()
        normalizer.rate("USD", "ARS")
        assert len(provider.calls) == 2


class TestExchangeRateApiProvider:
    """HTTP client behaviour against a mocked ExchangeRate-API."""

    def test_fetch_rate_success(self):
        def handler(request):
            assert request.url.path == "/v6/test-key/pair/USD/ARS"
            return httpx.Response(200, json={
                "result": "success",
                "conversion_rate": 1450.25,
                "time_last_update_utc": "Fri, 27 Mar 2020 00:00:00 +0000",
            })

        provider = _provider(handler)
        assert provider.fetch_rate("USD", "ARS") == Decimal("1450.25")

    @pytest.mark.parametrize("response", [
        httpx.Response(500, text="boom"),
        httpx.Response(200, json={"result": "error", "error-type": "invalid-key"}),
        httpx.Response(200, json={"result": "success"}),
        httpx.Response(200, json={"result": "success", "conversion_rate": -3}),
        httpx.Response(200, json={"result": "success", "conversion_rate": "abc"}),
        httpx.Response(200, text="not json"),
    ])
    def test_fetch_rate_failures_raise_provider_error(self, response):
        provider = _provider(lambda request: response)
        with pytest.raises(RateProviderError):
            provider.fetch_rate("USD", "ARS")

    def test_timeout_is_a_provider_failure(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        provider = _provider(handler)
        with pytest.raises(RateProviderError):
            provider.fetch_rate("USD", "ARS")

    def test_missing_api_key_is_a_provider_failure(self):
        provider = ExchangeRateApiProvider("", client=httpx.Client(transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"result": "success", "conversion_rate": 1})
        )))
        with pytest.raises(RateProviderError):
            provider.fetch_rate("USD", "ARS")

    def test_normalizer_falls_back_when_provider_times_out(self, clock):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        normalizer = CurrencyNormalizer(_provider(handler), clock=clock)
        rate = normalizer.rate("USD", "ARS")
        assert rate.rate == Decimal("1400")
        assert rate.is_fallback

    def test_quota(self):
        def handler(request):
            assert request.url.path == "/v6/test-key/quota"
            return httpx.Response(200, json={
                "result": "success",
                "plan_quota": 1500,
                "requests_remaining": 1200,
            })

        quota = _provider(handler).quota()
        assert quota["requests_limit"] == 1500
        assert quota["requests_remaining"] == 1200
        assert quota["requests_this_month"] == 300

    def test_quota_unavailable(self):
        assert _provider(lambda request: httpx.Response(503)).quota() is None


class TestRateCache:

    def test_get_missing(self, clock):
        assert RateCache(clock=clock).get("USD", "ARS") is None

    def test_expired_entries_are_dropped(self, normalizer, clock):
        rate = normalizer.rate("USD", "ARS")
        cache = RateCache(ttl_seconds=10, clock=clock)
        cache.set(rate)
        assert cache.get("USD", "ARS") == rate
        clock.advance(10)
        assert cache.get("USD", "ARS") is None
        assert len(cache) == 0

    def test_concurrent_lookups_share_one_cache(self, normalizer, provider):
        """Many threads reading and writing the same cache see valid rates only."""
        pairs = [("USD", "ARS"), ("ARS", "USD"), ("EUR", "USD")] * 40

        def lookup(pair):
            rate = normalizer.rate(*pair)
            normalizer.cache.set(rate)
            return pair, rate

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lookup, pairs))

        for (from_currency, to_currency), rate in results:
            assert (rate.from_currency, rate.to_currency) == (from_currency, to_currency)
            assert rate.rate == provider.rates[(from_currency, to_currency)]
            assert rate.is_fallback is False
        assert len(normalizer.cache) == 3
        for from_currency, to_currency in provider.rates:
            assert normalizer.cache.get(from_currency, to_currency) is not None


class _FailingProvider:
    def __init__(self):
        self.calls = 0

    def fetch_rate(self, from_currency, to_currency):
        self.calls += 1
        raise RateProviderError("provider unreachable")


def _provider(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ExchangeRateApiProvider("test-key", client=client)
