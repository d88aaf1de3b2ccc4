"""
Foreign exchange service for currency normalization.

Every expense is converted into its travel's base currency before it reaches
the ledger. Conversion never falls back to a default rate: when the rate
provider cannot answer, the caller gets a ServiceUnavailableError.
"""
import logging
import threading
import time
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional, Protocol, Tuple

import httpx

from tripsettle.core.config import settings
from tripsettle.core.exceptions import InvalidOperationError, ServiceUnavailableError
from tripsettle.core.utils import round_money, to_decimal

logger = logging.getLogger(__name__)


class ExchangeRateProvider(Protocol):
    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """Return how many units of to_currency one unit of from_currency buys."""
        ...


class StaticExchangeRateProvider:
    """Fixed rate table, keyed by (FROM, TO)."""

    def __init__(self, rates: Optional[Dict[Tuple[str, str], Decimal]] = None):
        self._rates = {
            (src.upper(), dst.upper()): to_decimal(rate)
            for (src, dst), rate in (rates or {}).items()
        }

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        key = (from_currency.upper(), to_currency.upper())
        rate = self._rates.get(key)
        if rate is None:
            raise ServiceUnavailableError(f"No exchange rate for {key[0]} -> {key[1]}")
        return rate


class HttpExchangeRateProvider:
    """
    Rates from ExchangeRate-API v6.

    Uses the /latest/{currency} endpoint; the response carries
    ``conversion_rates`` with the requested currency as base, e.g.
    ``{"conversion_rates": {"USD": 1, "KRW": 1350.2, ...}}``.
    Successful lookups are memoised for ``ttl_seconds``.
    """

    def __init__(
        self,
        api_url: str = None,
        api_key: str = None,
        timeout: float = None,
        ttl_seconds: int = None,
        client: Optional[httpx.Client] = None,
    ):
        self._api_url = (api_url or settings.FX_API_URL).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.FX_API_KEY
        self._timeout = timeout if timeout is not None else settings.FX_TIMEOUT_SECONDS
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.FX_RATE_TTL_SECONDS
        self._client = client
        self._cache: Dict[Tuple[str, str], Tuple[Decimal, float]] = {}
        self._lock = threading.Lock()

    def _cached(self, key: Tuple[str, str]) -> Optional[Decimal]:
        with self._lock:
            entry = self._cache.get(key)
            if entry and time.monotonic() < entry[1]:
                return entry[0]
            return None

    def _remember(self, key: Tuple[str, str], rate: Decimal) -> None:
        with self._lock:
            self._cache[key] = (rate, time.monotonic() + self._ttl)

    def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return self._client.get(url, timeout=self._timeout)
        return httpx.get(url, timeout=self._timeout)

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        source = from_currency.upper()
        target = to_currency.upper()
        key = (source, target)

        cached = self._cached(key)
        if cached is not None:
            return cached

        if not self._api_key:
            logger.error("FX_API_KEY is not configured. Please set it in .env file.")
            raise ServiceUnavailableError("Exchange rate service is not configured")

        url = f"{self._api_url}/{self._api_key}/latest/{source}"
        logger.info("Fetching latest exchange rate for %s -> %s", source, target)
        try:
            response = self._get(url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("HTTP error from exchange rate API: %s", e.response.status_code)
            raise ServiceUnavailableError(
                f"Exchange rate API HTTP error: {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("Network error from exchange rate API: %s", e)
            raise ServiceUnavailableError("Exchange rate API is unreachable") from e
        except ValueError as e:
            logger.error("Malformed exchange rate API response: %s", e)
            raise ServiceUnavailableError("Exchange rate API returned malformed data") from e

        if data.get("result") != "success":
            error_type = data.get("error-type", "Unknown error")
            logger.error("Exchange rate API returned error: %s", error_type)
            raise ServiceUnavailableError(f"Exchange rate API error: {error_type}")

        raw_rate = data.get("conversion_rates", {}).get(target)
        if raw_rate is None:
            logger.error("%s not found in conversion_rates for base %s", target, source)
            raise ServiceUnavailableError(f"{target} rate not available")

        try:
            rate = Decimal(str(raw_rate))
        except InvalidOperation as e:
            raise ServiceUnavailableError(f"Invalid exchange rate: {raw_rate}") from e
        if rate <= 0:
            logger.error("Invalid rate: %s", rate)
            raise ServiceUnavailableError(f"Invalid exchange rate: {rate}")

        self._remember(key, rate)
        return rate


def convert_amount(
    amount: Decimal,
    from_currency: str,
    to_currency: str,
    provider: ExchangeRateProvider,
) -> Decimal:
    """
    Convert amount from one currency into another.

    Same-currency conversions return the amount untouched and never consult
    the provider. Provider failures propagate.
    """
    amount = to_decimal(amount)
    if amount <= 0:
        raise InvalidOperationError("Amount must be positive")

    source = from_currency.upper()
    target = to_currency.upper()
    if source == target:
        return amount

    rate = provider.get_rate(source, target)
    return round_money(amount * rate)


_default_provider: Optional[ExchangeRateProvider] = None


def get_exchange_rate_provider() -> ExchangeRateProvider:
    """Dependency returning the provider selected by FX_PROVIDER."""
    global _default_provider
    if _default_provider is None:
        if settings.FX_PROVIDER == "static":
            _default_provider = StaticExchangeRateProvider()
        else:
            _default_provider = HttpExchangeRateProvider()
    return _default_provider
