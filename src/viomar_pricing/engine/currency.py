"""
Currency Converter - COP/USD conversion using the reference rate (TRM).

The rate is COP per 1 USD. COP amounts are divided by it, USD amounts are
multiplied. Cross-border product prices get a fixed markup on the COP base
before conversion. The last rate is cached for a bounded window.
"""
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Protocol

from .enums import Currency
from .errors import RateUnavailable
from .money import quantize, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_MARKUP = Decimal('0.19')
DEFAULT_CACHE_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class ExchangeRate:
    """A reference USD/COP rate as obtained from a provider."""
    source_rate: Decimal
    effective_rate: Decimal
    floor_rate: Optional[Decimal] = None
    adjustment_applied: Decimal = Decimal('0')
    source_date: Optional[datetime] = None
    provider: str = "static"

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "source_rate": str(self.source_rate),
            "floor_rate": str(self.floor_rate) if self.floor_rate is not None else None,
            "effective_rate": str(self.effective_rate),
            "adjustment_applied": str(self.adjustment_applied),
            "source_date": self.source_date.isoformat() if self.source_date else None,
        }


class RateProvider(Protocol):
    def fetch_rate(self, timeout: Optional[float] = None) -> ExchangeRate:
        """Return the current rate or raise RateUnavailable."""
        ...


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a conversion; keep ``rate_used`` for audit."""
    converted_amount: Decimal
    rate_used: Decimal
    base_amount: Decimal
    source_currency: Currency
    target_currency: Currency

    def to_dict(self) -> dict:
        return {
            "converted_amount": str(self.converted_amount),
            "rate_used": str(self.rate_used),
            "base_amount": str(self.base_amount),
            "source_currency": self.source_currency.value,
            "target_currency": self.target_currency.value,
        }


def apply_markup(amount: Decimal, markup: Decimal = DEFAULT_MARKUP) -> Decimal:
    """COP base uplifted for international handling (not tax). Not rounded."""
    return Decimal(amount) * (1 + Decimal(markup))


class CurrencyConverter:
    """
    Converts between COP and USD with a cached reference rate.

    Args:
        provider: where rates come from (TRM API, static value...)
        markup: international markup applied when ``apply_markup=True``
        cache_seconds: how long a fetched rate is reused
        timeout: forwarded to the provider on every fetch
        clock: monotonic clock, injectable for tests
    """

    def __init__(
        self,
        provider: RateProvider,
        markup: Decimal = DEFAULT_MARKUP,
        cache_seconds: int = DEFAULT_CACHE_SECONDS,
        timeout: Optional[float] = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.markup = Decimal(markup)
        self.cache_seconds = cache_seconds
        self.timeout = timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._cached: Optional[ExchangeRate] = None
        self._cached_at: Optional[float] = None

    def current_rate(self, timeout: Optional[float] = None) -> ExchangeRate:
        """Return the cached rate, fetching a new one when it expired."""
        with self._lock:
            now = self._clock()
            if self._cached is not None and now - self._cached_at < self.cache_seconds:
                return self._cached

            rate = self.provider.fetch_rate(timeout=timeout if timeout is not None else self.timeout)
            if rate is None or rate.effective_rate is None or rate.effective_rate <= 0:
                raise RateUnavailable(Currency.USD.value, "provider returned no usable rate")

            self._cached = rate
            self._cached_at = now
            logger.info("Reference rate refreshed: %s COP/USD (%s)", rate.effective_rate, rate.provider)
            return rate

    def invalidate(self) -> None:
        """Drop the cached rate so the next call fetches again."""
        with self._lock:
            self._cached = None
            self._cached_at = None

    def convert(
        self,
        amount,
        source_currency: Currency = Currency.COP,
        apply_markup: bool = False,
        timeout: Optional[float] = None,
    ) -> ConversionResult:
        """
        Convert an amount to the other currency.

        With ``apply_markup`` the amount is uplifted by the international
        markup before conversion. Raises RateUnavailable, never falls back to
        a stale or zero rate.
        """
        source_currency = Currency(source_currency)
        value = to_decimal(amount)
        if value is None:
            raise ValueError(f"Amount to convert must be numeric, got {amount!r}")

        base = self.markup_amount(value) if apply_markup else value
        rate = self.current_rate(timeout=timeout).effective_rate

        if source_currency is Currency.COP:
            converted = base / rate
            target = Currency.USD
        else:
            converted = base * rate
            target = Currency.COP

        return ConversionResult(
            converted_amount=quantize(converted),
            rate_used=rate,
            base_amount=base,
            source_currency=source_currency,
            target_currency=target,
        )

    def markup_amount(self, amount) -> Decimal:
        """COP amount with this converter's international markup applied."""
        return apply_markup(to_decimal(amount), self.markup)
