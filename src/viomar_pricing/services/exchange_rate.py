"""
Exchange rate providers for the currency converter.

TrmRateProvider reads the official Colombian TRM (COP per USD) from the
datos.gov.co open-data API and applies a minimum rate floor. Every failure
becomes RateUnavailable so callers never price with a zero rate.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

import requests

from ..config.settings import get_settings
from ..engine.currency import ExchangeRate
from ..engine.errors import RateUnavailable
from ..engine.money import parse_localized_number, to_decimal

logger = logging.getLogger(__name__)

PROVIDER_NAME = "datos.gov.co (TRM Colombia)"

# Keys the dataset has used for the rate and its date over time
RATE_KEYS = ("valor", "trm", "valorcop", "price")
DATE_KEYS = ("vigenciadesde", "fecha", "date", "updated_at")


def apply_rate_floor(source_rate: Decimal, floor_rate: Decimal) -> tuple[Decimal, Decimal]:
    """Return (effective_rate, adjustment_applied)."""
    effective = max(source_rate, floor_rate)
    return effective, max(Decimal('0'), effective - source_rate)


def _parse_date(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


class TrmRateProvider:
    """Fetch the latest TRM over HTTP."""

    def __init__(
        self,
        url: Optional[str] = None,
        floor_rate: Optional[Decimal] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = get_settings()
        self.url = url or settings.trm_url
        self.floor_rate = Decimal(floor_rate if floor_rate is not None else settings.rate_floor)
        self.session = session or requests.Session()

    def fetch_rate(self, timeout: Optional[float] = None) -> ExchangeRate:
        try:
            resp = self.session.get(
                self.url,
                headers={"Accept": "application/json"},
                timeout=timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("TRM lookup failed: %s", e)
            raise RateUnavailable("USD", str(e)) from e

        return self.parse_payload(payload)

    def parse_payload(self, payload) -> ExchangeRate:
        """Build an ExchangeRate from the dataset's JSON rows."""
        row = payload[0] if isinstance(payload, list) and payload else None
        if not isinstance(row, dict):
            raise RateUnavailable("USD", "the TRM API returned no rows")

        source_rate = None
        for key in RATE_KEYS:
            source_rate = parse_localized_number(row.get(key))
            if source_rate:
                break
        if not source_rate or source_rate <= 0:
            raise RateUnavailable("USD", f"could not read a rate from {row!r}")

        source_date = None
        for key in DATE_KEYS:
            source_date = _parse_date(row.get(key))
            if source_date:
                break

        effective, adjustment = apply_rate_floor(source_rate, self.floor_rate)
        if adjustment:
            logger.info("TRM %s below floor %s, using floor", source_rate, self.floor_rate)

        return ExchangeRate(
            source_rate=source_rate,
            effective_rate=effective,
            floor_rate=self.floor_rate,
            adjustment_applied=adjustment,
            source_date=source_date,
            provider=PROVIDER_NAME,
        )


class StaticRateProvider:
    """A rate supplied by the caller (tests, scripts, manual override)."""

    def __init__(self, rate, floor_rate=None):
        self.rate = to_decimal(rate)
        self.floor_rate = to_decimal(floor_rate)

    def fetch_rate(self, timeout: Optional[float] = None) -> ExchangeRate:
        if self.rate is None or self.rate <= 0:
            raise RateUnavailable("USD", "no static rate configured")
        effective, adjustment = self.rate, Decimal('0')
        if self.floor_rate is not None:
            effective, adjustment = apply_rate_floor(self.rate, self.floor_rate)
        return ExchangeRate(
            source_rate=self.rate,
            effective_rate=effective,
            floor_rate=self.floor_rate,
            adjustment_applied=adjustment,
            provider="static",
        )
