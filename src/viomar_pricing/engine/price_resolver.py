"""
Price Tier Resolver - selects the single applicable unit price.

Resolution order:
1. Foreign currency (USD): flat USD price, no tiers, no classification
2. MAYORISTA / COLANTA / VIOMAR: fixed classification price when present;
   without one MAYORISTA / COLANTA take R1 and VIOMAR goes on to the tiers
3. AUTORIZADO: manual unit price when a valid one was entered
4. Quantity tiers: <=499 -> R1, 500-1000 -> R2, >1000 -> R3,
   falling back to lower tiers only

Returns None when no price applies. None is not zero: it must block a save.
"""
import logging
from decimal import Decimal
from typing import Optional

from .enums import ClientClassification, Currency, FIXED_PRICE_CLASSIFICATIONS
from .models import PriceRecord, TraceStep
from .money import to_decimal

logger = logging.getLogger(__name__)

# Upper bound (inclusive) of each tier; anything above the last is tier 3
TIER_BREAKPOINTS = (499, 1000)


def select_tier(quantity: int) -> int:
    """Return the 1-based tier index for a quantity."""
    for index, upper in enumerate(TIER_BREAKPOINTS, start=1):
        if quantity <= upper:
            return index
    return len(TIER_BREAKPOINTS) + 1


def parse_manual_price(manual_override) -> Optional[Decimal]:
    """A manual price counts only if it is a non-empty, non-negative number."""
    value = to_decimal(manual_override)
    if value is None or value < 0:
        return None
    return value


class PriceTierResolver:
    """
    Resolves a unit price from a PriceRecord and the order context.

    Stateless; one instance can be shared across threads.
    """

    def resolve(
        self,
        record: PriceRecord,
        quantity: int,
        currency: Currency,
        classification: ClientClassification,
        manual_override=None,
    ) -> Optional[Decimal]:
        """Resolve the unit price, or None when nothing applies."""
        price, _ = self.resolve_with_trace(record, quantity, currency, classification, manual_override)
        return price

    def resolve_with_trace(
        self,
        record: PriceRecord,
        quantity: int,
        currency: Currency,
        classification: ClientClassification,
        manual_override=None,
    ) -> tuple[Optional[Decimal], list[TraceStep]]:
        """
        Resolve the unit price and explain how it was chosen.

        Returns (price_or_None, trace_steps).
        """
        currency = Currency(currency)
        classification = ClientClassification(classification)
        trace = [TraceStep("Context", f"{record.identifier} x{quantity} {currency.value} {classification.value}")]

        if currency is Currency.USD:
            if record.price_usd is None:
                trace.append(TraceStep("USD", "No USD price configured"))
            else:
                trace.append(TraceStep("USD", "Using flat USD price", str(record.price_usd)))
            return record.price_usd, trace

        if classification in FIXED_PRICE_CLASSIFICATIONS:
            fixed = record.fixed_price(classification)
            if fixed is not None:
                trace.append(TraceStep("Fixed Price", f"Using {classification.value} price", str(fixed)))
                return fixed, trace
            if classification is not ClientClassification.VIOMAR:
                # MAYORISTA and COLANTA fall back to the base price, never to volume tiers
                price = record.price_cop_r1
                trace.append(TraceStep(
                    "Fixed Price",
                    f"No {classification.value} price, using base price R1",
                    str(price) if price is not None else None,
                ))
                return price, trace
            trace.append(TraceStep("Fixed Price", f"No {classification.value} price, using quantity tiers"))

        if classification is ClientClassification.AUTORIZADO:
            manual = parse_manual_price(manual_override)
            if manual is not None:
                trace.append(TraceStep("Manual Price", "Using manually entered price", str(manual)))
                return manual, trace
            trace.append(TraceStep("Manual Price", "No manual price entered, suggesting tier price"))

        price, tier = self.tier_price(record, quantity)
        if price is None:
            trace.append(TraceStep("Tier", "No tier price configured"))
            logger.debug("No price for %s (qty=%s, %s)", record.identifier, quantity, classification.value)
        else:
            selected = select_tier(quantity)
            if tier == selected:
                trace.append(TraceStep("Tier", f"Using tier R{tier} for quantity {quantity}", str(price)))
            else:
                trace.append(TraceStep("Tier", f"No R{selected} price, falling back to R{tier}", str(price)))
        return price, trace

    def tier_price(self, record: PriceRecord, quantity: int) -> tuple[Optional[Decimal], Optional[int]]:
        """
        Pick the tier price for a quantity, walking down to lower tiers.

        Returns (price, tier_index) or (None, None).
        """
        prices = record.tier_prices
        for tier in range(select_tier(quantity), 0, -1):
            price = prices[tier - 1]
            if price is not None:
                return price, tier
        return None, None
