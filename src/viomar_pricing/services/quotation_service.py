"""
Quotation Service - prices a whole quotation against the catalog.

Pipeline per request:
1. Look up each product/addition in the PriceCatalog
2. Resolve unit prices (PriceTierResolver), falling back for USD to a fresh
   conversion of the COP international price when a converter is configured
3. Compute each line (QuoteLineCalculator)
4. Compute totals (QuoteTotalsCalculator)

Problems are collected, never raised, so the caller sees all of them.
ensure_saveable() is the gate a persistence layer calls before writing.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ..config.settings import get_settings
from ..data.price_catalog import PriceCatalog
from ..engine.currency import CurrencyConverter
from ..engine.enums import ClientClassification, Currency, DocumentType, Negotiation, OrderKind, OrderType
from ..engine.errors import InvalidDiscount, InvalidQuantity, PricingError, PriceUnresolved, RateUnavailable
from ..engine.models import (
    AdditionLine, FeeOption, LineResult, QuoteLine, QuoteTotals, TraceStep, format_trace,
)
from ..engine.price_resolver import PriceTierResolver
from ..engine.quote_calculator import QuoteLineCalculator, QuoteTotalsCalculator

logger = logging.getLogger(__name__)

# Order in which blocking issues are reported by ensure_saveable()
_BLOCKING_ORDER = (PriceUnresolved, RateUnavailable, InvalidQuantity, InvalidDiscount)


@dataclass
class AdditionRequest:
    """An addition requested on a line. Quantity mirrors the parent when omitted."""
    reference: str
    quantity: Optional[int] = None
    manual_price: Optional[str] = None


@dataclass
class LineRequest:
    """A product requested on a quotation."""
    reference: str
    quantity: int
    discount: Decimal = Decimal('0')
    manual_price: Optional[str] = None
    additions: list[AdditionRequest] = field(default_factory=list)
    order_type: OrderType = OrderType.NORMAL
    negotiation: Negotiation = Negotiation.NINGUNA
    description: str = ""


@dataclass
class QuoteRequest:
    """A quotation to price. Role/currency/classification are explicit."""
    lines: list[LineRequest]
    currency: Currency = Currency.COP
    classification: ClientClassification = ClientClassification.VIOMAR
    document_type: DocumentType = DocumentType.PERSONA
    shipping: FeeOption = field(default_factory=FeeOption)
    insurance: FeeOption = field(default_factory=FeeOption)
    order_kind: OrderKind = OrderKind.NUEVO


@dataclass
class QuoteResult:
    """Priced quotation, ready to hand to a persistence layer."""
    currency: Currency
    lines: list[QuoteLine]
    line_results: list[LineResult]
    totals: QuoteTotals
    issues: list[PricingError] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)
    rate_used: Optional[Decimal] = None
    order_kind: OrderKind = OrderKind.NUEVO

    @property
    def saveable(self) -> bool:
        return not self.issues

    def ensure_saveable(self) -> None:
        """Raise the most important blocking issue, if any."""
        for kind in _BLOCKING_ORDER:
            for issue in self.issues:
                if isinstance(issue, kind):
                    raise issue
        if self.issues:
            raise self.issues[0]

    def get_trace_text(self) -> str:
        return format_trace(self.trace, bullet="•")

    def to_dict(self) -> dict:
        return {
            "currency": self.currency.value,
            "order_kind": self.order_kind.value,
            "lines": [
                {
                    "reference": line.reference,
                    "quantity": line.quantity,
                    "unit_price": str(line.unit_price) if line.unit_price is not None else None,
                    "discount": str(line.discount),
                    "order_type": line.order_type.value,
                    "negotiation": line.negotiation.value,
                    "additions": [
                        {
                            "reference": a.reference,
                            "quantity": a.quantity,
                            "unit_price": str(a.unit_price) if a.unit_price is not None else None,
                        }
                        for a in line.additions
                    ],
                    **result.to_dict(),
                }
                for line, result in zip(self.lines, self.line_results)
            ],
            "totals": self.totals.to_dict(),
            "saveable": self.saveable,
            "issues": [i.to_dict() for i in self.issues],
            "rate_used": str(self.rate_used) if self.rate_used is not None else None,
        }


class QuotationService:
    """Prices quotations using the catalog, resolver and calculators."""

    def __init__(
        self,
        catalog: PriceCatalog,
        converter: Optional[CurrencyConverter] = None,
        resolver: Optional[PriceTierResolver] = None,
        totals_calculator: Optional[QuoteTotalsCalculator] = None,
    ):
        settings = get_settings()
        self.catalog = catalog
        self.converter = converter
        self.resolver = resolver or PriceTierResolver()
        self.line_calculator = QuoteLineCalculator()
        self.totals_calculator = totals_calculator or QuoteTotalsCalculator(
            tax_rate=settings.tax_rate,
            advance_rate=settings.advance_rate,
            line_calculator=self.line_calculator,
        )

    def resolve_price(
        self,
        reference: str,
        quantity: int,
        currency: Currency,
        classification: ClientClassification,
        manual_price=None,
    ) -> tuple[Optional[Decimal], list[TraceStep], list[PricingError]]:
        """
        Resolve one unit price against the catalog.

        Returns (price_or_None, trace, issues).
        """
        try:
            record = self.catalog.get(reference)
        except KeyError:
            return None, [TraceStep("Catalog", f"{reference} has no valid price record")], [
                PriceUnresolved(reference, "no valid price record")
            ]

        price, trace = self.resolver.resolve_with_trace(
            record, quantity, currency, classification, manual_price
        )
        if price is not None:
            return price, trace, []

        if Currency(currency) is Currency.USD and self.converter is not None:
            return self._convert_fallback(record, quantity, classification, trace)

        return None, trace, [PriceUnresolved(reference)]

    def _convert_fallback(self, record, quantity, classification, trace):
        if record.price_cop_international is not None:
            base, apply_markup = record.price_cop_international, False
        else:
            base, _ = self.resolver.resolve_with_trace(record, quantity, Currency.COP, classification)
            apply_markup = True
        if base is None:
            trace.append(TraceStep("Conversion", "No COP price to convert"))
            return None, trace, [PriceUnresolved(record.identifier)]

        try:
            result = self.converter.convert(base, Currency.COP, apply_markup=apply_markup)
        except RateUnavailable as e:
            trace.append(TraceStep("Conversion", "Reference rate unavailable"))
            return None, trace, [e, PriceUnresolved(record.identifier, "USD price needs a reference rate")]

        trace.append(TraceStep("Rate", "Reference rate COP/USD", str(result.rate_used)))
        trace.append(TraceStep("Conversion", f"COP {result.base_amount} to USD", str(result.converted_amount)))
        return result.converted_amount, trace, []

    def price_line(
        self, line: LineRequest, request: QuoteRequest
    ) -> tuple[QuoteLine, list[TraceStep], list[PricingError]]:
        """Resolve the prices of a line and its additions."""
        issues: list[PricingError] = []
        unit_price, trace, line_issues = self.resolve_price(
            line.reference, line.quantity, request.currency, request.classification, line.manual_price
        )
        issues.extend(line_issues)

        additions = []
        for add in line.additions:
            quantity = add.quantity if add.quantity is not None else line.quantity
            add_price, add_trace, add_issues = self.resolve_price(
                add.reference, quantity, request.currency, request.classification, add.manual_price
            )
            trace.extend(add_trace)
            issues.extend(add_issues)
            additions.append(AdditionLine(reference=add.reference, quantity=quantity, unit_price=add_price))

        quote_line = QuoteLine(
            reference=line.reference,
            quantity=line.quantity,
            unit_price=unit_price,
            discount=line.discount,
            additions=additions,
            order_type=line.order_type,
            negotiation=line.negotiation,
            description=line.description,
        )
        return quote_line, trace, issues

    def quote(self, request: QuoteRequest) -> QuoteResult:
        """Price every line and compute totals."""
        lines, results, issues, trace = [], [], [], []

        for line_request in request.lines:
            quote_line, line_trace, resolve_issues = self.price_line(line_request, request)
            result = self.line_calculator.compute_line(quote_line)

            # Unresolved prices were already reported during resolution
            issues.extend(resolve_issues)
            issues.extend(i for i in result.issues if not isinstance(i, PriceUnresolved))

            lines.append(quote_line)
            results.append(result)
            trace.extend(line_trace)

        totals = self.totals_calculator.compute_totals(
            results, request.shipping, request.insurance, request.document_type
        )
        trace.append(TraceStep("Totals", f"Subtotal {totals.subtotal}, tax {totals.tax}", str(totals.grand_total)))

        rate_used = None
        for step in trace:
            if step.step == "Rate":
                rate_used = Decimal(step.value)

        if issues:
            logger.info("Quotation has %d blocking issue(s)", len(issues))

        return QuoteResult(
            currency=Currency(request.currency),
            lines=lines,
            line_results=results,
            totals=totals,
            issues=issues,
            trace=trace,
            rate_used=rate_used,
            order_kind=OrderKind(request.order_kind),
        )
