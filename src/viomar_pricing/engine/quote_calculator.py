"""
Quote calculators - line amounts and quotation totals.

Both calculators are pure. Problems (unresolved prices, out-of-range input)
are reported on the results instead of raised, so a quotation with many
lines reports everything at once.
"""
from decimal import Decimal
from typing import Iterable, Optional, Union

from .enums import DocumentType
from .errors import InvalidDiscount, InvalidQuantity, PricingError, PriceUnresolved
from .models import AdditionLine, FeeOption, LineResult, QuoteLine, QuoteTotals
from .money import ZERO, to_decimal

HUNDRED = Decimal('100')
DEFAULT_TAX_RATE = Decimal('0.19')
DEFAULT_ADVANCE_RATE = Decimal('0.5')


def _valid_quantity(quantity) -> bool:
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity > 0


def _quantity_or_zero(reference, quantity, issues) -> Decimal:
    """Quantity as a multiplier; an invalid one is reported and counts as zero."""
    if not _valid_quantity(quantity):
        issues.append(InvalidQuantity(reference, quantity))
        return ZERO
    return Decimal(quantity)


class QuoteLineCalculator:
    """Computes subtotal, discount and additions for one quote line."""

    def compute_line(self, line: QuoteLine) -> LineResult:
        issues: list[PricingError] = []

        quantity = _quantity_or_zero(line.reference, line.quantity, issues)
        discount = to_decimal(line.discount)
        if discount is None or discount < 0 or discount > HUNDRED:
            issues.append(InvalidDiscount(line.reference, line.discount))
            discount = ZERO

        unit_price = line.unit_price
        if unit_price is None:
            issues.append(PriceUnresolved(line.reference))
            unit_price = ZERO
        elif unit_price < 0:
            issues.append(PriceUnresolved(line.reference, f"negative unit price {unit_price}"))

        subtotal = quantity * unit_price
        discount_amount = subtotal * (discount / HUNDRED)
        line_total = subtotal - discount_amount

        additions_total = ZERO
        for addition in line.additions:
            additions_total += self._addition_amount(line.reference, addition, issues)

        return LineResult(
            reference=line.reference,
            subtotal_before_discount=subtotal,
            discount_amount=discount_amount,
            line_total=line_total,
            additions_total=additions_total,
            line_grand_total=line_total + additions_total,
            issues=issues,
        )

    def _addition_amount(self, parent: str, addition: AdditionLine, issues: list) -> Decimal:
        # Additions are not subject to the parent line's discount
        reference = f"{parent}/{addition.reference}"
        quantity = _quantity_or_zero(reference, addition.quantity, issues)
        if addition.unit_price is None:
            issues.append(PriceUnresolved(reference))
            return ZERO
        if addition.unit_price < 0:
            issues.append(PriceUnresolved(reference, f"negative unit price {addition.unit_price}"))
        return quantity * addition.unit_price


class QuoteTotalsCalculator:
    """
    Aggregates line results into quotation totals.

    Tax (IVA) applies to natural-person documents only. The advance payment
    is a fixed share of the grand total.
    """

    def __init__(
        self,
        tax_rate: Decimal = DEFAULT_TAX_RATE,
        advance_rate: Decimal = DEFAULT_ADVANCE_RATE,
        line_calculator: Optional[QuoteLineCalculator] = None,
    ):
        self.tax_rate = Decimal(tax_rate)
        self.advance_rate = Decimal(advance_rate)
        self.line_calculator = line_calculator or QuoteLineCalculator()

    def compute_totals(
        self,
        lines: Iterable[Union[QuoteLine, LineResult]],
        shipping: Optional[FeeOption] = None,
        insurance: Optional[FeeOption] = None,
        document_type: DocumentType = DocumentType.PERSONA,
    ) -> QuoteTotals:
        document_type = DocumentType(document_type)
        shipping = shipping or FeeOption()
        insurance = insurance or FeeOption()

        subtotal = ZERO
        for line in lines:
            if isinstance(line, QuoteLine):
                line = self.line_calculator.compute_line(line)
            subtotal += line.line_grand_total

        tax = subtotal * self.tax_rate if document_type is DocumentType.PERSONA else ZERO
        shipping_fee = shipping.amount
        insurance_fee = insurance.amount
        grand_total = subtotal + tax + shipping_fee + insurance_fee

        return QuoteTotals(
            subtotal=subtotal,
            tax=tax,
            shipping_fee=shipping_fee,
            insurance_fee=insurance_fee,
            grand_total=grand_total,
            advance_payment=grand_total * self.advance_rate,
        )
