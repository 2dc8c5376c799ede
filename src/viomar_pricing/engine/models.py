"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation. Money is
always Decimal; rounding happens in the ``to_dict``/``rounded`` helpers only.
"""
from dataclasses import dataclass, field, fields
from datetime import date
from decimal import Decimal
from typing import Optional

from .enums import ClientClassification, Negotiation, OrderType
from .errors import PricingError, PriceUnresolved
from .money import ZERO, quantize, to_decimal

# Field names used by the catalog API, mapped to PriceRecord attributes
PRICE_RECORD_ALIASES = {
    'referenceCode': 'identifier',
    'additionCode': 'identifier',
    'productCode': 'identifier',
    'id': 'identifier',
    'priceCopR1': 'price_cop_r1',
    'priceCopBase': 'price_cop_r1',
    'priceCopR2': 'price_cop_r2',
    'priceCopR3': 'price_cop_r3',
    'priceViomar': 'price_viomar',
    'priceColanta': 'price_colanta',
    'priceMayorista': 'price_mayorista',
    'priceUSD': 'price_usd',
    'priceCopInternational': 'price_cop_international',
    'startDate': 'start_date',
    'endDate': 'end_date',
    'isActive': 'is_active',
    'isEditable': 'is_editable',
}

_PRICE_FIELDS = (
    'price_cop_r1', 'price_cop_r2', 'price_cop_r3',
    'price_viomar', 'price_colanta', 'price_mayorista',
    'price_usd', 'price_cop_international',
)


def _as_date(value) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass
class TraceStep:
    """A single step in a resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


def format_trace(trace: list[TraceStep], bullet: str = "→") -> str:
    """Get human-readable trace as formatted text."""
    lines = []
    for t in trace:
        if t.value:
            lines.append(f"{bullet} {t.step}: {t.description} = {t.value}")
        else:
            lines.append(f"{bullet} {t.step}: {t.description}")
    return "\n".join(lines)


@dataclass(frozen=True)
class PriceRecord:
    """
    Price configuration of a product or an addition.

    Read-only to the engine. Prices are COP unless noted; R1/R2/R3 are the
    quantity tiers (<=499, 500-1000, >1000).
    """
    identifier: str
    price_cop_r1: Optional[Decimal] = None
    price_cop_r2: Optional[Decimal] = None
    price_cop_r3: Optional[Decimal] = None
    price_viomar: Optional[Decimal] = None
    price_colanta: Optional[Decimal] = None
    price_mayorista: Optional[Decimal] = None
    price_usd: Optional[Decimal] = None
    price_cop_international: Optional[Decimal] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True
    is_editable: bool = False

    def __post_init__(self):
        for name in _PRICE_FIELDS:
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        object.__setattr__(self, 'identifier', str(self.identifier).strip())
        object.__setattr__(self, 'start_date', _as_date(self.start_date))
        object.__setattr__(self, 'end_date', _as_date(self.end_date))

    @property
    def tier_prices(self) -> tuple[Optional[Decimal], Optional[Decimal], Optional[Decimal]]:
        return (self.price_cop_r1, self.price_cop_r2, self.price_cop_r3)

    def fixed_price(self, classification: ClientClassification) -> Optional[Decimal]:
        """Flat price for a classification, or None when not configured."""
        return {
            ClientClassification.MAYORISTA: self.price_mayorista,
            ClientClassification.COLANTA: self.price_colanta,
            ClientClassification.VIOMAR: self.price_viomar,
        }.get(ClientClassification(classification))

    @classmethod
    def from_dict(cls, data: dict) -> 'PriceRecord':
        """Build from a catalog row using either API or attribute names."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = PRICE_RECORD_ALIASES.get(key, key)
            if name in known and name not in kwargs:
                kwargs[name] = value
        if 'identifier' not in kwargs:
            raise ValueError("Price record requires a reference code")
        return cls(**kwargs)


@dataclass
class AdditionLine:
    """An addition (embroidery, print, accessory...) attached to a quote line."""
    reference: str
    quantity: int
    unit_price: Optional[Decimal] = None

    def __post_init__(self):
        self.unit_price = to_decimal(self.unit_price)


@dataclass
class QuoteLine:
    """One requested product within a quotation or order item."""
    reference: str
    quantity: int
    unit_price: Optional[Decimal] = None
    discount: Decimal = ZERO
    additions: list[AdditionLine] = field(default_factory=list)
    order_type: OrderType = OrderType.NORMAL
    negotiation: Negotiation = Negotiation.NINGUNA
    description: str = ""

    def __post_init__(self):
        self.unit_price = to_decimal(self.unit_price)
        # Unparseable discounts are kept as given so the calculator reports them
        if self.discount is None or str(self.discount).strip() == '':
            self.discount = ZERO
        else:
            parsed = to_decimal(self.discount)
            if parsed is not None:
                self.discount = parsed
        self.order_type = OrderType(self.order_type)
        self.negotiation = Negotiation(self.negotiation)


@dataclass
class LineResult:
    """Computed amounts for a single quote line."""
    reference: str
    subtotal_before_discount: Decimal
    discount_amount: Decimal
    line_total: Decimal
    additions_total: Decimal
    line_grand_total: Decimal
    issues: list[PricingError] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """False while any price on the line is unresolved."""
        return not any(isinstance(i, PriceUnresolved) for i in self.issues)

    def to_dict(self) -> dict:
        return {
            "reference": self.reference,
            "subtotal_before_discount": str(quantize(self.subtotal_before_discount)),
            "discount_amount": str(quantize(self.discount_amount)),
            "line_total": str(quantize(self.line_total)),
            "additions_total": str(quantize(self.additions_total)),
            "line_grand_total": str(quantize(self.line_grand_total)),
            "complete": self.complete,
            "issues": [i.to_dict() for i in self.issues],
        }


@dataclass
class FeeOption:
    """An optional quotation charge (shipping or insurance)."""
    enabled: bool = False
    fee: Decimal = ZERO

    def __post_init__(self):
        self.fee = to_decimal(self.fee) or ZERO

    @property
    def amount(self) -> Decimal:
        return self.fee if self.enabled else ZERO


@dataclass(frozen=True)
class QuoteTotals:
    """Quotation totals. Derived, never authoritative input."""
    subtotal: Decimal
    tax: Decimal
    shipping_fee: Decimal
    insurance_fee: Decimal
    grand_total: Decimal
    advance_payment: Decimal

    def rounded(self) -> 'QuoteTotals':
        """Copy with every amount rounded to 2 decimals."""
        return QuoteTotals(**{f.name: quantize(getattr(self, f.name)) for f in fields(self)})

    def to_dict(self) -> dict:
        return {f.name: str(quantize(getattr(self, f.name))) for f in fields(self)}
