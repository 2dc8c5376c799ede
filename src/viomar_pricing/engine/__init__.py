"""Engine subpackage - price resolution, currency conversion and quote math."""
from .currency import ConversionResult, CurrencyConverter, ExchangeRate
from .enums import ClientClassification, Currency, DocumentType, OrderKind, OrderType, Negotiation
from .errors import Forbidden, InvalidDiscount, InvalidQuantity, PriceUnresolved, PricingError, RateUnavailable
from .models import AdditionLine, FeeOption, LineResult, PriceRecord, QuoteLine, QuoteTotals
from .price_resolver import PriceTierResolver
from .quote_calculator import QuoteLineCalculator, QuoteTotalsCalculator

__all__ = [
    'ConversionResult', 'CurrencyConverter', 'ExchangeRate',
    'ClientClassification', 'Currency', 'DocumentType', 'OrderKind', 'OrderType', 'Negotiation',
    'Forbidden', 'InvalidDiscount', 'InvalidQuantity', 'PriceUnresolved', 'PricingError', 'RateUnavailable',
    'AdditionLine', 'FeeOption', 'LineResult', 'PriceRecord', 'QuoteLine', 'QuoteTotals',
    'PriceTierResolver', 'QuoteLineCalculator', 'QuoteTotalsCalculator',
]
