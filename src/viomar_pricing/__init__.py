"""
Viomar Pricing

Pricing resolution and quotation engine for the garment-manufacturing
administration system. Resolves unit prices by currency, client
classification and quantity tier, computes quotation totals and validates
role-gated order-item status changes.
"""

__version__ = "1.0.0"
