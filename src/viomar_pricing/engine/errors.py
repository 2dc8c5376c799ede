"""
Error taxonomy for pricing, conversion and status workflow.

Pricing problems are usually collected on result objects rather than raised,
so a whole quotation can report every problem at once. The same classes are
raised when a caller asks for a hard failure (saving, converting, HTTP).
"""
from typing import Iterable, Optional


class PricingError(Exception):
    """Base class for every error produced by the engine."""
    code = "PRICING_ERROR"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self)}


class PriceUnresolved(PricingError):
    """No applicable price could be found. Blocks save."""
    code = "PRICE_UNRESOLVED"

    def __init__(self, reference: str, detail: str = ""):
        self.reference = reference
        self.detail = detail
        message = f"No applicable price for '{reference}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["reference"] = self.reference
        return data


class RateUnavailable(PricingError):
    """The reference exchange rate could not be obtained."""
    code = "RATE_UNAVAILABLE"

    def __init__(self, currency: str, detail: str = ""):
        self.currency = currency
        self.detail = detail
        message = f"Exchange rate unavailable for {currency}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class Forbidden(PricingError):
    """A status transition is not permitted for the acting role."""
    code = "FORBIDDEN"

    def __init__(self, role: str, current: str, requested: str, allowed: Iterable[str] = ()):
        self.role = role
        self.current = current
        self.requested = requested
        self.allowed = sorted(allowed)
        permitted = ", ".join(self.allowed) if self.allowed else "none"
        super().__init__(
            f"Role '{role}' cannot move item from {current} to {requested}. "
            f"Permitted: {permitted}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "role": self.role,
            "current": self.current,
            "requested": self.requested,
            "allowed": self.allowed,
        })
        return data


class InvalidQuantity(PricingError):
    code = "INVALID_QUANTITY"

    def __init__(self, reference: str, quantity):
        self.reference = reference
        self.quantity = quantity
        super().__init__(f"Quantity for '{reference}' must be a positive integer, got {quantity!r}")


class InvalidDiscount(PricingError):
    code = "INVALID_DISCOUNT"

    def __init__(self, reference: str, discount, detail: Optional[str] = None):
        self.reference = reference
        self.discount = discount
        super().__init__(
            detail or f"Discount for '{reference}' must be between 0 and 100, got {discount!r}"
        )
