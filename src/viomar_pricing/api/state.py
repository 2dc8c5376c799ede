"""
Shared API state - catalog, converter and services, built on first use.

Endpoints receive these through FastAPI dependencies so tests can swap them
with ``app.dependency_overrides``.
"""
import logging
from typing import Optional

from ..config.settings import get_settings
from ..data.price_catalog import PriceCatalog
from ..engine.currency import CurrencyConverter
from ..engine.price_resolver import PriceTierResolver
from ..services.exchange_rate import TrmRateProvider
from ..services.quotation_service import QuotationService
from ..workflow.order_item_status import OrderItemStatusWorkflow

logger = logging.getLogger(__name__)

_catalog: Optional[PriceCatalog] = None
_converter: Optional[CurrencyConverter] = None

resolver = PriceTierResolver()
workflow = OrderItemStatusWorkflow()


def get_catalog() -> PriceCatalog:
    global _catalog
    if _catalog is None:
        _catalog = PriceCatalog.from_file(get_settings().price_catalog)
    return _catalog


def reload_catalog() -> PriceCatalog:
    """Re-read the catalog export from disk."""
    global _catalog
    _catalog = None
    return get_catalog()


def get_converter() -> CurrencyConverter:
    global _converter
    if _converter is None:
        settings = get_settings()
        _converter = CurrencyConverter(
            TrmRateProvider(url=settings.trm_url, floor_rate=settings.rate_floor),
            markup=settings.international_markup,
            cache_seconds=settings.rate_cache_seconds,
            timeout=settings.rate_timeout,
        )
    return _converter


def get_resolver() -> PriceTierResolver:
    return resolver


def get_workflow() -> OrderItemStatusWorkflow:
    return workflow


def get_quotation_service() -> QuotationService:
    return QuotationService(get_catalog(), converter=get_converter(), resolver=get_resolver())
