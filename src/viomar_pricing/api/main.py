from decimal import Decimal
import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .. import __version__
from ..config.logging_config import setup_logging
from ..engine.currency import CurrencyConverter
from ..engine.enums import Currency
from ..engine.errors import RateUnavailable
from .quotations_api import router as quotations_router
from .state import get_converter, reload_catalog
from .workflow_api import router as workflow_router

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Viomar Pricing API",
    description="Price resolution, quotation totals and order-item status workflow",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quotations_router)
app.include_router(workflow_router)


class ConvertRequest(BaseModel):
    amount: Decimal
    source_currency: Currency = Currency.COP
    apply_markup: bool = False


@app.get("/")
async def root():
    return {"status": "online", "message": "Viomar Pricing API Active"}


@app.get("/exchange-rate/current")
def current_rate(converter: CurrencyConverter = Depends(get_converter)):
    try:
        return converter.current_rate().to_dict()
    except RateUnavailable as e:
        raise HTTPException(status_code=503, detail=e.to_dict())


@app.post("/exchange-rate/convert")
def convert_amount(req: ConvertRequest, converter: CurrencyConverter = Depends(get_converter)):
    try:
        result = converter.convert(req.amount, req.source_currency, apply_markup=req.apply_markup)
    except RateUnavailable as e:
        raise HTTPException(status_code=503, detail=e.to_dict())
    return result.to_dict()


@app.post("/catalog/reload")
def reload_price_catalog():
    try:
        catalog = reload_catalog()
    except FileNotFoundError as e:
        raise HTTPException(status_code=500, detail=str(e))
    logger.info("Price catalog reloaded: %d references", len(catalog))
    return {"success": True, "references": len(catalog)}
