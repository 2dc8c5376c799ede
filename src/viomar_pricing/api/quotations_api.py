"""
Quotations API - FastAPI router for price resolution and quotation totals.
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..engine.enums import ClientClassification, Currency, DocumentType, Negotiation, OrderKind, OrderType
from ..engine.errors import PricingError
from ..engine.models import FeeOption
from ..services.quotation_service import AdditionRequest, LineRequest, QuotationService, QuoteRequest
from .state import get_quotation_service

router = APIRouter(tags=["quotations"])


# Pydantic models for API
class ResolvePriceRequest(BaseModel):
    """Request model for resolving one unit price."""
    reference: str
    quantity: int = Field(gt=0)
    currency: Currency = Currency.COP
    classification: ClientClassification = ClientClassification.VIOMAR
    manual_price: Optional[str] = None


class ResolvePriceResponse(BaseModel):
    reference: str
    unit_price: Optional[Decimal]
    resolved: bool
    trace: list[str]
    issues: list[dict]


class AdditionModel(BaseModel):
    reference: str
    quantity: Optional[int] = None
    manual_price: Optional[str] = None


class LineModel(BaseModel):
    reference: str
    quantity: int
    discount: Decimal = Decimal('0')
    manual_price: Optional[str] = None
    additions: list[AdditionModel] = []
    order_type: OrderType = OrderType.NORMAL
    negotiation: Negotiation = Negotiation.NINGUNA
    description: str = ""


class FeeModel(BaseModel):
    enabled: bool = False
    fee: Decimal = Decimal('0')


class QuoteRequestModel(BaseModel):
    """Request model for pricing a quotation."""
    lines: list[LineModel]
    currency: Currency = Currency.COP
    classification: ClientClassification = ClientClassification.VIOMAR
    document_type: DocumentType = DocumentType.PERSONA
    shipping: FeeModel = FeeModel()
    insurance: FeeModel = FeeModel()
    order_kind: OrderKind = OrderKind.NUEVO

    def to_request(self) -> QuoteRequest:
        return QuoteRequest(
            lines=[
                LineRequest(
                    reference=line.reference,
                    quantity=line.quantity,
                    discount=line.discount,
                    manual_price=line.manual_price,
                    additions=[AdditionRequest(**a.model_dump()) for a in line.additions],
                    order_type=line.order_type,
                    negotiation=line.negotiation,
                    description=line.description,
                )
                for line in self.lines
            ],
            currency=self.currency,
            classification=self.classification,
            document_type=self.document_type,
            shipping=FeeOption(**self.shipping.model_dump()),
            insurance=FeeOption(**self.insurance.model_dump()),
            order_kind=self.order_kind,
        )


# Endpoints

@router.post("/prices/resolve", response_model=ResolvePriceResponse)
def resolve_price(
    req: ResolvePriceRequest,
    service: QuotationService = Depends(get_quotation_service),
):
    """Resolve the unit price that applies to one product or addition."""
    if req.reference not in service.catalog:
        raise HTTPException(status_code=404, detail=f"Reference '{req.reference}' not found")

    price, trace, issues = service.resolve_price(
        req.reference, req.quantity, req.currency, req.classification, req.manual_price
    )
    return ResolvePriceResponse(
        reference=req.reference,
        unit_price=price,
        resolved=price is not None,
        trace=[f"{t.step}: {t.description}" + (f" = {t.value}" if t.value else "") for t in trace],
        issues=[i.to_dict() for i in issues],
    )


@router.post("/quotations/calculate")
def calculate_quotation(
    req: QuoteRequestModel,
    strict: bool = False,
    service: QuotationService = Depends(get_quotation_service),
):
    """
    Price a quotation and compute its totals.

    With ``strict=true`` any blocking issue (unresolved price, invalid
    quantity...) turns into a 422 instead of being listed in the body.
    """
    result = service.quote(req.to_request())
    if strict:
        try:
            result.ensure_saveable()
        except PricingError as e:
            raise HTTPException(status_code=422, detail=e.to_dict())
    return result.to_dict()
