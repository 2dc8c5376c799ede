import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from viomar_pricing.data.price_catalog import PriceCatalog
from viomar_pricing.engine import ClientClassification, Currency, CurrencyConverter, DocumentType, FeeOption
from viomar_pricing.engine.errors import PricingError
from viomar_pricing.services.exchange_rate import StaticRateProvider
from viomar_pricing.services.quotation_service import AdditionRequest, LineRequest, QuotationService, QuoteRequest
from viomar_pricing.workflow.order_item_status import OrderItemStatusWorkflow

def debug():
    catalog_path = Path(__file__).parent.parent / 'data' / 'product_prices.csv'
    catalog = PriceCatalog.from_file(catalog_path)

    print("Loaded references:")
    print(", ".join(catalog.references()))

    converter = CurrencyConverter(StaticRateProvider("4000"))
    service = QuotationService(catalog, converter=converter)

    # Test Case: VIOMAR client, COP, natural person with shipping
    print("\n--- VIOMAR / COP / Persona ---")
    req = QuoteRequest(
        lines=[
            LineRequest(
                reference="CAM-POLO-01",
                quantity=600,
                discount="5",
                additions=[AdditionRequest(reference="ADD-BORDADO")],
            ),
            LineRequest(reference="CHQ-ANTIFLUIDO", quantity=1200),
        ],
        currency=Currency.COP,
        classification=ClientClassification.VIOMAR,
        document_type=DocumentType.PERSONA,
        shipping=FeeOption(enabled=True, fee="20000"),
    )
    result = service.quote(req)
    print(result.get_trace_text())
    print("\nTotals:")
    print(result.totals.to_dict())

    # Test Case: USD quotation with a line that needs conversion
    print("\n--- AUTORIZADO / USD ---")
    req.currency = Currency.USD
    req.classification = ClientClassification.AUTORIZADO
    req.lines.append(LineRequest(reference="ADD-ESTAMPADO", quantity=10))
    result = service.quote(req)
    print(result.get_trace_text())
    print(f"Rate used: {result.rate_used}")
    try:
        result.ensure_saveable()
        print("Saveable:", result.totals.to_dict())
    except PricingError as e:
        print(f"Blocked: {e}")

    # Workflow
    print("\n--- Workflow ---")
    workflow = OrderItemStatusWorkflow()
    for role, current, requested in [
        ("OPERARIO_FLOTER", "EN_MONTAJE", "EN_IMPRESION"),
        ("CONFECCION", "EN_MONTAJE", "ENVIADO"),
        ("ASESOR", "APROBACION_INICIAL", "EN_REVISION_CAMBIO"),
    ]:
        outcome = workflow.attempt_transition(role, current, requested)
        print(f"{role}: {current} -> {requested}: {outcome.to_dict()}")

if __name__ == "__main__":
    debug()
