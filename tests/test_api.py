import pytest
import sys
import os
import inspect
from datetime import date
from decimal import Decimal

from fastapi.testclient import TestClient

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from viomar_pricing.api import state
from viomar_pricing.api.main import app
from viomar_pricing.data.price_catalog import PriceCatalog
from viomar_pricing.engine import CurrencyConverter, PriceRecord
from viomar_pricing.services.exchange_rate import StaticRateProvider
from viomar_pricing.services.quotation_service import QuotationService


@pytest.fixture
def converter():
    return CurrencyConverter(StaticRateProvider("4000"))


@pytest.fixture
def client(converter):
    catalog = PriceCatalog([
        PriceRecord("CAM-POLO-01", "50000", "45000", "40000", price_usd="14.88"),
        PriceRecord("ADD-BORDADO", "8000"),
    ], day=date(2026, 10, 16))
    service = QuotationService(catalog, converter=converter)

    app.dependency_overrides[state.get_quotation_service] = lambda: service
    app.dependency_overrides[state.get_converter] = lambda: converter
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "online"


def test_resolve_price(client):
    resp = client.post("/prices/resolve", json={"reference": "CAM-POLO-01", "quantity": 600})
    body = resp.json()
    assert resp.status_code == 200
    assert body["resolved"] is True
    assert Decimal(str(body["unit_price"])) == Decimal("45000")
    assert any(line.startswith("Tier") for line in body["trace"])


def test_resolve_unknown_reference_is_404(client):
    resp = client.post("/prices/resolve", json={"reference": "NO-EXISTE", "quantity": 10})
    assert resp.status_code == 404


def test_resolve_rejects_non_positive_quantity(client):
    resp = client.post("/prices/resolve", json={"reference": "CAM-POLO-01", "quantity": 0})
    assert resp.status_code == 422


def test_calculate_quotation(client):
    payload = {
        "lines": [{"reference": "CAM-POLO-01", "quantity": 20, "additions": [{"reference": "ADD-BORDADO"}]}],
        "document_type": "P",
        "shipping": {"enabled": True, "fee": "20000"},
    }
    resp = client.post("/quotations/calculate", json=payload)
    body = resp.json()

    assert resp.status_code == 200
    assert body["saveable"] is True
    assert body["totals"]["subtotal"] == "1160000.00"
    assert body["totals"]["tax"] == "220400.00"
    assert body["totals"]["grand_total"] == "1400400.00"
    assert body["totals"]["advance_payment"] == "700200.00"


def test_calculate_lists_issues_unless_strict(client):
    payload = {"lines": [{"reference": "NO-EXISTE", "quantity": 10}]}

    lenient = client.post("/quotations/calculate", json=payload)
    assert lenient.status_code == 200
    assert lenient.json()["saveable"] is False
    assert lenient.json()["issues"][0]["code"] == "PRICE_UNRESOLVED"

    strict = client.post("/quotations/calculate?strict=true", json=payload)
    assert strict.status_code == 422
    assert strict.json()["detail"]["code"] == "PRICE_UNRESOLVED"


def test_current_rate(client):
    resp = client.get("/exchange-rate/current")
    assert resp.status_code == 200
    assert resp.json()["effective_rate"] == "4000"


def test_convert_with_markup(client):
    resp = client.post(
        "/exchange-rate/convert",
        json={"amount": "100000", "source_currency": "COP", "apply_markup": True},
    )
    assert resp.status_code == 200
    assert resp.json()["converted_amount"] == "29.75"
    assert resp.json()["target_currency"] == "USD"


def test_rate_unavailable_is_503(client):
    app.dependency_overrides[state.get_converter] = lambda: CurrencyConverter(StaticRateProvider(None))
    resp = client.get("/exchange-rate/current")
    assert resp.status_code == 503
    assert resp.json()["detail"]["code"] == "RATE_UNAVAILABLE"


def test_list_statuses(client):
    resp = client.get("/order-items/statuses")
    assert resp.status_code == 200
    assert len(resp.json()) == 19
    assert resp.json()[0] == "PENDIENTE"


def test_allowed_statuses(client):
    resp = client.get("/order-items/statuses/allowed", params={"role": "ASESOR", "current": "PENDIENTE"})
    body = resp.json()
    assert resp.status_code == 200
    assert body["allowed"] == ["APROBACION_INICIAL"]
    assert body["terminal"] is False


def test_transition_allowed(client):
    resp = client.post(
        "/order-items/statuses/transition",
        json={"role": "OPERARIO_FLOTER", "current": "EN_MONTAJE", "requested": "EN_IMPRESION"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"status": "EN_IMPRESION", "changed": True}


def test_transition_forbidden_is_403(client):
    resp = client.post(
        "/order-items/statuses/transition",
        json={"role": "CONFECCION", "current": "EN_MONTAJE", "requested": "ENVIADO"},
    )
    detail = resp.json()["detail"]
    assert resp.status_code == 403
    assert detail["code"] == "FORBIDDEN"
    assert detail["allowed"] == []


def test_pricing_endpoints_run_in_threadpool():
    """Pricing handlers are plain functions so FastAPI runs them in its threadpool."""
    from viomar_pricing.api import quotations_api

    assert not inspect.iscoroutinefunction(quotations_api.resolve_price)
    assert not inspect.iscoroutinefunction(quotations_api.calculate_quotation)
