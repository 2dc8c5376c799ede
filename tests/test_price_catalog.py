import pytest
import sys
import os
from datetime import date
from decimal import Decimal

import pandas as pd

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from viomar_pricing.data.price_catalog import (
    PriceCatalog, filter_valid, load_price_records, parse_bool, records_from_frame,
)
from viomar_pricing.engine import PriceRecord

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SAMPLE_CATALOG = os.path.join(PROJECT_ROOT, 'data', 'product_prices.csv')

CSV_TEXT = """referenceCode,priceCopR1,priceCopR2,priceCopR3,priceViomar,priceUSD,isEditable,startDate,endDate,isActive
CAM-A,"45.000","40.500",,,"12,50",true,2026-01-01,,true
CAM-A,"47.000",,,,,,2026-06-01,,true
CAM-B,30000,,,29000,,,,2026-03-31,true
CAM-C,20000,,,,,,,,false
,99999,,,,,,,,true
"""


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "prices.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    return path


def test_load_parses_localized_numbers(catalog_file):
    records = load_price_records(catalog_file)
    first = records[0]

    assert len(records) == 4, "row without reference code is skipped"
    assert first.identifier == "CAM-A"
    assert first.price_cop_r1 == Decimal("45000")
    assert first.price_cop_r2 == Decimal("40500")
    assert first.price_cop_r3 is None
    assert first.price_usd == Decimal("12.50")
    assert first.is_editable is True
    assert first.start_date == date(2026, 1, 1)


def test_missing_flags_use_defaults(catalog_file):
    second = load_price_records(catalog_file)[1]
    assert second.is_active is True
    assert second.is_editable is False


def test_validity_window_and_active_flag(catalog_file):
    records = load_price_records(catalog_file)
    valid = {r.identifier for r in filter_valid(records, date(2026, 10, 16))}
    assert valid == {"CAM-A"}

    valid_in_march = {r.identifier for r in filter_valid(records, date(2026, 3, 15))}
    assert valid_in_march == {"CAM-A", "CAM-B"}


def test_latest_start_date_wins(catalog_file):
    catalog = PriceCatalog.from_file(catalog_file, day=date(2026, 10, 16))
    assert catalog.get("CAM-A").price_cop_r1 == Decimal("47000")

    before_update = PriceCatalog.from_file(catalog_file, day=date(2026, 2, 1))
    assert before_update.get("CAM-A").price_cop_r1 == Decimal("45000")


def test_catalog_lookup(catalog_file):
    catalog = PriceCatalog.from_file(catalog_file, day=date(2026, 3, 15))
    assert "CAM-B" in catalog
    assert " CAM-B " in catalog
    assert "CAM-C" not in catalog
    assert len(catalog) == 2
    assert catalog.references() == ["CAM-A", "CAM-B"]
    with pytest.raises(KeyError):
        catalog.get("CAM-C")


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError, match="VIOMAR_PRICE_CATALOG"):
        load_price_records(tmp_path / "missing.csv")


def test_records_from_frame_accepts_attribute_names():
    df = pd.DataFrame([{"identifier": "X-1", "price_cop_r1": "1000", "priceCopBase": None}])
    records = records_from_frame(df)
    assert records == [PriceRecord("X-1", "1000")]


@pytest.mark.parametrize("value,default,expected", [
    (None, True, True),
    ("", False, False),
    ("true", False, True),
    ("SI", False, True),
    ("0", True, False),
    (False, True, False),
])
def test_parse_bool(value, default, expected):
    assert parse_bool(value, default) is expected


def test_sample_catalog_is_loadable():
    """The bundled sample export must stay valid."""
    catalog = PriceCatalog.from_file(SAMPLE_CATALOG, day=date(2026, 10, 16))
    assert "CAM-POLO-01" in catalog
    assert catalog.get("CAM-TSHIRT-02").price_cop_r1 == Decimal("32000")
    assert "ADD-SUBLIMADO" not in catalog
    assert "CAM-DESCONTINUADA" not in catalog
