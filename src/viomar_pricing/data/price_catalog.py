"""
Price Catalog - loads product/addition price rows from a catalog export.

Reads the CSV or Excel export of the catalog with pandas, normalizes the
localized numbers and keeps only the rows valid on a given day (active flag
and inclusive start/end window). The pricing engine itself never looks at
dates; this is the caller-side filter it relies on.
"""
import logging
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from ..config.settings import get_settings
from ..engine.models import PriceRecord
from ..engine.money import parse_localized_number

logger = logging.getLogger(__name__)

PRICE_COLUMNS = [
    'priceCopBase', 'priceCopR1', 'priceCopR2', 'priceCopR3',
    'priceViomar', 'priceColanta', 'priceMayorista',
    'priceUSD', 'priceCopInternational',
]
DATE_COLUMNS = ['startDate', 'endDate']
FLAG_COLUMNS = {'isActive': True, 'isEditable': False}
ID_COLUMNS = ('referenceCode', 'productCode', 'additionCode', 'identifier', 'id')


def parse_bool(value, default: bool) -> bool:
    """Parse a boolean from a spreadsheet cell."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return default
    return text in ('true', '1', 'yes', 'si', 'sí', 'on', 'x')


def _read_frame(path: Path) -> pd.DataFrame:
    if path.suffix.lower() in ('.xlsx', '.xls'):
        return pd.read_excel(path, dtype=str)
    return pd.read_csv(path, dtype=str)


def records_from_frame(df: pd.DataFrame) -> list[PriceRecord]:
    """Convert a catalog DataFrame into PriceRecords."""
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]
    df = df.where(pd.notna(df), None)

    records = []
    for row in df.to_dict(orient='records'):
        data = {k: (v.strip() if isinstance(v, str) else v) for k, v in row.items()}
        if not any(data.get(k) for k in ID_COLUMNS):
            continue

        for col in PRICE_COLUMNS:
            if col in data:
                data[col] = parse_localized_number(data[col])
        for col in DATE_COLUMNS:
            if col in data:
                value = data[col]
                data[col] = pd.to_datetime(value).date() if value else None
        for col, default in FLAG_COLUMNS.items():
            data[col] = parse_bool(data.get(col), default)

        records.append(PriceRecord.from_dict(data))
    return records


def load_price_records(path: Optional[Path] = None) -> list[PriceRecord]:
    """
    Load every price row from a catalog export.

    Args:
        path: CSV or XLSX file, defaults to settings.price_catalog

    Returns:
        PriceRecords in file order (no validity filtering)
    """
    path = Path(path or get_settings().price_catalog)
    if not path.exists():
        raise FileNotFoundError(
            f"Price catalog not found at {path}. "
            "Export the product prices or set VIOMAR_PRICE_CATALOG."
        )

    records = records_from_frame(_read_frame(path))
    logger.info("Loaded %d price records from %s", len(records), path.name)
    return records


def is_valid_on(record: PriceRecord, day: date) -> bool:
    """Active and inside its (optional, inclusive) validity window."""
    if not record.is_active:
        return False
    if record.start_date and day < record.start_date:
        return False
    if record.end_date and day > record.end_date:
        return False
    return True


def filter_valid(records: Iterable[PriceRecord], day: Optional[date] = None) -> list[PriceRecord]:
    day = day or date.today()
    return [r for r in records if is_valid_on(r, day)]


class PriceCatalog:
    """
    Valid price records indexed by reference code.

    When several rows for a reference are valid, the one with the latest
    start date wins.
    """

    def __init__(self, records: Iterable[PriceRecord], day: Optional[date] = None):
        self.day = day or date.today()
        self._by_reference: dict[str, PriceRecord] = {}
        for record in filter_valid(records, self.day):
            current = self._by_reference.get(record.identifier)
            if current is None or (record.start_date or date.min) >= (current.start_date or date.min):
                self._by_reference[record.identifier] = record

    @classmethod
    def from_file(cls, path: Optional[Path] = None, day: Optional[date] = None) -> 'PriceCatalog':
        return cls(load_price_records(path), day=day)

    def get(self, reference: str) -> PriceRecord:
        """Return the valid record for a reference. Raises KeyError if none."""
        reference = str(reference).strip()
        try:
            return self._by_reference[reference]
        except KeyError:
            raise KeyError(f"No valid price record for '{reference}'") from None

    def __contains__(self, reference: str) -> bool:
        return str(reference).strip() in self._by_reference

    def __len__(self) -> int:
        return len(self._by_reference)

    def references(self) -> list[str]:
        return sorted(self._by_reference)
