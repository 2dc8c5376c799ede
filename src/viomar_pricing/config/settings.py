"""
Centralized settings for the pricing engine.

Values come from VIOMAR_* environment variables with sensible defaults, so the
pure calculators work without any configuration.
"""
import os
from decimal import Decimal
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


DEFAULT_TRM_URL = (
    "https://www.datos.gov.co/resource/32sa-8pi3.json"
    "?$limit=1&$order=vigenciadesde DESC"
)


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 4 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    project_root: Path

    # Catalog export (CSV or XLSX)
    price_catalog: Path

    # Pricing policy
    tax_rate: Decimal = Decimal('0.19')
    advance_rate: Decimal = Decimal('0.5')
    international_markup: Decimal = Decimal('0.19')

    # Reference rate (TRM)
    trm_url: str = DEFAULT_TRM_URL
    rate_floor: Decimal = Decimal('3600')
    rate_timeout: float = 5.0
    rate_cache_seconds: int = 24 * 60 * 60

    log_level: str = 'INFO'

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the environment."""
        root = project_root or get_project_root()
        env = os.environ

        catalog = env.get('VIOMAR_PRICE_CATALOG')

        return cls(
            project_root=root,
            price_catalog=Path(catalog) if catalog else root / 'data' / 'product_prices.csv',
            tax_rate=Decimal(env.get('VIOMAR_TAX_RATE', '0.19')),
            advance_rate=Decimal(env.get('VIOMAR_ADVANCE_RATE', '0.5')),
            international_markup=Decimal(env.get('VIOMAR_INTERNATIONAL_MARKUP', '0.19')),
            trm_url=env.get('VIOMAR_TRM_URL', DEFAULT_TRM_URL),
            rate_floor=Decimal(env.get('VIOMAR_RATE_FLOOR', '3600')),
            rate_timeout=float(env.get('VIOMAR_RATE_TIMEOUT', '5.0')),
            rate_cache_seconds=int(env.get('VIOMAR_RATE_CACHE_SECONDS', str(24 * 60 * 60))),
            log_level=env.get('VIOMAR_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
