#!/usr/bin/env python
"""
Check pipeline - validates the price catalog export and runs the tests.

Usage:
    python scripts/build_all.py [path/to/product_prices.csv]
"""
import sys
from datetime import date
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from viomar_pricing.config.settings import get_settings
from viomar_pricing.data.price_catalog import filter_valid, load_price_records


def main():
    print("=" * 60)
    print("VIOMAR PRICING CHECK PIPELINE")
    print("=" * 60)
    print()

    path = Path(sys.argv[1]) if len(sys.argv) > 1 else get_settings().price_catalog

    # Load catalog
    print("[1/2] Loading price catalog...")
    try:
        records = load_price_records(path)
    except FileNotFoundError as e:
        print(f"\n❌ CHECK FAILED\n  ERROR: {e}")
        sys.exit(1)

    valid = filter_valid(records, date.today())
    no_price = [r.identifier for r in valid if all(p is None for p in r.tier_prices) and r.price_usd is None]
    no_usd = [r.identifier for r in valid if r.price_usd is None]

    print()
    print("[2/2] Running tests...")

    import subprocess
    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests', '-q', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ CHECK COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    print(f"  Rows: {len(records)}")
    print(f"  Valid today: {len(valid)}")
    print(f"  Without any price: {len(no_price)}")
    print(f"  Without USD price: {len(no_usd)}")
    for reference in no_price:
        print(f"    ! {reference}")


if __name__ == "__main__":
    main()
