from __future__ import annotations

import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BASE_DIR / "src"))

from storefront_pos.models_catalog import ProductRef  # noqa: E402
from storefront_pos.stock_ledger import InMemoryStockLedger  # noqa: E402

FIXED_NOW = datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc)


def make_product(
    product_id: str = "p-1",
    *,
    name: str = "Widget",
    price: str = "100",
    stock: int = 10,
    tracked: bool = True,
    barcode: str | None = None,
    min_stock: int = 0,
) -> ProductRef:
    return ProductRef(
        product_id=product_id,
        name=name,
        unit_price=Decimal(price),
        barcode=barcode if barcode is not None else f"890{product_id}",
        current_stock=stock,
        stock_tracked=tracked,
        min_stock=min_stock,
    )


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW


@pytest.fixture
def ledger() -> InMemoryStockLedger:
    return InMemoryStockLedger(
        [
            make_product("p-1", name="Widget", price="100", stock=10, barcode="8901"),
            make_product("p-2", name="Gadget", price="250", stock=3, barcode="8902", min_stock=2),
            make_product("p-3", name="Gift Card", price="500", stock=0, tracked=False, barcode="8903"),
        ]
    )
