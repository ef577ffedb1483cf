from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol

from .clients.catalog_client import CatalogClient
from .models_catalog import ProductRef


class StockLedgerView(Protocol):
    """Read-only, possibly stale view of catalog stock. Injected into the cart."""

    def lookup_by_barcode(self, code: str) -> ProductRef | None: ...

    def current_stock(self, product_id: str) -> int: ...


class InMemoryStockLedger:
    """Deterministic snapshot used by tests and offline terminals."""

    def __init__(self, products: Iterable[ProductRef] = ()) -> None:
        self._products: dict[str, ProductRef] = {}
        for product in products:
            self.put(product)

    def put(self, product: ProductRef) -> None:
        self._products[product.product_id] = product

    def set_stock(self, product_id: str, stock: int) -> None:
        product = self._products[product_id]
        self._products[product_id] = product.model_copy(update={"current_stock": max(stock, 0)})

    def get(self, product_id: str) -> ProductRef | None:
        return self._products.get(product_id)

    def lookup_by_barcode(self, code: str) -> ProductRef | None:
        needle = code.strip()
        for product in self._products.values():
            if product.barcode and product.barcode == needle:
                return product
        return None

    def current_stock(self, product_id: str) -> int:
        product = self._products.get(product_id)
        return product.current_stock if product else 0


@dataclass
class CatalogStockLedger:
    """Reads the remote catalog on every call; stock figures are never cached here."""

    client: CatalogClient

    def lookup_by_barcode(self, code: str) -> ProductRef | None:
        return self.client.find_by_barcode(code.strip())

    def current_stock(self, product_id: str) -> int:
        product = self.client.get_product(product_id)
        return product.current_stock if product else 0
