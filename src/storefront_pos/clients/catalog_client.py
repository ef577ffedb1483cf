from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import NotFoundError
from ..models_catalog import ProductListResponse, ProductRef
from .base import BaseClient


@dataclass
class CatalogClient(BaseClient):
    def find_by_barcode(self, barcode: str) -> ProductRef | None:
        data = self._request(
            "GET",
            "/products",
            params={"barcode": barcode},
            module="catalog",
            operation="find_by_barcode",
        )
        if not isinstance(data, dict):
            raise ValueError("Expected product list response to be a JSON object")
        rows = ProductListResponse.model_validate(data).rows
        return rows[0] if rows else None

    def get_product(self, product_id: str) -> ProductRef | None:
        try:
            data = self._request(
                "GET",
                f"/products/{product_id}",
                module="catalog",
                operation="get_product",
            )
        except NotFoundError:
            return None
        if not isinstance(data, dict):
            raise ValueError("Expected product response to be a JSON object")
        return ProductRef.model_validate(data)
