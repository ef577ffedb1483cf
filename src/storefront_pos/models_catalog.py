from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductRef(BaseModel):
    """Read-only copy of a catalog product taken at the moment it is added or scanned."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    product_id: str = Field(alias="id")
    name: str
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    barcode: str | None = None
    current_stock: int = 0
    min_stock: int = Field(default=0, ge=0)
    stock_tracked: bool = Field(default=False, alias="track_inventory")

    @field_validator("current_stock", mode="before")
    @classmethod
    def _floor_stock(cls, value: object) -> int:
        # Oversold products can come back negative from the catalog.
        stock = int(value or 0)  # type: ignore[call-overload]
        return max(stock, 0)


class ProductListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    rows: list[ProductRef]
