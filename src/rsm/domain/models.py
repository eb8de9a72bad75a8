from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

CATEGORIES = ("beverages", "tobacco", "accessories")
UNITS = ("unit", "liter", "gram")
PAYMENT_METHODS = ("card", "cash", "pix")

OUT_OF_STOCK = "out_of_stock"
LOW_STOCK = "low_stock"
IN_STOCK = "in_stock"
STOCK_STATUSES = (OUT_OF_STOCK, LOW_STOCK, IN_STOCK)


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str
    cost_price: float
    selling_price: float
    quantity: int
    min_stock_level: int
    unit: str = "unit"
    subcategory: Optional[str] = None
    barcode: Optional[str] = None
    supplier: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class ProductRef:
    """Product columns joined into a sale item at read time."""

    id: str
    name: str
    selling_price: float
    category: str


@dataclass(frozen=True)
class SaleItem:
    product_id: str
    quantity: int
    price_at_sale: float
    product: Optional[ProductRef] = None

    @property
    def line_total(self) -> float:
        return self.price_at_sale * self.quantity


@dataclass(frozen=True)
class Sale:
    id: str
    total: float
    payment_method: str
    created_at: datetime
    items: tuple[SaleItem, ...] = ()


@dataclass(frozen=True)
class Share:
    label: str
    value: float
    percentage: float


@dataclass(frozen=True)
class ProductSales:
    product_id: str
    name: str
    quantity: int
    revenue: float
