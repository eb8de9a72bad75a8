from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol

from rsm.domain.models import Product, Sale


class CatalogRepository(Protocol):
    def list_products(self) -> list[Product]: ...
    def get_product_by_id(self, product_id: str) -> Optional[Product]: ...
    def add_product(self, fields: dict) -> str: ...
    def update_product(self, product_id: str, fields: dict) -> bool: ...
    def delete_product(self, product_id: str) -> bool: ...


class SalesRepository(Protocol):
    def list_sales(self) -> list[Sale]: ...
    def get_sale(self, sale_id: str) -> Optional[Sale]: ...
    def create_sale(self, created_at: datetime, payment_method: str, total: float, items: Iterable[dict]) -> str: ...
    def update_sale(self, sale_id: str, payment_method: str, total: float, items: Iterable[dict]) -> bool: ...
    def delete_sale(self, sale_id: str) -> bool: ...


class StoreRepository(CatalogRepository, SalesRepository, Protocol):
    def close(self) -> None: ...


PRODUCT_FIELDS = (
    "name",
    "category",
    "subcategory",
    "barcode",
    "supplier",
    "cost_price",
    "selling_price",
    "quantity",
    "min_stock_level",
    "unit",
)


def parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)
