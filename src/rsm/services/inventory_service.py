from __future__ import annotations

import logging

from rsm.analytics.aggregates import is_low_stock, stock_status, stock_status_rank
from rsm.domain.errors import ValidationError, NotFoundError
from rsm.domain.models import CATEGORIES, UNITS, Product
from rsm.repositories.contracts import PRODUCT_FIELDS

log = logging.getLogger(__name__)


def _clean_fields(fields: dict, *, partial: bool) -> dict:
    unknown = set(fields) - set(PRODUCT_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown product fields: {', '.join(sorted(unknown))}")

    out = dict(fields)
    if "name" in out or not partial:
        out["name"] = (out.get("name") or "").strip()
        if not out["name"]:
            raise ValidationError("Name is required.")
    if "category" in out or not partial:
        if out.get("category") not in CATEGORIES:
            raise ValidationError(f"Category must be one of: {', '.join(CATEGORIES)}.")
    if "unit" in out or not partial:
        out["unit"] = out.get("unit") or "unit"
        if out["unit"] not in UNITS:
            raise ValidationError(f"Unit must be one of: {', '.join(UNITS)}.")

    for key in ("cost_price", "selling_price"):
        if key in out or not partial:
            try:
                out[key] = float(out.get(key))
            except (TypeError, ValueError) as e:
                raise ValidationError(f"{key} must be a number.") from e
            if out[key] < 0:
                raise ValidationError(f"{key} must be >= 0.")
    for key in ("quantity", "min_stock_level"):
        if key in out or not partial:
            try:
                out[key] = int(out.get(key))
            except (TypeError, ValueError) as e:
                raise ValidationError(f"{key} must be an integer.") from e
            if out[key] < 0:
                raise ValidationError(f"{key} must be >= 0.")

    for key in ("subcategory", "barcode", "supplier"):
        if key in out and out[key] is not None:
            out[key] = str(out[key]).strip() or None
    return out


class InventoryService:
    def __init__(self, repo):
        self.repo = repo

    def list_products(self) -> list[Product]:
        return self.repo.list_products()

    def get_product(self, product_id: str) -> Product:
        p = self.repo.get_product_by_id(product_id)
        if not p:
            raise NotFoundError("Product not found.")
        return p

    def add_product(
        self,
        name: str,
        category: str,
        cost_price: float,
        selling_price: float,
        quantity: int,
        min_stock_level: int,
        unit: str = "unit",
        subcategory: str | None = None,
        barcode: str | None = None,
        supplier: str | None = None,
    ) -> str:
        fields = _clean_fields(
            {
                "name": name,
                "category": category,
                "cost_price": cost_price,
                "selling_price": selling_price,
                "quantity": quantity,
                "min_stock_level": min_stock_level,
                "unit": unit,
                "subcategory": subcategory,
                "barcode": barcode,
                "supplier": supplier,
            },
            partial=False,
        )
        product_id = self.repo.add_product(fields)
        log.info("product_created product_id=%s name=%s", product_id, fields["name"])
        return product_id

    def update_product(self, product_id: str, **fields) -> None:
        updated = self.repo.update_product(product_id, _clean_fields(fields, partial=True))
        if not updated:
            raise NotFoundError("Product not found.")
        log.info("product_updated product_id=%s fields=%s", product_id, ",".join(sorted(fields)))

    def delete_product(self, product_id: str) -> None:
        removed = self.repo.delete_product(product_id)
        if not removed:
            raise NotFoundError("Product not found.")
        log.info("product_deleted product_id=%s", product_id)

    def search(self, term: str) -> list[Product]:
        """Case-insensitive match on name or category; a blank term matches all."""
        needle = (term or "").strip().lower()
        products = self.repo.list_products()
        if not needle:
            return products
        return [p for p in products if needle in p.name.lower() or needle in p.category.lower()]

    def list_with_status(self) -> list[tuple[Product, str]]:
        rows = [(p, stock_status(p)) for p in self.repo.list_products()]
        rows.sort(key=lambda r: (stock_status_rank(r[1]), r[0].name))
        return rows

    def low_stock_products(self) -> list[Product]:
        return [p for p in self.repo.list_products() if is_low_stock(p)]
