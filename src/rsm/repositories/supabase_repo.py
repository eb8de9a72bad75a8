from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

import requests

from rsm.domain.errors import BackendUnavailableError
from rsm.domain.models import Product, ProductRef, Sale, SaleItem
from rsm.repositories.contracts import PRODUCT_FIELDS, parse_timestamp

log = logging.getLogger("rsm.backend")

SALES_SELECT = "*,sale_items(product_id,quantity,price_at_sale,products(id,name,selling_price,category))"


def _product_from_row(row: dict) -> Product:
    return Product(
        id=str(row["id"]),
        name=str(row["name"]),
        category=str(row["category"]),
        subcategory=row.get("subcategory"),
        barcode=row.get("barcode"),
        supplier=row.get("supplier"),
        cost_price=float(row.get("cost_price") or 0),
        selling_price=float(row.get("selling_price") or 0),
        quantity=int(row.get("quantity") or 0),
        min_stock_level=int(row.get("min_stock_level") or 0),
        unit=str(row.get("unit") or "unit"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _item_from_row(row: dict) -> SaleItem:
    joined = row.get("products")
    ref = None
    if joined:
        ref = ProductRef(
            id=str(joined["id"]),
            name=str(joined["name"]),
            selling_price=float(joined.get("selling_price") or 0),
            category=str(joined.get("category") or ""),
        )
    return SaleItem(
        product_id=str(row["product_id"]),
        quantity=int(row["quantity"]),
        price_at_sale=float(row["price_at_sale"]),
        product=ref,
    )


def _sale_from_row(row: dict) -> Sale:
    return Sale(
        id=str(row["id"]),
        total=float(row.get("total") or 0),
        payment_method=str(row["payment_method"]),
        created_at=parse_timestamp(row["created_at"]),
        items=tuple(_item_from_row(it) for it in row.get("sale_items") or ()),
    )


class SupabaseRepository:
    """
    Catalog and transaction store backed by a Supabase project, spoken to
    through its PostgREST endpoint.

    The client is built explicitly by the process entry point and must be
    closed by it. ``sign_in`` is never called implicitly; without it requests
    run with the anonymous key.
    """

    def __init__(self, url: str, anon_key: str, session: requests.Session | None = None, timeout: float = 10):
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self.access_token: Optional[str] = None

    def __enter__(self) -> "SupabaseRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token or self.anon_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def sign_in(self, email: str, password: str) -> None:
        data = self._send(
            "POST",
            f"{self.url}/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise BackendUnavailableError("Sign-in response carried no access token.")
        self.access_token = str(token)
        log.info("backend_signed_in url=%s", self.url)

    def _send(self, method: str, url: str, *, params=None, json=None, prefer: str | None = None) -> Any:
        try:
            r = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(prefer),
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            log.warning("backend_request_failed method=%s url=%s error=%s", method, url, e)
            raise BackendUnavailableError(f"{method} {url} failed: {e}") from e
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise BackendUnavailableError(f"{method} {url} returned invalid JSON") from e

    def _rest(self, method: str, table: str, **kwargs) -> Any:
        return self._send(method, f"{self.url}/rest/v1/{table}", **kwargs)

    # ---------- Products ----------
    def list_products(self) -> list[Product]:
        rows = self._rest("GET", "products", params={"select": "*", "order": "name.asc"}) or []
        return [_product_from_row(r) for r in rows]

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        rows = self._rest("GET", "products", params={"select": "*", "id": f"eq.{product_id}"}) or []
        return _product_from_row(rows[0]) if rows else None

    def add_product(self, fields: dict) -> str:
        payload = {k: fields[k] for k in PRODUCT_FIELDS if k in fields}
        if fields.get("id"):
            payload["id"] = str(fields["id"])
        rows = self._rest("POST", "products", json=payload, prefer="return=representation") or []
        if not rows:
            raise BackendUnavailableError("Product insert returned no row.")
        return str(rows[0]["id"])

    def update_product(self, product_id: str, fields: dict) -> bool:
        payload = {k: fields[k] for k in PRODUCT_FIELDS if k in fields}
        rows = self._rest(
            "PATCH",
            "products",
            params={"id": f"eq.{product_id}"},
            json=payload,
            prefer="return=representation",
        )
        return bool(rows)

    def delete_product(self, product_id: str) -> bool:
        rows = self._rest("DELETE", "products", params={"id": f"eq.{product_id}"}, prefer="return=representation")
        return bool(rows)

    # ---------- Sales ----------
    def list_sales(self) -> list[Sale]:
        rows = self._rest("GET", "sales", params={"select": SALES_SELECT, "order": "created_at.desc"}) or []
        return [_sale_from_row(r) for r in rows]

    def get_sale(self, sale_id: str) -> Optional[Sale]:
        rows = self._rest("GET", "sales", params={"select": SALES_SELECT, "id": f"eq.{sale_id}"}) or []
        return _sale_from_row(rows[0]) if rows else None

    def _insert_items(self, sale_id: str, items: list[dict]) -> None:
        if not items:
            return
        payload = [
            {
                "sale_id": sale_id,
                "product_id": str(it["product_id"]),
                "quantity": int(it["quantity"]),
                "price_at_sale": float(it["price_at_sale"]),
            }
            for it in items
        ]
        self._rest("POST", "sale_items", json=payload, prefer="return=minimal")

    def create_sale(self, created_at: datetime, payment_method: str, total: float, items: Iterable[dict]) -> str:
        items = list(items)
        rows = self._rest(
            "POST",
            "sales",
            json={"total": float(total), "payment_method": payment_method, "created_at": created_at.isoformat()},
            prefer="return=representation",
        ) or []
        if not rows:
            raise BackendUnavailableError("Sale insert returned no row.")
        sale_id = str(rows[0]["id"])
        self._insert_items(sale_id, items)
        return sale_id

    def update_sale(self, sale_id: str, payment_method: str, total: float, items: Iterable[dict]) -> bool:
        """
        Three separate requests: patch the header, delete every item, insert
        the new items. A failure in between leaves the sale partially edited.
        """
        items = list(items)
        rows = self._rest(
            "PATCH",
            "sales",
            params={"id": f"eq.{sale_id}"},
            json={"payment_method": payment_method, "total": float(total)},
            prefer="return=representation",
        )
        if not rows:
            return False
        self._rest("DELETE", "sale_items", params={"sale_id": f"eq.{sale_id}"})
        self._insert_items(str(sale_id), items)
        return True

    def delete_sale(self, sale_id: str) -> bool:
        rows = self._rest("DELETE", "sales", params={"id": f"eq.{sale_id}"}, prefer="return=representation")
        return bool(rows)
