from __future__ import annotations

from typing import Callable, Iterable, Optional

import logging
from rsm.domain.errors import NotFoundError, ValidationError
from rsm.domain.models import PAYMENT_METHODS, Sale
from rsm.repositories.contracts import StoreRepository
from rsm.repositories.unit_of_work import RepositoryUnitOfWork, UnitOfWork

log = logging.getLogger("rsm.sales")


class SalesService:
    def __init__(
        self,
        repo: StoreRepository,
        uow_factory: Callable[[], UnitOfWork] | None = None,
    ):
        self.repo = repo
        self.uow_factory = uow_factory or (lambda: RepositoryUnitOfWork(repo))

    def _validate(self, payment_method: str, items: Iterable[dict]) -> list[dict]:
        """
        items: [{product_id, quantity, price_at_sale}]
        """
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}.")

        items = list(items)
        if not items:
            raise ValidationError("Cart is empty.")

        clean: list[dict] = []
        for it in items:
            product_id = str(it.get("product_id") or "").strip()
            if not product_id:
                raise ValidationError("Every item needs a product.")
            try:
                qty = int(it["quantity"])
                price = float(it["price_at_sale"])
            except (KeyError, TypeError, ValueError) as e:
                raise ValidationError("Item quantity and price must be numbers.") from e
            if qty <= 0:
                raise ValidationError("Quantity must be >= 1.")
            if price < 0:
                raise ValidationError("Price must be >= 0.")

            if not self.repo.get_product_by_id(product_id):
                raise NotFoundError(f"Product not found: {product_id}")
            clean.append({"product_id": product_id, "quantity": qty, "price_at_sale": price})
        return clean

    def create_sale(self, payment_method: str, items: Iterable[dict]) -> str:
        clean = self._validate(payment_method, items)
        with self.uow_factory() as uow:
            sale_id = uow.create_sale(payment_method, clean)
        log.info("sale_created sale_id=%s items=%s payment=%s", sale_id, len(clean), payment_method)
        return sale_id

    def update_sale(self, sale_id: str, payment_method: str, items: Iterable[dict]) -> None:
        """Replace payment method and the whole item list; prices are kept as given."""
        clean = self._validate(payment_method, items)
        with self.uow_factory() as uow:
            updated = uow.update_sale(sale_id, payment_method, clean)
        if not updated:
            raise NotFoundError("Sale not found.")
        log.info("sale_updated sale_id=%s items=%s payment=%s", sale_id, len(clean), payment_method)

    def delete_sale(self, sale_id: str) -> None:
        if not self.repo.delete_sale(sale_id):
            raise NotFoundError("Sale not found.")
        log.info("sale_deleted sale_id=%s", sale_id)

    def list_sales(self) -> list[Sale]:
        return self.repo.list_sales()

    def get_sale(self, sale_id: str) -> Optional[Sale]:
        return self.repo.get_sale(sale_id)
