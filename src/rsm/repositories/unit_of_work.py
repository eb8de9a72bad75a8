from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Protocol


class UnitOfWork(Protocol):
    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
    def create_sale(self, payment_method: str, items: Iterable[dict]) -> str: ...
    def update_sale(self, sale_id: str, payment_method: str, items: Iterable[dict]) -> bool: ...


def sale_total(items: Iterable[dict]) -> float:
    return sum((float(it["price_at_sale"]) * int(it["quantity"]) for it in items), 0.0)


@dataclass
class RepositoryUnitOfWork:
    """Unit of Work adapter for sale write use-cases.

    The stored total is computed here, once, from the items being written.
    Atomicity is whatever the repository gives: one SQLite transaction for
    the local store, separate HTTP requests for the remote one.
    """

    repo: object
    clock: Callable[[], datetime] = field(default=lambda: datetime.now().replace(microsecond=0))

    def __enter__(self) -> "RepositoryUnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def create_sale(self, payment_method: str, items: Iterable[dict]) -> str:
        items = list(items)
        return str(self.repo.create_sale(self.clock(), payment_method, sale_total(items), items))

    def update_sale(self, sale_id: str, payment_method: str, items: Iterable[dict]) -> bool:
        items = list(items)
        return bool(self.repo.update_sale(sale_id, payment_method, sale_total(items), items))
