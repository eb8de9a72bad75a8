from datetime import datetime
from pathlib import Path

import pytest

from rsm.domain.errors import NotFoundError, ValidationError
from rsm.repositories.sqlite_repo import SqliteRepository
from rsm.repositories.unit_of_work import RepositoryUnitOfWork
from rsm.services.inventory_service import InventoryService
from rsm.services.sales_service import SalesService

FIXED_NOW = datetime(2024, 6, 15, 10, 0)


def _setup(tmp_path: Path):
    db = tmp_path / "sales_validation.db"
    repo = SqliteRepository(db)
    repo.init_db()
    inventory = InventoryService(repo)
    pid = inventory.add_product("Cola", "beverages", 2.0, 5.0, 10, 2)
    sales = SalesService(repo, uow_factory=lambda: RepositoryUnitOfWork(repo, clock=lambda: FIXED_NOW))
    return repo, sales, pid


def test_create_sale_stores_total_from_items(tmp_path: Path):
    repo, sales, pid = _setup(tmp_path)

    sale_id = sales.create_sale("card", [{"product_id": pid, "quantity": 3, "price_at_sale": 5.0}])
    sale = repo.get_sale(sale_id)

    assert sale.total == 15.0
    assert sale.created_at == FIXED_NOW


def test_create_sale_rejects_empty_cart(tmp_path: Path):
    _repo, sales, _pid = _setup(tmp_path)

    with pytest.raises(ValidationError, match="Cart is empty"):
        sales.create_sale("cash", [])


def test_create_sale_rejects_unknown_payment_method(tmp_path: Path):
    _repo, sales, pid = _setup(tmp_path)

    with pytest.raises(ValidationError, match="Payment method"):
        sales.create_sale("cheque", [{"product_id": pid, "quantity": 1, "price_at_sale": 5.0}])


def test_create_sale_rejects_zero_quantity_and_negative_price(tmp_path: Path):
    _repo, sales, pid = _setup(tmp_path)

    with pytest.raises(ValidationError, match="Quantity"):
        sales.create_sale("cash", [{"product_id": pid, "quantity": 0, "price_at_sale": 5.0}])
    with pytest.raises(ValidationError, match="Price"):
        sales.create_sale("cash", [{"product_id": pid, "quantity": 1, "price_at_sale": -1.0}])


def test_create_sale_rejects_unknown_product(tmp_path: Path):
    _repo, sales, _pid = _setup(tmp_path)

    with pytest.raises(NotFoundError):
        sales.create_sale("cash", [{"product_id": "ghost", "quantity": 1, "price_at_sale": 5.0}])


def test_update_sale_keeps_price_at_sale_after_catalog_change(tmp_path: Path):
    repo, sales, pid = _setup(tmp_path)
    inventory = InventoryService(repo)
    sale_id = sales.create_sale("cash", [{"product_id": pid, "quantity": 1, "price_at_sale": 5.0}])

    inventory.update_product(pid, selling_price=9.0)
    sales.update_sale(sale_id, "pix", [{"product_id": pid, "quantity": 2, "price_at_sale": 5.0}])

    sale = repo.get_sale(sale_id)
    assert sale.payment_method == "pix"
    assert sale.total == 10.0
    assert sale.items[0].price_at_sale == 5.0
    assert sale.items[0].product.selling_price == 9.0


def test_update_and_delete_missing_sale(tmp_path: Path):
    _repo, sales, pid = _setup(tmp_path)

    with pytest.raises(NotFoundError):
        sales.update_sale("ghost", "cash", [{"product_id": pid, "quantity": 1, "price_at_sale": 5.0}])
    with pytest.raises(NotFoundError):
        sales.delete_sale("ghost")
