from pathlib import Path

import pytest

from rsm.domain.errors import NotFoundError, ValidationError
from rsm.repositories.sqlite_repo import SqliteRepository
from rsm.services.inventory_service import InventoryService


def _inventory(tmp_path: Path) -> InventoryService:
    repo = SqliteRepository(tmp_path / "inventory.db")
    repo.init_db()
    return InventoryService(repo)


def test_add_product_validates_fields(tmp_path: Path):
    inv = _inventory(tmp_path)

    with pytest.raises(ValidationError, match="Name is required"):
        inv.add_product("  ", "beverages", 1.0, 2.0, 1, 1)
    with pytest.raises(ValidationError, match="Category"):
        inv.add_product("Snack", "food", 1.0, 2.0, 1, 1)
    with pytest.raises(ValidationError, match="Unit"):
        inv.add_product("Beer", "beverages", 1.0, 2.0, 1, 1, unit="bottle")
    with pytest.raises(ValidationError, match="cost_price"):
        inv.add_product("Beer", "beverages", -1.0, 2.0, 1, 1)
    with pytest.raises(ValidationError, match="quantity"):
        inv.add_product("Beer", "beverages", 1.0, 2.0, -1, 1)


def test_update_product_changes_only_given_fields(tmp_path: Path):
    inv = _inventory(tmp_path)
    pid = inv.add_product("Beer", "beverages", 1.0, 2.0, 10, 3, unit="liter", subcategory="Lager")

    inv.update_product(pid, quantity=4, selling_price=2.5)
    p = inv.get_product(pid)

    assert p.quantity == 4
    assert p.selling_price == 2.5
    assert p.unit == "liter"
    assert p.subcategory == "Lager"


def test_update_rejects_unknown_fields_and_missing_products(tmp_path: Path):
    inv = _inventory(tmp_path)
    pid = inv.add_product("Beer", "beverages", 1.0, 2.0, 10, 3)

    with pytest.raises(ValidationError, match="Unknown product fields"):
        inv.update_product(pid, colour="red")
    with pytest.raises(NotFoundError):
        inv.update_product("ghost", quantity=1)
    with pytest.raises(NotFoundError):
        inv.delete_product("ghost")


def test_search_matches_name_or_category(tmp_path: Path):
    inv = _inventory(tmp_path)
    inv.add_product("Cola", "beverages", 1.0, 2.0, 10, 3)
    inv.add_product("Cigar", "tobacco", 1.0, 2.0, 10, 3)
    inv.add_product("Lighter", "accessories", 1.0, 2.0, 10, 3)

    assert [p.name for p in inv.search("CI")] == ["Cigar"]
    assert [p.name for p in inv.search("tobacco")] == ["Cigar"]
    assert [p.name for p in inv.search("")] == ["Cigar", "Cola", "Lighter"]


def test_list_with_status_sorts_by_severity(tmp_path: Path):
    inv = _inventory(tmp_path)
    inv.add_product("Full", "beverages", 1.0, 2.0, 10, 3)
    inv.add_product("Empty", "beverages", 1.0, 2.0, 0, 3)
    inv.add_product("Low", "beverages", 1.0, 2.0, 3, 3)

    rows = inv.list_with_status()

    assert [(p.name, status) for p, status in rows] == [
        ("Empty", "out_of_stock"),
        ("Low", "low_stock"),
        ("Full", "in_stock"),
    ]
    assert [p.name for p in inv.low_stock_products()] == ["Empty", "Low"]
