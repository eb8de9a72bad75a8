from __future__ import annotations

import logging
import shutil
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional

from rsm.domain.errors import BackendUnavailableError
from rsm.domain.models import Product, ProductRef, Sale, SaleItem
from rsm.repositories.contracts import PRODUCT_FIELDS, parse_timestamp

log = logging.getLogger("rsm.backend")

_PRODUCT_COLUMNS = (
    "id, name, category, subcategory, barcode, supplier, cost_price, selling_price, "
    "quantity, min_stock_level, unit, created_at, updated_at"
)
_WRITABLE_COLUMNS = ", ".join(PRODUCT_FIELDS)
_WRITABLE_MARKS = ", ".join("?" for _ in PRODUCT_FIELDS)


def _now_iso() -> str:
    return datetime.now().replace(microsecond=0).isoformat(sep=" ")


def _row_to_product(r) -> Product:
    return Product(
        id=str(r[0]),
        name=str(r[1]),
        category=str(r[2]),
        subcategory=(r[3] if r[3] is not None else None),
        barcode=(r[4] if r[4] is not None else None),
        supplier=(r[5] if r[5] is not None else None),
        cost_price=float(r[6]),
        selling_price=float(r[7]),
        quantity=int(r[8]),
        min_stock_level=int(r[9]),
        unit=str(r[10]),
        created_at=(str(r[11]) if r[11] is not None else None),
        updated_at=(str(r[12]) if r[12] is not None else None),
    )


class SqliteRepository:
    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise BackendUnavailableError(f"Cannot open database {self.db_path}: {exc}") from exc
        try:
            conn.execute("PRAGMA foreign_keys = ON;")
        except sqlite3.Error as exc:
            conn.close()
            raise BackendUnavailableError(f"Cannot use database {self.db_path}: {exc}") from exc
        return conn

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Connection that is always closed; uncommitted work is rolled back on error."""
        conn = self._conn()
        try:
            yield conn
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.rollback()
            log.error("database_error db=%s error=%s", self.db_path, exc)
            raise BackendUnavailableError(f"Database error in {self.db_path}: {exc}") from exc
        except Exception:
            if conn.in_transaction:
                conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        self.run_migrations()

    def close(self) -> None:
        # connections are opened per call
        return None

    def run_migrations(self) -> None:
        backup_path = self._create_pre_migration_backup()
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_base),
                (2, self._migration_v2_indexes),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
                log.info("migration_applied version=%s db=%s", version, self.db_path)
            conn.commit()
        except Exception as exc:
            if conn.in_transaction:
                conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            log.error("migration_failed db=%s error=%s", self.db_path, exc)
            raise BackendUnavailableError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def schema_version(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations").fetchone()
        return int(row[0])

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS products (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            category TEXT NOT NULL CHECK(category IN ('beverages','tobacco','accessories')),
            subcategory TEXT,
            barcode TEXT,
            supplier TEXT,
            cost_price REAL NOT NULL CHECK(cost_price >= 0),
            selling_price REAL NOT NULL CHECK(selling_price >= 0),
            quantity INTEGER NOT NULL DEFAULT 0 CHECK(quantity >= 0),
            min_stock_level INTEGER NOT NULL DEFAULT 0 CHECK(min_stock_level >= 0),
            unit TEXT NOT NULL DEFAULT 'unit' CHECK(unit IN ('unit','liter','gram')),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
        )

        cur.execute("""
        CREATE TABLE IF NOT EXISTS sales (
            id TEXT PRIMARY KEY,
            total REAL NOT NULL,
            payment_method TEXT NOT NULL CHECK(payment_method IN ('card','cash','pix')),
            created_at TEXT NOT NULL
        )
        """)

        # product_id is a lookup key only: products may be deleted after the sale
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS sale_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            sale_id TEXT NOT NULL,
            position INTEGER NOT NULL,
            product_id TEXT NOT NULL,
            quantity INTEGER NOT NULL CHECK(quantity > 0),
            price_at_sale REAL NOT NULL CHECK(price_at_sale >= 0),
            FOREIGN KEY(sale_id) REFERENCES sales(id) ON DELETE CASCADE
        )
        """
        )

    def _migration_v2_indexes(self, cur: sqlite3.Cursor) -> None:
        cur.execute("CREATE INDEX IF NOT EXISTS idx_sale_items_sale ON sale_items(sale_id, position)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_sales_created_at ON sales(created_at)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_products_name ON products(name)")

    # ---------- Products ----------
    def add_product(self, fields: dict) -> str:
        pid = str(fields.get("id") or uuid.uuid4())
        now = _now_iso()
        values = [fields.get(col) for col in PRODUCT_FIELDS]
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO products (id, {_WRITABLE_COLUMNS}, created_at, updated_at)
                VALUES (?, {_WRITABLE_MARKS}, ?, ?)
            """,
                (pid, *values, now, now),
            )
            conn.commit()
        return pid

    def update_product(self, product_id: str, fields: dict) -> bool:
        cols = [c for c in PRODUCT_FIELDS if c in fields]
        if not cols:
            return self.get_product_by_id(product_id) is not None
        assignments = ", ".join(f"{c}=?" for c in cols)
        with self._connect() as conn:
            cur = conn.execute(
                f"UPDATE products SET {assignments}, updated_at=? WHERE id=?",
                (*[fields[c] for c in cols], _now_iso(), str(product_id)),
            )
            changed = cur.rowcount > 0
            conn.commit()
        return bool(changed)

    def delete_product(self, product_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM products WHERE id=?", (str(product_id),))
            changed = cur.rowcount > 0
            conn.commit()
        return bool(changed)

    def list_products(self) -> list[Product]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_PRODUCT_COLUMNS}
                FROM products
                ORDER BY name, id
            """
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        with self._connect() as conn:
            r = conn.execute(
                f"""
                SELECT {_PRODUCT_COLUMNS}
                FROM products
                WHERE id=?
            """,
                (str(product_id),),
            ).fetchone()
        if not r:
            return None
        return _row_to_product(r)

    # ---------- Sales ----------
    def _insert_items(self, cur: sqlite3.Cursor, sale_id: str, items: list[dict]) -> None:
        for position, it in enumerate(items):
            cur.execute(
                """
                INSERT INTO sale_items (sale_id, position, product_id, quantity, price_at_sale)
                VALUES (?, ?, ?, ?, ?)
            """,
                (sale_id, position, str(it["product_id"]), int(it["quantity"]), float(it["price_at_sale"])),
            )

    def create_sale(self, created_at: datetime, payment_method: str, total: float, items: Iterable[dict]) -> str:
        items = list(items)
        sale_id = str(uuid.uuid4())
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO sales (id, total, payment_method, created_at)
                VALUES (?, ?, ?, ?)
            """,
                (sale_id, float(total), payment_method, created_at.isoformat(sep=" ")),
            )
            self._insert_items(cur, sale_id, items)
            conn.commit()
        return sale_id

    def update_sale(self, sale_id: str, payment_method: str, total: float, items: Iterable[dict]) -> bool:
        """Replace the header fields and the whole item list of a sale."""
        items = list(items)
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                "UPDATE sales SET payment_method=?, total=? WHERE id=?",
                (payment_method, float(total), str(sale_id)),
            )
            if cur.rowcount == 0:
                conn.rollback()
                return False
            cur.execute("DELETE FROM sale_items WHERE sale_id=?", (str(sale_id),))
            self._insert_items(cur, str(sale_id), items)
            conn.commit()
        return True

    def delete_sale(self, sale_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM sales WHERE id=?", (str(sale_id),))
            changed = cur.rowcount > 0
            conn.commit()
        return bool(changed)

    def _items_by_sale(self, cur: sqlite3.Cursor, sale_id: Optional[str] = None) -> dict[str, list[SaleItem]]:
        sql = """
            SELECT si.sale_id, si.product_id, si.quantity, si.price_at_sale,
                   p.id, p.name, p.selling_price, p.category
            FROM sale_items si
            LEFT JOIN products p ON p.id = si.product_id
        """
        params: tuple = ()
        if sale_id is not None:
            sql += " WHERE si.sale_id = ?"
            params = (str(sale_id),)
        sql += " ORDER BY si.sale_id, si.position"
        cur.execute(sql, params)

        out: dict[str, list[SaleItem]] = {}
        for r in cur.fetchall():
            ref = None
            if r[4] is not None:
                ref = ProductRef(id=str(r[4]), name=str(r[5]), selling_price=float(r[6]), category=str(r[7]))
            out.setdefault(str(r[0]), []).append(
                SaleItem(product_id=str(r[1]), quantity=int(r[2]), price_at_sale=float(r[3]), product=ref)
            )
        return out

    def list_sales(self) -> list[Sale]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT id, total, payment_method, created_at
                FROM sales
                ORDER BY created_at DESC, id
            """
            )
            rows = cur.fetchall()
            items = self._items_by_sale(cur)
        return [
            Sale(
                id=str(r[0]),
                total=float(r[1]),
                payment_method=str(r[2]),
                created_at=parse_timestamp(r[3]),
                items=tuple(items.get(str(r[0]), [])),
            )
            for r in rows
        ]

    def get_sale(self, sale_id: str) -> Optional[Sale]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT id, total, payment_method, created_at FROM sales WHERE id = ?",
                (str(sale_id),),
            )
            r = cur.fetchone()
            if not r:
                return None
            items = self._items_by_sale(cur, str(sale_id))
        return Sale(
            id=str(r[0]),
            total=float(r[1]),
            payment_method=str(r[2]),
            created_at=parse_timestamp(r[3]),
            items=tuple(items.get(str(r[0]), [])),
        )
