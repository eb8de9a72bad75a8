from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from rsm.analytics import aggregates, distribution, series
from rsm.analytics.windows import ALL, DAILY, filter_sales
from rsm.domain.models import Product, ProductSales, Sale, Share

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardStats:
    window: str
    total_revenue: float
    transaction_count: int
    net_profit: float
    low_stock_items: int
    growth: float
    revenue_series: list[tuple[str, float]]
    top_products: list[ProductSales]


@dataclass(frozen=True)
class SalesReport:
    window: str
    monthly_revenue: list[tuple[str, float]]
    category_distribution: list[Share]
    revenue_contribution: list[Share]


class ReportingService:
    def __init__(self, repo, clock: Callable[[], datetime] | None = None, top_n: int = 5):
        self.repo = repo
        self.clock = clock or datetime.now
        self.top_n = top_n

    def _snapshot(self) -> tuple[list[Product], list[Sale]]:
        # both reads must succeed before anything is computed
        products = self.repo.list_products()
        sales = self.repo.list_sales()
        return products, sales

    def dashboard(self, window: str = DAILY, now: datetime | None = None) -> DashboardStats:
        now = now or self.clock()
        products, sales = self._snapshot()
        return self._dashboard_from(products, sales, window, now)

    def report(self, window: str = ALL, now: datetime | None = None) -> SalesReport:
        now = now or self.clock()
        products, sales = self._snapshot()
        return self._report_from(products, sales, window, now)

    def _dashboard_from(self, products: list[Product], sales: list[Sale], window: str, now: datetime) -> DashboardStats:
        filtered = filter_sales(sales, window, now)
        return DashboardStats(
            window=window,
            total_revenue=aggregates.total_revenue(filtered),
            transaction_count=aggregates.transaction_count(filtered),
            net_profit=aggregates.net_profit(filtered, products),
            low_stock_items=aggregates.low_stock_count(products),
            growth=aggregates.month_over_month_growth(sales, now),
            revenue_series=series.revenue_series(filtered, window, tz=now.tzinfo),
            top_products=aggregates.top_products(filtered, products, self.top_n),
        )

    def _report_from(self, products: list[Product], sales: list[Sale], window: str, now: datetime) -> SalesReport:
        filtered = filter_sales(sales, window, now)
        return SalesReport(
            window=window,
            monthly_revenue=series.monthly_revenue(filtered, tz=now.tzinfo),
            category_distribution=distribution.category_distribution(filtered, products),
            revenue_contribution=distribution.top_contribution(filtered, products, self.top_n),
        )

    def export_report_excel(self, path: str, window: str = ALL, now: datetime | None = None) -> None:
        now = now or self.clock()
        products, sales = self._snapshot()
        stats = self._dashboard_from(products, sales, window, now)
        report = self._report_from(products, sales, window, now)

        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def pct(cell):
            cell.number_format = "0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Summary"
        ws["A1"].font = Font(bold=True, size=14)

        ws["A3"] = "Window"
        ws["B3"] = window
        ws["A4"] = "Generated at"
        ws["B4"] = now.replace(microsecond=0).isoformat(sep=" ")

        rows = [
            ("Transactions", stats.transaction_count, "int"),
            ("Total revenue", stats.total_revenue, "money"),
            ("Net profit", stats.net_profit, "money"),
            ("Low stock items", stats.low_stock_items, "int"),
            ("Month over month growth %", stats.growth, "pct"),
        ]

        start_row = 6
        for i, (label, val, kind) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])
            elif kind == "pct":
                pct(ws[f"B{r}"])

        set_widths(ws, {"A": 28, "B": 24})

        # -------- 2) Revenue series --------
        ws2 = wb.create_sheet("Revenue Series")
        ws2.append(["Bucket", "Revenue"])
        bold_row(ws2, 1)
        for label, revenue in stats.revenue_series:
            ws2.append([label, revenue])
            money(ws2[f"B{ws2.max_row}"])
        ws2.append([])
        ws2.append(["Month", "Revenue"])
        bold_row(ws2, ws2.max_row)
        for label, revenue in report.monthly_revenue:
            ws2.append([label, revenue])
            money(ws2[f"B{ws2.max_row}"])
        set_widths(ws2, {"A": 16, "B": 16})

        # -------- 3) Categories --------
        ws3 = wb.create_sheet("Categories")
        ws3.append(["Category", "Revenue", "Share %"])
        bold_row(ws3, 1)
        for share in report.category_distribution:
            ws3.append([share.label, share.value, share.percentage])
            money(ws3[f"B{ws3.max_row}"])
            pct(ws3[f"C{ws3.max_row}"])
        set_widths(ws3, {"A": 18, "B": 16, "C": 10})
        if ws3.max_row >= 2:
            add_table(ws3, "CategoryShare", 1, 1, ws3.max_row, 3)

        # -------- 4) Top products --------
        ws4 = wb.create_sheet("Top Products")
        ws4.append(["Product", "Revenue", "Share %"])
        bold_row(ws4, 1)
        for share in report.revenue_contribution:
            ws4.append([share.label, share.value, share.percentage])
            money(ws4[f"B{ws4.max_row}"])
            pct(ws4[f"C{ws4.max_row}"])
        set_widths(ws4, {"A": 34, "B": 16, "C": 10})
        if ws4.max_row >= 2:
            add_table(ws4, "RevenueContribution", 1, 1, ws4.max_row, 3)

        # -------- 5) Inventory --------
        ws5 = wb.create_sheet("Inventory")
        ws5.append([
            "Product", "Category", "Subcategory", "Unit",
            "Quantity", "Min Stock", "Status",
            "Cost Price", "Selling Price",
        ])
        bold_row(ws5, 1)
        for p in products:
            ws5.append([
                p.name, p.category, p.subcategory or "", p.unit,
                int(p.quantity), int(p.min_stock_level), aggregates.stock_status(p),
                float(p.cost_price), float(p.selling_price),
            ])
            money(ws5[f"H{ws5.max_row}"])
            money(ws5[f"I{ws5.max_row}"])
        ws5.freeze_panes = "A2"
        set_widths(ws5, {
            "A": 34, "B": 14, "C": 18, "D": 8,
            "E": 10, "F": 10, "G": 14,
            "H": 14, "I": 14,
        })
        if ws5.max_row >= 2:
            add_table(ws5, "InventoryStatus", 1, 1, ws5.max_row, 9)

        wb.save(path)
        log.info("report_exported path=%s window=%s", path, window)
