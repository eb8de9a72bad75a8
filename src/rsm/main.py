from __future__ import annotations

import argparse
import logging
import sys

from rsm.analytics.windows import WINDOWS
from rsm.application.container import AppContainer, build_container
from rsm.config import get_app_paths, load_settings
from rsm.domain.errors import AppError
from rsm.logging_config import setup_logging

log = logging.getLogger(__name__)


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _print_dashboard(app: AppContainer, window: str) -> None:
    stats = app.reporting.dashboard(window)
    print(f"Window:           {stats.window}")
    print(f"Total revenue:    {_money(stats.total_revenue)}")
    print(f"Transactions:     {stats.transaction_count}")
    print(f"Net profit:       {_money(stats.net_profit)}")
    print(f"Low stock items:  {stats.low_stock_items}")
    print(f"Growth:           {stats.growth:.1f}%")
    print()
    print("Revenue")
    for label, revenue in stats.revenue_series:
        print(f"  {label:<12} {_money(revenue):>14}")
    print()
    print("Top products")
    for row in stats.top_products:
        print(f"  {row.name:<30} {row.quantity:>6} {_money(row.revenue):>14}")


def _print_report(app: AppContainer, window: str) -> None:
    report = app.reporting.report(window)
    print("Monthly revenue")
    for label, revenue in report.monthly_revenue:
        print(f"  {label:<12} {_money(revenue):>14}")
    print()
    print("Sales by category")
    for share in report.category_distribution:
        print(f"  {share.label:<30} {share.percentage:>6.1f}%")
    print()
    print("Revenue contribution")
    for share in report.revenue_contribution:
        print(f"  {share.label:<30} {share.percentage:>6.1f}%")


def _print_inventory(app: AppContainer, term: str | None) -> None:
    matches = {p.id for p in app.inventory.search(term or "")}
    for product, status in app.inventory.list_with_status():
        if product.id not in matches:
            continue
        print(
            f"{product.name:<30} {product.category:<12} "
            f"{product.quantity:>6} {product.unit:<6} {_money(product.selling_price):>12}  {status}"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rsm", description="Retail sales and inventory manager")
    sub = parser.add_subparsers(dest="command", required=True)

    dash = sub.add_parser("dashboard", help="Show dashboard statistics")
    dash.add_argument("--window", default="daily", help=f"one of {', '.join(WINDOWS)}")

    rep = sub.add_parser("report", help="Show or export the sales report")
    rep.add_argument("--window", default="all", help=f"one of {', '.join(WINDOWS)}")
    rep.add_argument("--export", metavar="PATH", help="write the report to an .xlsx file")

    inv = sub.add_parser("inventory", help="List products with their stock status")
    inv.add_argument("--search", default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    paths = get_app_paths()

    try:
        settings = load_settings()
    except AppError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(paths.logs_dir, level=settings.log_level)

    try:
        with build_container(settings, paths.db_path) as app:
            if args.command == "dashboard":
                _print_dashboard(app, args.window)
            elif args.command == "report":
                if args.export:
                    app.reporting.export_report_excel(args.export, args.window)
                    print(f"Report written to {args.export}")
                else:
                    _print_report(app, args.window)
            elif args.command == "inventory":
                _print_inventory(app, args.search)
    except AppError as e:
        log.error("command_failed command=%s error=%s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
