from __future__ import annotations

import argparse
import logging
from datetime import datetime

from possuite.application.container import build_container
from possuite.config import get_app_paths, load_settings
from possuite.logging_config import setup_logging
from possuite.repositories.seed import seed_defaults
from possuite.services.analytics_service import window_start

log = logging.getLogger(__name__)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="possuite", description="POS ledger maintenance")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed", help="fill empty collections with default data")

    report = sub.add_parser("report", help="export a sales report workbook")
    report.add_argument("out")
    report.add_argument("--store", default=None)
    report.add_argument("--range", dest="date_range", default="30d", choices=["7d", "30d", "90d", "1y"])

    imp = sub.add_parser("import-products", help="import products and restock deltas from a workbook")
    imp.add_argument("path")
    imp.add_argument("--by", default="EXCEL_IMPORT")

    sub.add_parser("stats", help="print catalog and today's sales figures")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)

    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)
    container = build_container(paths.db_path, settings=load_settings(paths.settings_path), seed=False)

    if args.command == "seed":
        seeded = seed_defaults(container.store)
        print(f"Seeded: {', '.join(seeded) if seeded else 'nothing to do'}")
    elif args.command == "report":
        now = datetime.now()
        count = container.reporting.export_for_window(
            args.out, store_id=args.store, start=window_start(args.date_range, now), end=now
        )
        print(f"Exported {count} sales to {args.out}")
    elif args.command == "import-products":
        ok, skipped = container.excel.import_products_excel(args.path, performed_by=args.by)
        print(f"Imported {ok} rows, skipped {skipped}")
    elif args.command == "stats":
        current = container.context.current
        overview = container.analytics.dashboard(current.id if current else None)
        stats = overview.stats
        print(f"Store: {current.name if current else '-'}")
        print(
            f"Products: {stats.total_products} total, {stats.in_stock_products} in stock, "
            f"{stats.out_of_stock_products} out, {stats.low_stock_products} low"
        )
        print(f"Today: {overview.today_sales} sales, {overview.today_revenue:.2f} {container.settings.currency}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
