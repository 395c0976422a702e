from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

from pos_insights.application.container import build_container
from pos_insights.config import get_app_paths
from pos_insights.domain.errors import AppError
from pos_insights.logging_config import setup_logging

log = logging.getLogger(__name__)


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pos-insights",
        description="Compute back-office insights from a snapshot workbook.",
    )
    p.add_argument("snapshot", help="Snapshot .xlsx with products/sales/... sheets")
    p.add_argument("--config", help="JSON file with config overrides")
    p.add_argument("--out", help="Write the insights workbook to this .xlsx path")
    p.add_argument("--window-days", type=int, default=1, help="Daily report window (default: 1 = today)")
    p.add_argument("--other-income", type=float, default=0.0, help="Other income/expenses for the income statement")
    p.add_argument("--now", help="Reference time in ISO format (default: current time)")
    p.add_argument("--logs-dir", help="Directory for log files")
    return p


def run(args: argparse.Namespace) -> dict:
    config_path = args.config
    if not config_path:
        default_cfg = get_app_paths().config_path
        if default_cfg.exists():
            config_path = str(default_cfg)

    container = build_container(args.snapshot, config_path)
    repo = container.snapshot
    insights = container.insights
    now = datetime.fromisoformat(args.now) if args.now else datetime.now()

    try:
        products = repo.list_products()
        sales = repo.list_sales()
        returns = repo.list_returns()
        customers = repo.list_customers()
        expenses = repo.list_expenses()
        suppliers = repo.list_suppliers()
        orders = repo.list_purchase_orders()
    finally:
        repo.close()

    overview = insights.overview(
        products, sales, customers, expenses, suppliers, orders, now=now, window_days=args.window_days
    )
    statement = insights.income_statement(sales, returns, orders, expenses, other_income=args.other_income)

    if args.out:
        container.reporting.export_insights_excel(
            args.out, statement, daily=overview.daily_report, low_stock=overview.low_stock
        )

    statement_summary = asdict(statement)
    statement_summary.pop("lines")
    return {
        "generated_at": now.isoformat(timespec="seconds"),
        "daily_report": asdict(overview.daily_report),
        "low_stock": [asdict(a) for a in overview.low_stock],
        "reorders": [asdict(r) for r in overview.reorders],
        "discounts": [asdict(d) for d in overview.discounts],
        "segments": dict(Counter(s.tier.value for s in overview.segments)),
        "suppliers": [asdict(s) for s in overview.suppliers],
        "income_statement": statement_summary,
        "skipped_rows": dict(repo.skipped),
    }


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    logs_dir = Path(args.logs_dir) if args.logs_dir else get_app_paths().logs_dir
    setup_logging(logs_dir, level=logging.INFO)

    try:
        summary = run(args)
    except (AppError, ValueError) as e:
        log.exception("insights_run_failed snapshot=%s", args.snapshot)
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(summary, ensure_ascii=False, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
