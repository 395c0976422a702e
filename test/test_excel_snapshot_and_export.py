import json
from datetime import date, datetime, timezone
from pathlib import Path

import pytest
from openpyxl import load_workbook

from conftest import write_snapshot

from pos_insights.config import InsightsConfig
from pos_insights.domain.errors import SnapshotError
from pos_insights.domain.models import PurchaseOrderStatus
from pos_insights.main import main
from pos_insights.repositories.excel_repo import ExcelSnapshotRepository
from pos_insights.services.insight_service import InsightService
from pos_insights.services.reporting_service import ReportingService


def _snapshot(tmp_path: Path) -> Path:
    return write_snapshot(
        tmp_path / "snapshot.xlsx",
        {
            "products": [
                ["ID", "Name", "Price", "Cost", "Stock", "Reorder_Level", "Category"],
                [1, "Cola", 2.5, 1.2, 3, None, "Drinks"],
                [2, "Chips", 1.5, 0.7, 40, 5, "Snacks"],
                [3, "Broken", "n/a", 1.0, 1, None, None],
            ],
            "sales": [
                ["id", "sold_at", "total", "payment_method"],
                ["S1", datetime(2024, 6, 15, 10, 0), 250.0, "cash"],
                ["S2", "2024-06-15T12:30:00", None, "card"],
                ["S3", datetime(2024, 6, 14, 9, 0), 500.0, "cash"],
            ],
            "sale_items": [
                ["sale_id", "product_id", "name", "quantity", "unit_price"],
                ["S1", 1, "Cola", 100, 2.5],
                ["S2", 2, "Chips", 4, 1.5],
            ],
            "returns": [
                ["id", "returned_at", "total"],
                ["R1", datetime(2024, 6, 15, 11, 0), 6.0],
            ],
            "customers": [
                ["id", "name", "loyalty_points", "total_spent"],
                ["C1", "Ann", 600, 10.0],
                ["C2", "Bob", None, None],
            ],
            "expenses": [
                ["id", "spent_on", "description", "amount"],
                ["E1", date(2024, 6, 1), "Shop rent", 100.0],
                ["E2", None, "no date", 5.0],
            ],
            "suppliers": [
                ["id", "name"],
                ["SUP1", "Acme"],
            ],
            "purchase_orders": [
                ["id", "supplier_id", "total", "status", "ordered_on", "expected_delivery", "delivered_on"],
                ["P1", "SUP1", 300.0, "Received", "2024-06-01", date(2024, 6, 5), date(2024, 6, 4)],
                ["P2", "SUP1", 50.0, "bogus", None, None, None],
            ],
        },
    )


def test_snapshot_repository_parses_all_sheets(tmp_path: Path):
    repo = ExcelSnapshotRepository(_snapshot(tmp_path))

    products = repo.list_products()
    assert [(p.id, p.stock, p.reorder_level, p.category) for p in products] == [
        ("1", 3, None, "Drinks"),
        ("2", 40, 5, "Snacks"),
    ]

    sales = repo.list_sales()
    assert [s.id for s in sales] == ["S1", "S2", "S3"]
    assert sales[0].items[0].quantity == 100
    # blank total falls back to the sum of its lines
    assert sales[1].total == pytest.approx(6.0)
    assert sales[1].sold_at == datetime(2024, 6, 15, 12, 30)
    assert sales[2].items == ()

    assert repo.list_returns()[0].total == 6.0
    customers = repo.list_customers()
    assert customers[0].loyalty_points == 600
    assert customers[1].total_spent == 0.0

    expenses = repo.list_expenses()
    assert [e.id for e in expenses] == ["E1"]

    orders = repo.list_purchase_orders()
    assert len(orders) == 1
    assert orders[0].status is PurchaseOrderStatus.RECEIVED
    assert orders[0].ordered_on == date(2024, 6, 1)

    assert repo.skipped == {"products": 1, "expenses": 1, "purchase_orders": 1}
    repo.close()


def test_snapshot_missing_sheets_are_empty(tmp_path: Path):
    path = write_snapshot(tmp_path / "only_products.xlsx", {"Products": [["id", "name", "price", "cost", "stock"]]})
    repo = ExcelSnapshotRepository(path)

    assert repo.list_products() == []
    assert repo.list_sales() == []
    assert repo.list_suppliers() == []


def test_snapshot_missing_header_is_an_error(tmp_path: Path):
    path = write_snapshot(tmp_path / "bad.xlsx", {"products": [["id", "name", "price"]]})
    with pytest.raises(SnapshotError, match="missing column header: cost"):
        ExcelSnapshotRepository(path).list_products()


def test_snapshot_unreadable_file(tmp_path: Path):
    path = tmp_path / "not_a_workbook.xlsx"
    path.write_text("hello", encoding="utf-8")
    with pytest.raises(SnapshotError, match="Cannot open snapshot workbook"):
        ExcelSnapshotRepository(path).list_products()


def test_export_insights_excel_writes_all_sheets(tmp_path: Path):
    repo = ExcelSnapshotRepository(_snapshot(tmp_path))
    svc = InsightService(InsightsConfig())
    sales = repo.list_sales()
    statement = svc.income_statement(sales, repo.list_returns(), repo.list_purchase_orders(), repo.list_expenses())
    daily = svc.daily_report(sales, now=datetime(2024, 6, 15, 20, 0))
    low = svc.check_low_stock(repo.list_products())
    repo.close()

    out = tmp_path / "insights.xlsx"
    ReportingService(InsightsConfig()).export_insights_excel(str(out), statement, daily=daily, low_stock=low)

    wb = load_workbook(out)
    assert wb.sheetnames == ["Summary", "Income Statement", "Top Products", "Low Stock"]
    ws = wb["Income Statement"]
    assert ws["A2"].value == "Revenue"
    assert ws["B2"].value == pytest.approx(750.0)
    assert wb["Top Products"]["B2"].value == "Cola"
    assert wb["Low Stock"]["A2"].value == "1"
    assert wb["Summary"]["B3"].value == "2024-06-15"


def test_cli_prints_summary_and_writes_workbook(tmp_path: Path, capsys):
    snapshot = _snapshot(tmp_path)
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps({"lowStockThreshold": 2}), encoding="utf-8")
    out = tmp_path / "report.xlsx"

    code = main(
        [
            str(snapshot),
            "--config", str(cfg),
            "--out", str(out),
            "--now", "2024-06-15T20:00:00",
            "--logs-dir", str(tmp_path / "logs"),
        ]
    )

    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["daily_report"]["total_transactions"] == 2
    assert summary["low_stock"] == []
    assert summary["segments"] == {"Gold": 1, "Bronze": 1}
    assert summary["income_statement"]["revenue"] == pytest.approx(750.0)
    assert out.exists()


def test_cli_reports_errors_with_exit_code(tmp_path: Path, capsys):
    path = write_snapshot(tmp_path / "bad.xlsx", {"products": [["id"]]})
    cfg = tmp_path / "cfg.json"
    cfg.write_text("{}", encoding="utf-8")

    code = main([str(path), "--logs-dir", str(tmp_path / "logs"), "--config", str(cfg)])
    assert code == 1
    assert "missing column header" in capsys.readouterr().err

    code = main([str(path), "--logs-dir", str(tmp_path / "logs"), "--config", str(tmp_path / "missing.json")])
    assert code == 1
    assert "Cannot read config file" in capsys.readouterr().err


def test_snapshot_offset_timestamps_become_naive_local_time(tmp_path: Path, capsys):
    path = write_snapshot(
        tmp_path / "offset.xlsx",
        {
            "sales": [
                ["id", "sold_at", "total"],
                ["S1", "2024-06-15T10:00:00+00:00", 20.0],
                ["S2", "2024-06-15T11:00:00", 5.0],
            ],
            "returns": [
                ["id", "returned_at", "total"],
                ["R1", "2024-06-15T12:00:00-03:00", 1.0],
            ],
        },
    )
    repo = ExcelSnapshotRepository(path)
    sales = repo.list_sales()
    repo.close()

    expected = datetime(2024, 6, 15, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert sales[0].sold_at == expected
    assert all(s.sold_at.tzinfo is None for s in sales)

    cfg = tmp_path / "cfg.json"
    cfg.write_text("{}", encoding="utf-8")
    code = main([str(path), "--config", str(cfg), "--now", "2024-06-15T18:00:00", "--logs-dir", str(tmp_path / "logs")])
    assert code == 0
    assert json.loads(capsys.readouterr().out)["income_statement"]["revenue"] == pytest.approx(24.0)
