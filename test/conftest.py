import sys
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

NOW = datetime(2024, 6, 15, 18, 0, 0)


def make_product(pid: str, stock: int, name: str | None = None, category: str | None = None, reorder_level=None):
    from pos_insights.domain.models import Product

    return Product(
        id=pid,
        name=name or f"Product {pid}",
        price=10.0,
        cost=6.0,
        stock=stock,
        reorder_level=reorder_level,
        category=category,
    )


def make_sale(sid: str, total: float, sold_at: datetime = NOW, items=()):
    """items: [(product_id, qty, unit_price)]"""
    from pos_insights.domain.models import Sale, SaleItem

    lines = tuple(SaleItem(product_id=p, name=f"Product {p}", quantity=q, unit_price=u) for p, q, u in items)
    return Sale(id=sid, sold_at=sold_at, total=total, items=lines)


def write_snapshot(path: Path, sheets: dict[str, list[list]]) -> Path:
    from openpyxl import Workbook

    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    wb.save(path)
    return path
