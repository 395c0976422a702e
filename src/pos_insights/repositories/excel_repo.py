from __future__ import annotations

import logging
import zipfile
from collections import defaultdict
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Iterator, Optional, TypeVar

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from pos_insights.domain.errors import SnapshotError
from pos_insights.domain.models import (
    Customer,
    Expense,
    Product,
    PurchaseOrder,
    PurchaseOrderStatus,
    ReturnRecord,
    Sale,
    SaleItem,
    Supplier,
)

log = logging.getLogger(__name__)

T = TypeVar("T")


def _text(v) -> Optional[str]:
    if v is None:
        return None
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    s = str(v).strip()
    return s or None


def _required_text(v) -> str:
    s = _text(v)
    if s is None:
        raise ValueError("empty value")
    return s


def _number(v, default: Optional[float] = None) -> float:
    if v is None or (isinstance(v, str) and not v.strip()):
        if default is None:
            raise ValueError("empty number")
        return default
    return float(v)


def _integer(v, default: Optional[int] = None) -> int:
    return int(_number(v, None if default is None else float(default)))


def _timestamp(v) -> datetime:
    if isinstance(v, datetime):
        ts = v
    elif isinstance(v, date):
        return datetime.combine(v, datetime.min.time())
    else:
        ts = datetime.fromisoformat(_required_text(v))
    # offsets are folded into naive local time
    if ts.tzinfo is not None:
        ts = ts.astimezone().replace(tzinfo=None)
    return ts


def _day(v) -> Optional[date]:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    return date.fromisoformat(_required_text(v)[:10])


def _required_day(v) -> date:
    d = _day(v)
    if d is None:
        raise ValueError("empty date")
    return d


class ExcelSnapshotRepository:
    """
    Loads a back-office snapshot from one workbook, one sheet per collection:
      products | sales | sale_items | returns | customers | expenses | suppliers | purchase_orders
    Row 1 holds headers (case-insensitive). A missing sheet is an empty
    collection; rows that cannot be parsed are skipped and logged.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._wb = None
        self.skipped: dict[str, int] = defaultdict(int)

    def _workbook(self):
        if self._wb is None:
            try:
                self._wb = load_workbook(self.path, read_only=True, data_only=True)
            except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as e:
                raise SnapshotError(f"Cannot open snapshot workbook {self.path}: {e}") from e
        return self._wb

    def _rows(self, sheet: str, required: list[str]) -> Iterator[tuple[int, dict]]:
        wb = self._workbook()
        names = {n.strip().lower(): n for n in wb.sheetnames}
        if sheet not in names:
            return

        ws = wb[names[sheet]]
        rows = ws.iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return

        headers = {}
        for col, v in enumerate(header_row):
            if isinstance(v, str) and v.strip():
                headers[v.strip().lower()] = col

        for r in required:
            if r not in headers:
                raise SnapshotError(f"Sheet '{sheet}' is missing column header: {r}")

        for row_no, values in enumerate(rows, start=2):
            if values is None or all(v is None for v in values):
                continue
            yield row_no, {h: (values[c] if c < len(values) else None) for h, c in headers.items()}

    def _parse(self, sheet: str, required: list[str], build: Callable[[dict], T]) -> list[T]:
        out = []
        for row_no, row in self._rows(sheet, required):
            try:
                out.append(build(row))
            except (TypeError, ValueError) as e:
                log.warning("snapshot_row_skipped sheet=%s row=%s error=%s", sheet, row_no, e)
                self.skipped[sheet] += 1
        return out

    def list_products(self) -> list[Product]:
        return self._parse(
            "products",
            ["id", "name", "price", "cost", "stock"],
            lambda r: Product(
                id=_required_text(r["id"]),
                name=_required_text(r["name"]),
                price=_number(r["price"]),
                cost=_number(r["cost"]),
                stock=_integer(r["stock"]),
                reorder_level=None if r.get("reorder_level") is None else _integer(r["reorder_level"]),
                category=_text(r.get("category")),
            ),
        )

    def _sale_items(self) -> dict[str, list[SaleItem]]:
        items: dict[str, list[SaleItem]] = defaultdict(list)
        rows = self._parse(
            "sale_items",
            ["sale_id", "product_id", "quantity", "unit_price"],
            lambda r: (
                _required_text(r["sale_id"]),
                SaleItem(
                    product_id=_required_text(r["product_id"]),
                    name=_text(r.get("name")) or _required_text(r["product_id"]),
                    quantity=_integer(r["quantity"]),
                    unit_price=_number(r["unit_price"]),
                ),
            ),
        )
        for sale_id, item in rows:
            items[sale_id].append(item)
        return items

    def list_sales(self) -> list[Sale]:
        items = self._sale_items()

        def build(r: dict) -> Sale:
            sale_id = _required_text(r["id"])
            lines = tuple(items.get(sale_id, ()))
            return Sale(
                id=sale_id,
                sold_at=_timestamp(r["sold_at"]),
                total=_number(r.get("total"), sum(it.line_total for it in lines)),
                items=lines,
                payment_method=_text(r.get("payment_method")),
                status=_text(r.get("status")) or "completed",
                customer_id=_text(r.get("customer_id")),
            )

        return self._parse("sales", ["id", "sold_at"], build)

    def list_returns(self) -> list[ReturnRecord]:
        return self._parse(
            "returns",
            ["id", "returned_at", "total"],
            lambda r: ReturnRecord(
                id=_required_text(r["id"]),
                returned_at=_timestamp(r["returned_at"]),
                total=_number(r["total"]),
                status=_text(r.get("status")) or "completed",
            ),
        )

    def list_customers(self) -> list[Customer]:
        return self._parse(
            "customers",
            ["id", "name"],
            lambda r: Customer(
                id=_required_text(r["id"]),
                name=_required_text(r["name"]),
                email=_text(r.get("email")),
                phone=_text(r.get("phone")),
                loyalty_points=_integer(r.get("loyalty_points"), 0),
                total_spent=_number(r.get("total_spent"), 0.0),
            ),
        )

    def list_expenses(self) -> list[Expense]:
        return self._parse(
            "expenses",
            ["id", "spent_on", "amount"],
            lambda r: Expense(
                id=_required_text(r["id"]),
                spent_on=_required_day(r["spent_on"]),
                description=_text(r.get("description")) or "",
                amount=_number(r["amount"]),
                category=_text(r.get("category")),
            ),
        )

    def list_suppliers(self) -> list[Supplier]:
        return self._parse(
            "suppliers",
            ["id", "name"],
            lambda r: Supplier(
                id=_required_text(r["id"]),
                name=_required_text(r["name"]),
                contact=_text(r.get("contact")),
                status=_text(r.get("status")) or "active",
            ),
        )

    def list_purchase_orders(self) -> list[PurchaseOrder]:
        return self._parse(
            "purchase_orders",
            ["id", "supplier_id", "total"],
            lambda r: PurchaseOrder(
                id=_required_text(r["id"]),
                supplier_id=_required_text(r["supplier_id"]),
                total=_number(r["total"]),
                status=PurchaseOrderStatus((_text(r.get("status")) or "draft").lower()),
                ordered_on=_day(r.get("ordered_on")),
                expected_delivery=_day(r.get("expected_delivery")),
                delivered_on=_day(r.get("delivered_on")),
            ),
        )

    def close(self) -> None:
        if self._wb is not None:
            self._wb.close()
            self._wb = None
