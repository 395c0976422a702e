from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import TypeVar

from pos_insights.domain.errors import ValidationError
from pos_insights.domain.models import Expense, Product, PurchaseOrder, ReturnRecord, Sale, SaleItem

T = TypeVar("T")

# fields the aggregators do arithmetic on
_NUMERIC_FIELDS = {
    Product: ("stock",),
    Sale: ("total",),
    SaleItem: ("quantity", "unit_price"),
    ReturnRecord: ("total",),
    Expense: ("amount",),
    PurchaseOrder: ("total",),
}
_TIMESTAMP_FIELDS = {Sale: "sold_at", ReturnRecord: "returned_at"}


def _is_number(v: object) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _check_row(label: str, row: object) -> None:
    for field in _NUMERIC_FIELDS.get(type(row), ()):
        v = getattr(row, field)
        if not _is_number(v):
            raise ValidationError(f"{label}.{field} must be a number, got {type(v).__name__}.")

    stamp = _TIMESTAMP_FIELDS.get(type(row))
    if stamp is not None and not isinstance(getattr(row, stamp), datetime):
        raise ValidationError(f"{label}.{stamp} must be a datetime, got {type(getattr(row, stamp)).__name__}.")

    if isinstance(row, Sale):
        if not isinstance(row.items, (tuple, list)):
            raise ValidationError(f"{label}.items must be a sequence of SaleItem, got {type(row.items).__name__}.")
        for i, item in enumerate(row.items):
            if not isinstance(item, SaleItem):
                raise ValidationError(f"{label}.items[{i}] must be SaleItem, got {type(item).__name__}.")
            _check_row(f"{label}.items[{i}]", item)


def require_collection(name: str, value: object, item_type: type[T]) -> list[T]:
    """Snapshot ``value`` into a list, failing fast on a malformed shape.

    None, strings, bytes and mappings are rejected even though some of them
    are iterable; so is any element that is not an ``item_type``. Elements
    are also checked for missing or non-numeric amounts, quantities and
    stock levels, non-datetime sale/return timestamps and malformed sale lines.
    """
    if value is None:
        raise ValidationError(f"{name} is required (got None).")
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        raise ValidationError(f"{name} must be a collection of {item_type.__name__}, got {type(value).__name__}.")

    rows = list(value)
    for idx, row in enumerate(rows):
        if not isinstance(row, item_type):
            raise ValidationError(
                f"{name}[{idx}] must be {item_type.__name__}, got {type(row).__name__}."
            )
        _check_row(f"{name}[{idx}]", row)
    return rows


def require_same_clock(name: str, moments: Iterable[datetime], now: datetime) -> None:
    """Naive and timezone-aware datetimes cannot be compared; reject a mix."""
    aware = now.tzinfo is not None
    for idx, moment in enumerate(moments):
        if (moment.tzinfo is not None) != aware:
            raise ValidationError(
                f"{name}[{idx}] and now must both be naive or both timezone-aware."
            )


def as_day(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
