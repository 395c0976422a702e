from __future__ import annotations

from typing import Protocol

from pos_insights.domain.models import (
    Customer,
    Expense,
    Product,
    PurchaseOrder,
    ReturnRecord,
    Sale,
    Supplier,
)


class SnapshotSource(Protocol):
    """Read-only source of the raw collections the insight reports consume."""

    def list_products(self) -> list[Product]: ...
    def list_sales(self) -> list[Sale]: ...
    def list_returns(self) -> list[ReturnRecord]: ...
    def list_customers(self) -> list[Customer]: ...
    def list_expenses(self) -> list[Expense]: ...
    def list_suppliers(self) -> list[Supplier]: ...
    def list_purchase_orders(self) -> list[PurchaseOrder]: ...
