from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class PurchaseOrderStatus(str, Enum):
    DRAFT = "draft"
    ORDERED = "ordered"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class CustomerTier(str, Enum):
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {CustomerTier.BRONZE: 0, CustomerTier.SILVER: 1, CustomerTier.GOLD: 2}


# -------- inputs --------

@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: float
    cost: float
    stock: int
    reorder_level: Optional[int] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class SaleItem:
    product_id: str
    name: str
    quantity: int
    unit_price: float

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class Sale:
    id: str
    sold_at: datetime
    total: float
    items: tuple[SaleItem, ...] = ()
    payment_method: Optional[str] = None
    status: str = "completed"
    customer_id: Optional[str] = None


@dataclass(frozen=True)
class ReturnRecord:
    id: str
    returned_at: datetime
    total: float
    status: str = "completed"


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    loyalty_points: int = 0
    total_spent: float = 0.0


@dataclass(frozen=True)
class Expense:
    id: str
    spent_on: date
    description: str
    amount: float
    category: Optional[str] = None


@dataclass(frozen=True)
class Supplier:
    id: str
    name: str
    contact: Optional[str] = None
    status: str = "active"


@dataclass(frozen=True)
class PurchaseOrder:
    id: str
    supplier_id: str
    total: float
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    ordered_on: Optional[date] = None
    expected_delivery: Optional[date] = None
    delivered_on: Optional[date] = None


# -------- derived view models --------

@dataclass(frozen=True)
class LowStockAlert:
    product_id: str
    name: str
    stock: int
    threshold: int


@dataclass(frozen=True)
class ReorderSuggestion:
    product_id: str
    name: str
    current_stock: int
    suggested_quantity: int


@dataclass(frozen=True)
class DiscountSuggestion:
    product_id: str
    name: str
    stock: int
    discount_percent: int


@dataclass(frozen=True)
class TopProduct:
    product_id: str
    name: str
    quantity: int
    revenue: float


@dataclass(frozen=True)
class DailyReport:
    report_date: date
    total_sales: float
    total_transactions: int
    average_transaction: float
    top_products: tuple[TopProduct, ...] = ()


@dataclass(frozen=True)
class DailySalesPoint:
    day: date
    sales: float
    transactions: int


@dataclass(frozen=True)
class CustomerSegment:
    customer_id: str
    name: str
    total_spent: float
    loyalty_points: int
    tier: CustomerTier


@dataclass(frozen=True)
class CategorizedExpense:
    expense_id: str
    description: str
    amount: float
    category: str


@dataclass(frozen=True)
class ExpenseCategoryTotal:
    category: str
    amount: float
    count: int


@dataclass(frozen=True)
class SupplierPerformance:
    supplier_id: str
    name: str
    total_orders: int
    on_time_orders: int
    on_time_delivery_rate: float
    average_order_value: float
    total_spent: float


@dataclass(frozen=True)
class SupplierSpending:
    supplier_id: Optional[str]
    name: str
    amount: float
    orders: int
    percentage: float


@dataclass(frozen=True)
class SpendingTrendPoint:
    day: date
    amount: float


@dataclass(frozen=True)
class PerformanceRow:
    key: str
    name: str
    category: str
    revenue: float
    quantity: int
    previous_revenue: float
    growth: float
    is_new: bool


@dataclass(frozen=True)
class VatSplit:
    inclusive: float
    vat: float
    exclusive: float


@dataclass(frozen=True)
class IncomeStatementLine:
    key: str
    label: str
    amount: float
    vat: float
    exclusive: float


@dataclass(frozen=True)
class IncomeStatement:
    revenue: float
    cogs: float
    gross_profit: float
    operating_expenses: float
    operating_profit: float
    other_income: float
    taxable_income: float
    tax: float
    net_profit: float
    vat_rate: float
    lines: tuple[IncomeStatementLine, ...] = ()

    def line(self, key: str) -> IncomeStatementLine:
        for ln in self.lines:
            if ln.key == key:
                return ln
        raise KeyError(key)


@dataclass(frozen=True)
class InsightsOverview:
    generated_at: datetime
    low_stock: tuple[LowStockAlert, ...]
    reorders: tuple[ReorderSuggestion, ...]
    discounts: tuple[DiscountSuggestion, ...]
    daily_report: DailyReport
    segments: tuple[CustomerSegment, ...]
    expenses: tuple[CategorizedExpense, ...]
    suppliers: tuple[SupplierPerformance, ...]
