"""Entry point the presentation layer calls for every derived report.

Each method takes caller-owned snapshots of the raw collections and returns
fresh view models. Nothing is cached or stored between calls. Empty
collections give empty/zero results; a malformed shape (``None`` where a
collection is expected, wrong element types) raises ``ValidationError``.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from pos_insights.config import InsightsConfig
from pos_insights.domain.models import (
    CategorizedExpense,
    Customer,
    CustomerSegment,
    DailyReport,
    DailySalesPoint,
    DiscountSuggestion,
    Expense,
    ExpenseCategoryTotal,
    IncomeStatement,
    InsightsOverview,
    LowStockAlert,
    PerformanceRow,
    Product,
    PurchaseOrder,
    ReorderSuggestion,
    ReturnRecord,
    Sale,
    SpendingTrendPoint,
    Supplier,
    SupplierPerformance,
    SupplierSpending,
    TopProduct,
)
from pos_insights.repositories.contracts import SnapshotSource
from pos_insights.services.customer_service import CustomerService
from pos_insights.services.expense_service import ExpenseService
from pos_insights.services.inputs import require_collection, require_same_clock
from pos_insights.services.inventory_service import InventoryService
from pos_insights.services.purchase_service import PurchaseService
from pos_insights.services.reporting_service import ReportingService
from pos_insights.services.sales_service import SalesService

log = logging.getLogger("pos_insights.insights")


class InsightService:
    def __init__(
        self,
        config: InsightsConfig | None = None,
        inventory: InventoryService | None = None,
        sales: SalesService | None = None,
        customers: CustomerService | None = None,
        expenses: ExpenseService | None = None,
        purchases: PurchaseService | None = None,
        reporting: ReportingService | None = None,
    ):
        self.config = config or InsightsConfig()
        self.inventory = inventory or InventoryService(self.config)
        self.sales = sales or SalesService(self.config)
        self.customers = customers or CustomerService(self.config)
        self.expenses = expenses or ExpenseService(self.config)
        self.purchases = purchases or PurchaseService(self.config)
        self.reporting = reporting or ReportingService(self.config)

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        return now if now is not None else datetime.now()

    # -------- inventory --------

    def check_low_stock(self, products: Iterable[Product], threshold: Optional[int] = None) -> list[LowStockAlert]:
        alerts = self.inventory.check_low_stock(products, threshold)
        log.info("report_built kind=low_stock rows=%s threshold=%s", len(alerts), threshold)
        return alerts

    def suggest_reorders(
        self,
        products: Iterable[Product],
        recent_sales: Iterable[Sale] = (),
        threshold: Optional[int] = None,
    ) -> list[ReorderSuggestion]:
        rows = self.inventory.suggest_reorders(products, recent_sales, threshold)
        log.info("report_built kind=reorders rows=%s", len(rows))
        return rows

    def suggest_discounts(self, products: Iterable[Product]) -> list[DiscountSuggestion]:
        rows = self.inventory.suggest_discounts(products)
        log.info("report_built kind=discounts rows=%s", len(rows))
        return rows

    # -------- sales --------

    def daily_report(
        self,
        sales: Iterable[Sale],
        now: Optional[datetime] = None,
        window_days: int = 1,
        top_n: Optional[int] = None,
    ) -> DailyReport:
        report = self.sales.daily_report(sales, self._now(now), window_days=window_days, top_n=top_n)
        log.info(
            "report_built kind=daily_report transactions=%s total=%.2f window_days=%s",
            report.total_transactions,
            report.total_sales,
            window_days,
        )
        return report

    def top_selling_products(self, sales: Iterable[Sale], limit: Optional[int] = None) -> list[TopProduct]:
        return self.sales.top_selling_products(sales, limit)

    def daily_sales(self, sales: Iterable[Sale], now: Optional[datetime] = None, days: int = 30) -> list[DailySalesPoint]:
        return self.sales.daily_sales(sales, self._now(now), days=days)

    def category_performance(
        self,
        sales: Iterable[Sale],
        products: Iterable[Product],
        now: Optional[datetime] = None,
        period_days: int = 30,
    ) -> list[PerformanceRow]:
        rows = self.sales.category_performance(sales, products, self._now(now), period_days=period_days)
        log.info("report_built kind=category_performance rows=%s", len(rows))
        return rows

    def product_performance(
        self,
        sales: Iterable[Sale],
        products: Iterable[Product],
        now: Optional[datetime] = None,
        period_days: int = 30,
        limit: int = 10,
    ) -> list[PerformanceRow]:
        rows = self.sales.product_performance(sales, products, self._now(now), period_days=period_days, limit=limit)
        log.info("report_built kind=product_performance rows=%s", len(rows))
        return rows

    # -------- customers / expenses --------

    def segment_customers(self, customers: Iterable[Customer]) -> list[CustomerSegment]:
        rows = self.customers.segment_customers(customers)
        log.info("report_built kind=segments rows=%s", len(rows))
        return rows

    def calculate_loyalty_points(self, transaction_amount: float) -> int:
        return self.customers.loyalty_points_for(transaction_amount)

    def categorize_expenses(self, expenses: Iterable[Expense]) -> list[CategorizedExpense]:
        rows = self.expenses.categorize_expenses(expenses)
        log.info("report_built kind=expense_categories rows=%s", len(rows))
        return rows

    def expense_totals(self, expenses: Iterable[Expense]) -> list[ExpenseCategoryTotal]:
        return self.expenses.expense_totals(expenses)

    # -------- suppliers --------

    def supplier_performance(
        self, suppliers: Iterable[Supplier], purchase_orders: Iterable[PurchaseOrder]
    ) -> list[SupplierPerformance]:
        rows = self.purchases.supplier_performance(suppliers, purchase_orders)
        log.info("report_built kind=supplier_performance rows=%s", len(rows))
        return rows

    def supplier_spending(
        self, suppliers: Iterable[Supplier], purchase_orders: Iterable[PurchaseOrder]
    ) -> list[SupplierSpending]:
        return self.purchases.supplier_spending(suppliers, purchase_orders)

    def spending_trend(self, purchase_orders: Iterable[PurchaseOrder]) -> list[SpendingTrendPoint]:
        return self.purchases.spending_trend(purchase_orders)

    # -------- financials --------

    def income_statement(
        self,
        sales: Iterable[Sale],
        returns: Iterable[ReturnRecord],
        purchase_orders: Iterable[PurchaseOrder],
        expenses: Iterable[Expense],
        other_income: float = 0.0,
    ) -> IncomeStatement:
        statement = self.reporting.income_statement(sales, returns, purchase_orders, expenses, other_income)
        log.info(
            "report_built kind=income_statement revenue=%.2f operating=%.2f tax=%.2f net=%.2f",
            statement.revenue,
            statement.operating_profit,
            statement.tax,
            statement.net_profit,
        )
        return statement

    def overview(
        self,
        products: Iterable[Product],
        sales: Iterable[Sale],
        customers: Iterable[Customer],
        expenses: Iterable[Expense],
        suppliers: Iterable[Supplier],
        purchase_orders: Iterable[PurchaseOrder],
        now: Optional[datetime] = None,
        window_days: int = 1,
    ) -> InsightsOverview:
        now = self._now(now)
        products = require_collection("products", products, Product)
        sales = require_collection("sales", sales, Sale)
        orders = require_collection("purchase_orders", purchase_orders, PurchaseOrder)
        require_same_clock("sales.sold_at", (s.sold_at for s in sales), now)

        lookback = now - timedelta(days=self.config.reorder_lookback_days)
        recent = [s for s in sales if lookback < s.sold_at <= now]

        return InsightsOverview(
            generated_at=now,
            low_stock=tuple(self.check_low_stock(products)),
            reorders=tuple(self.suggest_reorders(products, recent)),
            discounts=tuple(self.suggest_discounts(products)),
            daily_report=self.daily_report(sales, now, window_days=window_days),
            segments=tuple(self.segment_customers(customers)),
            expenses=tuple(self.categorize_expenses(expenses)),
            suppliers=tuple(self.supplier_performance(suppliers, orders)),
        )

    def overview_from(
        self, source: SnapshotSource, now: Optional[datetime] = None, window_days: int = 1
    ) -> InsightsOverview:
        return self.overview(
            source.list_products(),
            source.list_sales(),
            source.list_customers(),
            source.list_expenses(),
            source.list_suppliers(),
            source.list_purchase_orders(),
            now=now,
            window_days=window_days,
        )
