from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pos_insights.config import InsightsConfig, load_config
from pos_insights.repositories.excel_repo import ExcelSnapshotRepository
from pos_insights.services.customer_service import CustomerService
from pos_insights.services.expense_service import ExpenseService
from pos_insights.services.insight_service import InsightService
from pos_insights.services.inventory_service import InventoryService
from pos_insights.services.purchase_service import PurchaseService
from pos_insights.services.reporting_service import ReportingService
from pos_insights.services.sales_service import SalesService


@dataclass(frozen=True)
class AppContainer:
    config: InsightsConfig
    snapshot: ExcelSnapshotRepository
    inventory: InventoryService
    sales: SalesService
    customers: CustomerService
    expenses: ExpenseService
    purchases: PurchaseService
    reporting: ReportingService
    insights: InsightService


def build_container(snapshot_path: Path | str, config_path: Path | str | None = None) -> AppContainer:
    config = load_config(config_path) if config_path else InsightsConfig()
    snapshot = ExcelSnapshotRepository(snapshot_path)

    inventory = InventoryService(config)
    sales = SalesService(config)
    customers = CustomerService(config)
    expenses = ExpenseService(config)
    purchases = PurchaseService(config)
    reporting = ReportingService(config)
    insights = InsightService(
        config,
        inventory=inventory,
        sales=sales,
        customers=customers,
        expenses=expenses,
        purchases=purchases,
        reporting=reporting,
    )

    return AppContainer(
        config=config,
        snapshot=snapshot,
        inventory=inventory,
        sales=sales,
        customers=customers,
        expenses=expenses,
        purchases=purchases,
        reporting=reporting,
        insights=insights,
    )
