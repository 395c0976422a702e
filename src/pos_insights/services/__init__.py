from .customer_service import CustomerService
from .expense_service import ExpenseService
from .insight_service import InsightService
from .inventory_service import InventoryService
from .purchase_service import PurchaseService
from .reporting_service import ReportingService
from .sales_service import SalesService

__all__ = [
    "CustomerService",
    "ExpenseService",
    "InsightService",
    "InventoryService",
    "PurchaseService",
    "ReportingService",
    "SalesService",
]
