from .models import (
    Customer,
    CustomerTier,
    Expense,
    Product,
    PurchaseOrder,
    PurchaseOrderStatus,
    ReturnRecord,
    Sale,
    SaleItem,
    Supplier,
)
from .errors import AppError, ValidationError, ConfigError, SnapshotError

__all__ = [
    "Customer",
    "CustomerTier",
    "Expense",
    "Product",
    "PurchaseOrder",
    "PurchaseOrderStatus",
    "ReturnRecord",
    "Sale",
    "SaleItem",
    "Supplier",
    "AppError",
    "ValidationError",
    "ConfigError",
    "SnapshotError",
]
