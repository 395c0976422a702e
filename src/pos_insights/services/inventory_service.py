from __future__ import annotations

from typing import Iterable, Optional

from pos_insights.config import InsightsConfig
from pos_insights.domain.models import (
    DiscountSuggestion,
    LowStockAlert,
    Product,
    ReorderSuggestion,
    Sale,
)
from pos_insights.services.inputs import require_collection
from pos_insights.services.metrics import (
    discount_percentage,
    is_low_stock,
    low_stock_threshold_for,
    reorder_quantity,
)


class InventoryService:
    def __init__(self, config: InsightsConfig):
        self.config = config

    def _threshold(self, product: Product, override: Optional[int]) -> int:
        if override is not None:
            return int(override)
        return low_stock_threshold_for(product, self.config.low_stock_threshold)

    def check_low_stock(self, products: Iterable[Product], threshold: Optional[int] = None) -> list[LowStockAlert]:
        """
        An explicit ``threshold`` applies to every product; otherwise each
        product's reorder level is used, falling back to the configured default.
        """
        alerts = []
        for p in require_collection("products", products, Product):
            limit = self._threshold(p, threshold)
            if is_low_stock(p, limit):
                alerts.append(LowStockAlert(product_id=p.id, name=p.name, stock=int(p.stock), threshold=limit))
        return alerts

    def suggest_reorders(
        self,
        products: Iterable[Product],
        recent_sales: Iterable[Sale] = (),
        threshold: Optional[int] = None,
    ) -> list[ReorderSuggestion]:
        products = require_collection("products", products, Product)
        recent_sales = require_collection("recent_sales", recent_sales, Sale)

        out = []
        for p in products:
            if not is_low_stock(p, self._threshold(p, threshold)):
                continue
            qty = reorder_quantity(p, recent_sales, self.config)
            if qty <= 0:
                continue
            out.append(
                ReorderSuggestion(
                    product_id=p.id,
                    name=p.name,
                    current_stock=int(p.stock),
                    suggested_quantity=qty,
                )
            )
        return out

    def suggest_discounts(self, products: Iterable[Product]) -> list[DiscountSuggestion]:
        out = []
        for p in require_collection("products", products, Product):
            pct = discount_percentage(p, self.config.discount_tiers)
            if pct > 0:
                out.append(DiscountSuggestion(product_id=p.id, name=p.name, stock=int(p.stock), discount_percent=pct))
        return out
