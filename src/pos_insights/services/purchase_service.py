from __future__ import annotations

from typing import Iterable

from pos_insights.config import InsightsConfig
from pos_insights.domain.models import (
    PurchaseOrder,
    SpendingTrendPoint,
    Supplier,
    SupplierPerformance,
    SupplierSpending,
)
from pos_insights.services.inputs import as_day, require_collection
from pos_insights.services.metrics import safe_div

UNKNOWN_SUPPLIER = "Unknown Supplier"


class PurchaseService:
    def __init__(self, config: InsightsConfig):
        self.config = config

    def supplier_performance(
        self, suppliers: Iterable[Supplier], purchase_orders: Iterable[PurchaseOrder]
    ) -> list[SupplierPerformance]:
        """
        on_time_delivery_rate = on-time orders / orders with both delivery dates, in percent.
        Orders missing either date count toward totals but not toward the rate.
        """
        suppliers = require_collection("suppliers", suppliers, Supplier)
        orders = require_collection("purchase_orders", purchase_orders, PurchaseOrder)

        out = []
        for sup in suppliers:
            own = [po for po in orders if po.supplier_id == sup.id]
            dated = [po for po in own if po.delivered_on is not None and po.expected_delivery is not None]
            on_time = sum(1 for po in dated if as_day(po.delivered_on) <= as_day(po.expected_delivery))
            spent = sum(float(po.total) for po in own)

            out.append(
                SupplierPerformance(
                    supplier_id=sup.id,
                    name=sup.name,
                    total_orders=len(own),
                    on_time_orders=on_time,
                    on_time_delivery_rate=safe_div(on_time, len(dated)) * 100,
                    average_order_value=safe_div(spent, len(own)),
                    total_spent=spent,
                )
            )
        return out

    def supplier_spending(
        self, suppliers: Iterable[Supplier], purchase_orders: Iterable[PurchaseOrder]
    ) -> list[SupplierSpending]:
        names = {s.id: s.name for s in require_collection("suppliers", suppliers, Supplier)}

        grouped: dict = {}
        for po in require_collection("purchase_orders", purchase_orders, PurchaseOrder):
            key = po.supplier_id if po.supplier_id in names else None
            amount, count = grouped.get(key, (0.0, 0))
            grouped[key] = (amount + float(po.total), count + 1)

        overall = sum(amount for amount, _ in grouped.values())
        out = [
            SupplierSpending(
                supplier_id=key,
                name=names.get(key, UNKNOWN_SUPPLIER) if key is not None else UNKNOWN_SUPPLIER,
                amount=amount,
                orders=count,
                percentage=safe_div(amount, overall) * 100,
            )
            for key, (amount, count) in grouped.items()
        ]
        out.sort(key=lambda r: r.amount, reverse=True)
        return out

    def spending_trend(self, purchase_orders: Iterable[PurchaseOrder]) -> list[SpendingTrendPoint]:
        per_day: dict = {}
        for po in require_collection("purchase_orders", purchase_orders, PurchaseOrder):
            if po.ordered_on is None:
                continue
            day = as_day(po.ordered_on)
            per_day[day] = per_day.get(day, 0.0) + float(po.total)
        return [SpendingTrendPoint(day=d, amount=a) for d, a in sorted(per_day.items())]
