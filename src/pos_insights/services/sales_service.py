from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from pos_insights.config import InsightsConfig
from pos_insights.domain.errors import ValidationError
from pos_insights.domain.models import (
    DailyReport,
    DailySalesPoint,
    PerformanceRow,
    Product,
    Sale,
    TopProduct,
)
from pos_insights.services.inputs import require_collection, require_same_clock
from pos_insights.services.metrics import growth_percentage, safe_div

UNKNOWN = "Unknown"


@dataclass
class _Bucket:
    name: str
    category: str = UNKNOWN
    quantity: int = 0
    revenue: float = 0.0
    previous_revenue: float = 0.0


def _in_last_days(sale: Sale, now: datetime, days: int) -> bool:
    start = now.date() - timedelta(days=days - 1)
    return start <= sale.sold_at.date() <= now.date()


class SalesService:
    def __init__(self, config: InsightsConfig):
        self.config = config

    def top_selling_products(self, sales: Iterable[Sale], limit: Optional[int] = None) -> list[TopProduct]:
        """Products ranked by units sold; ties keep first-seen order."""
        limit = self.config.top_products_limit if limit is None else int(limit)
        if limit < 0:
            raise ValidationError("Limit must be >= 0.")

        buckets: dict[str, _Bucket] = {}
        for s in require_collection("sales", sales, Sale):
            for it in s.items:
                b = buckets.setdefault(it.product_id, _Bucket(name=it.name))
                b.quantity += int(it.quantity)
                b.revenue += it.line_total

        ranked = sorted(buckets.items(), key=lambda kv: kv[1].quantity, reverse=True)
        return [
            TopProduct(product_id=pid, name=b.name, quantity=b.quantity, revenue=b.revenue)
            for pid, b in ranked[:limit]
        ]

    def daily_report(
        self,
        sales: Iterable[Sale],
        now: datetime,
        window_days: int = 1,
        top_n: Optional[int] = None,
    ) -> DailyReport:
        if window_days < 1:
            raise ValidationError("Window must be at least 1 day.")

        window = [s for s in require_collection("sales", sales, Sale) if _in_last_days(s, now, window_days)]
        total = sum(float(s.total) for s in window)
        count = len(window)

        return DailyReport(
            report_date=now.date(),
            total_sales=total,
            total_transactions=count,
            average_transaction=safe_div(total, count),
            top_products=tuple(self.top_selling_products(window, top_n)),
        )

    def daily_sales(self, sales: Iterable[Sale], now: datetime, days: int = 30) -> list[DailySalesPoint]:
        if days < 1:
            raise ValidationError("Days must be >= 1.")

        per_day: dict = {}
        for s in require_collection("sales", sales, Sale):
            if not _in_last_days(s, now, days):
                continue
            day = s.sold_at.date()
            amount, count = per_day.get(day, (0.0, 0))
            per_day[day] = (amount + float(s.total), count + 1)

        return [
            DailySalesPoint(day=day, sales=amount, transactions=count)
            for day, (amount, count) in sorted(per_day.items())
        ]

    # -------- category / product performance --------

    def _periods(self, sales: list[Sale], now: datetime, period_days: int):
        if period_days < 1:
            raise ValidationError("Period must be >= 1 day.")
        require_same_clock("sales.sold_at", (s.sold_at for s in sales), now)
        span = timedelta(days=period_days)
        current = [s for s in sales if now - span < s.sold_at <= now]
        previous = [s for s in sales if now - 2 * span < s.sold_at <= now - span]
        return current, previous

    @staticmethod
    def _rows(buckets: dict[str, _Bucket]) -> list[PerformanceRow]:
        rows = [
            PerformanceRow(
                key=key,
                name=b.name,
                category=b.category,
                revenue=b.revenue,
                quantity=b.quantity,
                previous_revenue=b.previous_revenue,
                growth=growth_percentage(b.revenue, b.previous_revenue),
                is_new=b.previous_revenue == 0 and b.revenue > 0,
            )
            for key, b in buckets.items()
        ]
        rows.sort(key=lambda r: r.revenue, reverse=True)
        return rows

    def category_performance(
        self,
        sales: Iterable[Sale],
        products: Iterable[Product],
        now: datetime,
        period_days: int = 30,
    ) -> list[PerformanceRow]:
        sales = require_collection("sales", sales, Sale)
        catalogue = {p.id: p for p in require_collection("products", products, Product)}
        current, previous = self._periods(sales, now, period_days)

        def category_of(product_id: str) -> str:
            p = catalogue.get(product_id)
            return (p.category if p else None) or UNKNOWN

        buckets: dict[str, _Bucket] = {}
        for p in catalogue.values():
            cat = p.category or UNKNOWN
            buckets.setdefault(cat, _Bucket(name=cat, category=cat))

        for s in current:
            for it in s.items:
                cat = category_of(it.product_id)
                b = buckets.setdefault(cat, _Bucket(name=cat, category=cat))
                b.revenue += it.line_total
                b.quantity += int(it.quantity)
        for s in previous:
            for it in s.items:
                cat = category_of(it.product_id)
                buckets.setdefault(cat, _Bucket(name=cat, category=cat)).previous_revenue += it.line_total

        return self._rows(buckets)

    def product_performance(
        self,
        sales: Iterable[Sale],
        products: Iterable[Product],
        now: datetime,
        period_days: int = 30,
        limit: int = 10,
    ) -> list[PerformanceRow]:
        if limit < 0:
            raise ValidationError("Limit must be >= 0.")
        sales = require_collection("sales", sales, Sale)
        catalogue = {p.id: p for p in require_collection("products", products, Product)}
        current, previous = self._periods(sales, now, period_days)

        def bucket_for(buckets: dict[str, _Bucket], product_id: str, fallback_name: str) -> _Bucket:
            if product_id not in buckets:
                p = catalogue.get(product_id)
                buckets[product_id] = _Bucket(
                    name=p.name if p else fallback_name,
                    category=(p.category if p else None) or UNKNOWN,
                )
            return buckets[product_id]

        buckets: dict[str, _Bucket] = {}
        for s in current:
            for it in s.items:
                b = bucket_for(buckets, it.product_id, it.name)
                b.revenue += it.line_total
                b.quantity += int(it.quantity)
        for s in previous:
            for it in s.items:
                bucket_for(buckets, it.product_id, it.name).previous_revenue += it.line_total

        return self._rows(buckets)[:limit]
