"""Single-value business metrics.

Every function here is pure: the result depends only on the arguments, and
none of them mutates its inputs.
"""
from __future__ import annotations

import math
from typing import Iterable, Sequence

from pos_insights.config import (
    CategoryRule,
    DiscountTier,
    InsightsConfig,
    SegmentThresholds,
    TaxBracket,
)
from pos_insights.domain.errors import ValidationError
from pos_insights.domain.models import CustomerTier, Product, Sale, VatSplit


def safe_div(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def is_low_stock(product: Product, threshold: int) -> bool:
    return product.stock <= threshold


def low_stock_threshold_for(product: Product, default: int) -> int:
    if product.reorder_level is None:
        return default
    return int(product.reorder_level)


def units_sold(product_id: str, sales: Iterable[Sale]) -> int:
    return sum(it.quantity for s in sales for it in s.items if it.product_id == product_id)


def reorder_quantity(product: Product, recent_sales: Sequence[Sale], config: InsightsConfig) -> int:
    """
    target = max(reorder_target_stock, ceil(avg_daily_demand * reorder_cover_days))
    qty    = max(0, target - stock), raised to min_reorder_quantity when positive
    """
    avg_daily = safe_div(units_sold(product.id, recent_sales), config.reorder_lookback_days)
    target = max(config.reorder_target_stock, math.ceil(avg_daily * config.reorder_cover_days))
    qty = max(0, target - int(product.stock))
    if qty > 0:
        qty = max(qty, config.min_reorder_quantity)
    return qty


def discount_percentage(product: Product, tiers: Sequence[DiscountTier]) -> int:
    for tier in tiers:
        if product.stock < tier.below:
            return min(100, max(0, int(tier.percent)))
    return 0


def infer_expense_category(text: str | None, rules: Sequence[CategoryRule], default: str = "Other") -> str:
    haystack = (text or "").lower()
    for rule in rules:
        if rule.keyword.lower() in haystack:
            return rule.category
    return default


def customer_tier(total_spent: float, loyalty_points: int, thresholds: SegmentThresholds) -> CustomerTier:
    spent = float(total_spent or 0)
    points = int(loyalty_points or 0)
    if spent > thresholds.gold.spend or points > thresholds.gold.points:
        return CustomerTier.GOLD
    if spent > thresholds.silver.spend or points > thresholds.silver.points:
        return CustomerTier.SILVER
    return CustomerTier.BRONZE


def loyalty_points(amount: float, rate: float = 0.01) -> int:
    if rate < 0:
        raise ValidationError("Loyalty rate must be >= 0.")
    return max(0, math.floor(float(amount) * rate))


def growth_percentage(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def vat_split(amount: float, rate: float) -> VatSplit:
    if rate < 0:
        raise ValidationError("VAT rate must be >= 0.")
    vat = amount * rate / (1 + rate)
    return VatSplit(inclusive=amount, vat=vat, exclusive=amount - vat)


def progressive_tax(taxable_income: float, brackets: Sequence[TaxBracket]) -> float:
    if taxable_income <= 0:
        return 0.0

    tax = 0.0
    lower = 0.0
    for b in brackets:
        upper = taxable_income if b.up_to is None else min(taxable_income, b.up_to)
        if upper > lower:
            tax += (upper - lower) * b.rate
        if b.up_to is None or taxable_income <= b.up_to:
            break
        lower = b.up_to
    return tax
