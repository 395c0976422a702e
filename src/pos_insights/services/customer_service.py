from __future__ import annotations

from collections import Counter
from typing import Iterable

from pos_insights.config import InsightsConfig
from pos_insights.domain.models import Customer, CustomerSegment, CustomerTier
from pos_insights.services.inputs import require_collection
from pos_insights.services.metrics import customer_tier, loyalty_points


class CustomerService:
    def __init__(self, config: InsightsConfig):
        self.config = config

    def segment_customers(self, customers: Iterable[Customer]) -> list[CustomerSegment]:
        thresholds = self.config.segment_thresholds
        return [
            CustomerSegment(
                customer_id=c.id,
                name=c.name,
                total_spent=float(c.total_spent or 0),
                loyalty_points=int(c.loyalty_points or 0),
                tier=customer_tier(c.total_spent, c.loyalty_points, thresholds),
            )
            for c in require_collection("customers", customers, Customer)
        ]

    def segment_distribution(self, customers: Iterable[Customer]) -> dict[CustomerTier, int]:
        counts = Counter(s.tier for s in self.segment_customers(customers))
        return {tier: counts.get(tier, 0) for tier in (CustomerTier.GOLD, CustomerTier.SILVER, CustomerTier.BRONZE)}

    def loyalty_points_for(self, transaction_amount: float) -> int:
        return loyalty_points(transaction_amount, self.config.loyalty_rate)
