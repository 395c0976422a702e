from __future__ import annotations

from typing import Iterable

from pos_insights.config import InsightsConfig
from pos_insights.domain.models import CategorizedExpense, Expense, ExpenseCategoryTotal
from pos_insights.services.inputs import require_collection
from pos_insights.services.metrics import infer_expense_category


class ExpenseService:
    def __init__(self, config: InsightsConfig):
        self.config = config

    def categorize(self, expense: Expense) -> str:
        # description first; the free-text category is only a fallback source of keywords
        cfg = self.config
        category = infer_expense_category(expense.description, cfg.category_keywords, cfg.default_category)
        if category == cfg.default_category and expense.category:
            category = infer_expense_category(expense.category, cfg.category_keywords, cfg.default_category)
        return category

    def categorize_expenses(self, expenses: Iterable[Expense]) -> list[CategorizedExpense]:
        return [
            CategorizedExpense(
                expense_id=e.id,
                description=e.description or "",
                amount=float(e.amount),
                category=self.categorize(e),
            )
            for e in require_collection("expenses", expenses, Expense)
        ]

    def expense_totals(self, expenses: Iterable[Expense]) -> list[ExpenseCategoryTotal]:
        """Totals per inferred category, largest first."""
        totals: dict[str, tuple[float, int]] = {}
        for row in self.categorize_expenses(expenses):
            amount, count = totals.get(row.category, (0.0, 0))
            totals[row.category] = (amount + row.amount, count + 1)

        out = [ExpenseCategoryTotal(category=k, amount=a, count=n) for k, (a, n) in totals.items()]
        out.sort(key=lambda t: t.amount, reverse=True)
        return out
