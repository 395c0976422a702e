from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from pos_insights.config import InsightsConfig
from pos_insights.domain.models import (
    DailyReport,
    Expense,
    IncomeStatement,
    IncomeStatementLine,
    LowStockAlert,
    PurchaseOrder,
    ReturnRecord,
    Sale,
)
from pos_insights.services.inputs import require_collection
from pos_insights.services.metrics import progressive_tax, vat_split

log = logging.getLogger(__name__)


class ReportingService:
    def __init__(self, config: InsightsConfig):
        self.config = config

    def income_statement(
        self,
        sales: Iterable[Sale],
        returns: Iterable[ReturnRecord],
        purchase_orders: Iterable[PurchaseOrder],
        expenses: Iterable[Expense],
        other_income: float = 0.0,
    ) -> IncomeStatement:
        """
        revenue     = sum(sales) - sum(returns)
        cogs        = sum(purchase orders)
        gross       = revenue - cogs
        operating   = gross - sum(expenses)
        tax         = progressive_tax(operating + other_income)
        net         = operating + other_income - tax

        Each line also carries its VAT portion at the configured rate; derived
        lines combine the VAT of their components and the tax line carries none.
        """
        sales = require_collection("sales", sales, Sale)
        returns = require_collection("returns", returns, ReturnRecord)
        orders = require_collection("purchase_orders", purchase_orders, PurchaseOrder)
        expenses = require_collection("expenses", expenses, Expense)

        rate = self.config.vat_rate
        other_income = float(other_income or 0)

        revenue = sum(float(s.total) for s in sales) - sum(float(r.total) for r in returns)
        cogs = sum(float(po.total) for po in orders)
        gross = revenue - cogs
        opex = sum(float(e.amount) for e in expenses)
        operating = gross - opex
        taxable = operating + other_income
        tax = progressive_tax(taxable, self.config.tax_brackets)
        net = operating + other_income - tax

        rev_v = vat_split(revenue, rate)
        cogs_v = vat_split(cogs, rate)
        opex_v = vat_split(opex, rate)
        other_v = vat_split(other_income, rate)
        gross_vat = rev_v.vat - cogs_v.vat
        operating_vat = gross_vat - opex_v.vat
        net_vat = operating_vat + other_v.vat

        def line(key: str, label: str, amount: float, vat: float) -> IncomeStatementLine:
            return IncomeStatementLine(key=key, label=label, amount=amount, vat=vat, exclusive=amount - vat)

        lines = (
            line("revenue", "Revenue", revenue, rev_v.vat),
            line("cogs", "Cost of Goods Sold", cogs, cogs_v.vat),
            line("gross_profit", "Gross Profit", gross, gross_vat),
            line("operating_expenses", "Operating Expenses", opex, opex_v.vat),
            line("operating_profit", "Operating Profit", operating, operating_vat),
            line("other_income", "Other Income/Expenses", other_income, other_v.vat),
            line("tax", "Income Tax", tax, 0.0),
            line("net_profit", "Net Profit", net, net_vat),
        )

        return IncomeStatement(
            revenue=revenue,
            cogs=cogs,
            gross_profit=gross,
            operating_expenses=opex,
            operating_profit=operating,
            other_income=other_income,
            taxable_income=taxable,
            tax=tax,
            net_profit=net,
            vat_rate=rate,
            lines=lines,
        )

    def export_insights_excel(
        self,
        path: str,
        statement: IncomeStatement,
        daily: Optional[DailyReport] = None,
        low_stock: Sequence[LowStockAlert] = (),
    ) -> None:
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Summary"
        ws["A1"].font = Font(bold=True, size=14)

        rows = [
            ("Revenue", statement.revenue, "money"),
            ("Gross Profit", statement.gross_profit, "money"),
            ("Operating Profit", statement.operating_profit, "money"),
            ("Net Profit", statement.net_profit, "money"),
        ]
        if daily is not None:
            ws["A3"] = "Report date"
            ws["B3"] = daily.report_date.isoformat()
            rows = [
                ("Sales in window", daily.total_sales, "money"),
                ("Transactions", daily.total_transactions, "int"),
                ("Average transaction", daily.average_transaction, "money"),
            ] + rows

        start_row = 5
        for i, (label, val, kind) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])

        set_widths(ws, {"A": 28, "B": 20})

        # -------- 2) Income Statement --------
        ws2 = wb.create_sheet("Income Statement")
        ws2.append(["Line", "Amount", f"VAT ({statement.vat_rate:.0%})", "VAT Exclusive"])
        bold_row(ws2, 1)
        for out_row, ln in enumerate(statement.lines, start=2):
            ws2.append([ln.label, ln.amount, ln.vat, ln.exclusive])
            for col in "BCD":
                money(ws2[f"{col}{out_row}"])
        ws2.freeze_panes = "A2"
        set_widths(ws2, {"A": 26, "B": 18, "C": 18, "D": 18})
        add_table(ws2, "IncomeStatement", 1, 1, ws2.max_row, 4)

        # -------- 3) Top Products --------
        ws3 = wb.create_sheet("Top Products")
        ws3.append(["Product ID", "Name", "Quantity", "Revenue"])
        bold_row(ws3, 1)
        top = daily.top_products if daily is not None else ()
        for out_row, tp in enumerate(top, start=2):
            ws3.append([tp.product_id, tp.name, int(tp.quantity), float(tp.revenue)])
            money(ws3[f"D{out_row}"])
        set_widths(ws3, {"A": 14, "B": 34, "C": 10, "D": 16})
        if ws3.max_row >= 2:
            add_table(ws3, "TopProducts", 1, 1, ws3.max_row, 4)

        # -------- 4) Low Stock --------
        ws4 = wb.create_sheet("Low Stock")
        ws4.append(["Product ID", "Name", "Stock", "Threshold"])
        bold_row(ws4, 1)
        for a in low_stock:
            ws4.append([a.product_id, a.name, int(a.stock), int(a.threshold)])
        set_widths(ws4, {"A": 14, "B": 34, "C": 10, "D": 10})
        if ws4.max_row >= 2:
            add_table(ws4, "LowStock", 1, 1, ws4.max_row, 4)

        wb.save(path)
        log.info("insights_exported path=%s lines=%s low_stock=%s", path, len(statement.lines), len(low_stock))
