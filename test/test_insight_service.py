from datetime import date, timedelta, timezone

import pytest

from conftest import NOW, make_product, make_sale

from pos_insights.config import InsightsConfig
from pos_insights.domain.errors import ValidationError
from pos_insights.domain.models import Customer, CustomerTier, Expense, PurchaseOrder, Sale, SaleItem, Supplier
from pos_insights.services.insight_service import InsightService


def test_check_low_stock_end_to_end():
    svc = InsightService()
    alerts = svc.check_low_stock([make_product("1", 3), make_product("2", 20)], threshold=5)

    assert len(alerts) == 1
    assert alerts[0].product_id == "1"


def test_daily_report_end_to_end_average():
    svc = InsightService()
    sales = [make_sale(str(i), 250.0, NOW - timedelta(hours=i)) for i in range(4)]
    report = svc.daily_report(sales, now=NOW)

    assert report.total_sales == pytest.approx(1000.0)
    assert report.average_transaction == pytest.approx(250.0)


def test_empty_inputs_never_raise():
    svc = InsightService()

    report = svc.daily_report([], now=NOW)
    assert (report.total_sales, report.total_transactions, report.average_transaction, report.top_products) == (
        0,
        0,
        0,
        (),
    )
    assert svc.check_low_stock([]) == []
    assert svc.suggest_reorders([]) == []
    assert svc.suggest_discounts([]) == []
    assert svc.segment_customers([]) == []
    assert svc.categorize_expenses([]) == []
    assert svc.expense_totals([]) == []
    assert svc.supplier_performance([], []) == []
    assert svc.supplier_spending([], []) == []
    assert svc.spending_trend([]) == []
    assert svc.daily_sales([], now=NOW) == []
    assert svc.category_performance([], [], now=NOW) == []
    assert svc.product_performance([], [], now=NOW) == []
    assert svc.income_statement([], [], [], []).net_profit == 0


def test_supplier_with_zero_orders_has_zero_rate():
    rows = InsightService().supplier_performance([Supplier(id="s1", name="Acme")], [])
    assert rows[0].on_time_delivery_rate == 0
    assert rows[0].average_order_value == 0


@pytest.mark.parametrize("bad", [None, "products", {"id": 1}, 42])
def test_malformed_collection_fails_fast(bad):
    with pytest.raises(ValidationError):
        InsightService().check_low_stock(bad)


def test_wrong_element_type_fails_fast():
    with pytest.raises(ValidationError, match=r"sales\[1\] must be Sale"):
        InsightService().daily_report([make_sale("1", 10.0, NOW), {"total": 5}], now=NOW)


def test_none_collections_in_income_statement():
    with pytest.raises(ValidationError, match="returns is required"):
        InsightService().income_statement([], None, [], [])


def test_accepts_generators_and_tuples():
    svc = InsightService()
    alerts = svc.check_low_stock((make_product(str(i), i) for i in range(3)), threshold=1)
    assert [a.product_id for a in alerts] == ["0", "1"]


def test_loyalty_points_use_configured_rate():
    assert InsightService().calculate_loyalty_points(1999.0) == 19
    assert InsightService(InsightsConfig(loyalty_rate=0.05)).calculate_loyalty_points(1999.0) == 99


def test_overview_combines_reports():
    products = [make_product("1", 1), make_product("2", 40)]
    sales = [
        make_sale("t1", 30.0, NOW, items=[("2", 3, 10.0)]),
        make_sale("old", 5.0, NOW - timedelta(days=90), items=[("1", 500, 0.01)]),
    ]
    customers = [Customer(id="c1", name="Ann", total_spent=2000.0)]
    expenses = [Expense(id="e1", spent_on=date(2024, 6, 1), description="rent", amount=10.0)]
    suppliers = [Supplier(id="s1", name="Acme")]
    orders = [PurchaseOrder(id="p1", supplier_id="s1", total=50.0)]

    ov = InsightService().overview(products, sales, customers, expenses, suppliers, orders, now=NOW)

    assert ov.generated_at == NOW
    assert [a.product_id for a in ov.low_stock] == ["1"]
    # the 90-day-old sale is outside the reorder lookback
    assert ov.reorders[0].suggested_quantity == 19
    assert ov.discounts[0].discount_percent == 20
    assert ov.daily_report.total_transactions == 1
    assert ov.segments[0].tier is CustomerTier.GOLD
    assert ov.expenses[0].category == "Facility"
    assert ov.suppliers[0].total_orders == 1


def test_reports_are_logged(caplog):
    caplog.set_level("INFO", logger="pos_insights.insights")
    InsightService().daily_report([], now=NOW)
    assert any("kind=daily_report" in r.getMessage() for r in caplog.records)


class InMemorySource:
    def __init__(self, products, sales):
        self.products = products
        self.sales = sales

    def list_products(self):
        return list(self.products)

    def list_sales(self):
        return list(self.sales)

    def list_returns(self):
        return []

    def list_customers(self):
        return []

    def list_expenses(self):
        return []

    def list_suppliers(self):
        return []

    def list_purchase_orders(self):
        return []


def test_overview_from_any_snapshot_source():
    source = InMemorySource([make_product("1", 0)], [make_sale("t1", 40.0, NOW)])
    ov = InsightService().overview_from(source, now=NOW)

    assert [a.product_id for a in ov.low_stock] == ["1"]
    assert ov.daily_report.total_sales == pytest.approx(40.0)
    assert ov.segments == ()
    assert ov.suppliers == ()


def test_missing_numeric_fields_fail_with_validation_error():
    svc = InsightService()

    with pytest.raises(ValidationError, match=r"products\[0\]\.stock must be a number, got NoneType"):
        svc.check_low_stock([make_product("1", None)])
    with pytest.raises(ValidationError, match=r"sales\[0\]\.items must be a sequence of SaleItem"):
        svc.daily_report([Sale(id="s", sold_at=NOW, total=1.0, items=None)], now=NOW)
    with pytest.raises(ValidationError, match=r"sales\[0\]\.items\[0\]\.quantity must be a number"):
        bad_line = SaleItem(product_id="1", name="Cola", quantity="2", unit_price=1.0)
        svc.top_selling_products([Sale(id="s", sold_at=NOW, total=2.0, items=(bad_line,))])
    with pytest.raises(ValidationError, match=r"sales\[0\]\.sold_at must be a datetime"):
        svc.daily_sales([Sale(id="s", sold_at="2024-06-15", total=1.0)], now=NOW)
    with pytest.raises(ValidationError, match=r"expenses\[0\]\.amount must be a number"):
        svc.expense_totals([Expense(id="e", spent_on=date(2024, 6, 1), description="rent", amount=None)])


def test_mixing_naive_and_aware_times_is_a_validation_error():
    svc = InsightService()
    aware_sale = make_sale("t1", 10.0, NOW.replace(tzinfo=timezone.utc), items=[("1", 1, 10.0)])

    with pytest.raises(ValidationError, match="both be naive or both timezone-aware"):
        svc.overview([], [aware_sale], [], [], [], [], now=NOW)
    with pytest.raises(ValidationError, match="both be naive or both timezone-aware"):
        svc.product_performance([aware_sale], [], now=NOW)

    rows = svc.product_performance([aware_sale], [], now=NOW.replace(tzinfo=timezone.utc))
    assert rows[0].revenue == pytest.approx(10.0)
