from datetime import date

import pytest

from conftest import make_rule, make_tx
from services.chart_service import render_balance_chart, render_monthly_chart

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestTrendData:
    def test_later_transactions_do_not_leak_into_opening_balance(self, services, store):
        store.append_transaction(make_tx(id="1", kind="income", amount=1000.0, date="2023-01-01"))
        store.append_transaction(make_tx(id="2", kind="income", amount=500.0, date="2023-03-01"))
        data = services.reports.get_trend_data(date(2023, 2, 1), date(2023, 3, 1), "all")
        assert len(data) == 28
        assert data[0] == {"date": "2023-02-01", "balance": 1000.0}
        assert data[-1]["balance"] == 1000.0

    def test_transactions_inside_the_period(self, services, store):
        store.append_transaction(make_tx(id="1", kind="income", amount=1000.0, date="2023-01-01"))
        store.append_transaction(make_tx(id="3", kind="expense", amount=100.0, date="2023-02-15"))
        data = services.reports.get_trend_data(date(2023, 2, 1), date(2023, 3, 1), "all")
        assert data[0]["balance"] == 1000.0
        assert data[14] == {"date": "2023-02-15", "balance": 900.0}
        assert data[-1]["balance"] == 900.0

    def test_account_filter(self, services, store):
        store.append_transaction(make_tx(id="1", kind="income", amount=1000.0, date="2023-01-01"))
        store.append_transaction(make_tx(id="2", kind="income", amount=70.0, date="2023-01-01",
                                         account_id="acc2"))
        data = services.reports.get_trend_data(date(2023, 2, 1), date(2023, 2, 2), "acc2")
        assert data == [{"date": "2023-02-01", "balance": 70.0}]


class TestCycle:
    @pytest.fixture
    def ledger(self, store):
        store.append_transaction(make_tx(id="pay", kind="income", amount=1000.0, date="2024-06-01"))
        store.append_transaction(make_tx(id="old", kind="expense", amount=40.0, date="2024-05-31"))
        store.add_rule(make_rule(start_date="2024-05-15", next_due_date="2024-06-15"))
        return store

    def test_cycle_mixes_actual_and_projected(self, services, ledger):
        rows = services.reports.get_cycle_transactions()
        assert [(t.date, t.is_projected) for t in rows] == [
            ("2024-06-15", True), ("2024-06-01", False),
        ]

    def test_summary_totals(self, services, ledger):
        summary = services.reports.get_cycle_summary()
        assert summary["start"] == "2024-06-01"
        assert summary["end"] == "2024-07-01"
        assert summary["income"] == 1000.0
        assert summary["expense"] == 0.0
        assert summary["current_total"] == 1000.0
        assert summary["forecast_total"] == 900.0
        assert summary["balance"] == 960.0

    def test_reset_day_moves_cycle(self, services, ledger):
        ledger.set_reset_day(20)
        start, end = services.reports.get_cycle_bounds()
        assert (start, end) == (date(2024, 5, 20), date(2024, 6, 20))
        dates = [t.date for t in services.reports.get_cycle_transactions()]
        assert dates == ["2024-06-15", "2024-06-01", "2024-05-31"]

    def test_transfers_cancel_in_global_view(self, services, ledger):
        services.transfers.create_transfer("acc1", "acc2", 200.0, "2024-06-02")
        overall = services.reports.get_cycle_summary()
        assert overall["expense"] == 0.0
        assert overall["income"] == 1000.0
        checking = services.reports.get_cycle_summary(account_filter="acc1")
        assert checking["expense"] == 200.0

    def test_monthly_chart_data(self, services, ledger):
        data = services.reports.get_monthly_chart_data(months=2)
        assert data == [
            {"month": "2024-05", "income": 0.0, "expense": 40.0, "net": -40.0},
            {"month": "2024-06", "income": 1000.0, "expense": 0.0, "net": 1000.0},
        ]


class TestForecast:
    @pytest.fixture
    def ledger(self, store):
        store.append_transaction(make_tx(id="pay", kind="income", amount=1000.0, date="2024-05-01"))
        store.add_rule(make_rule(start_date="2024-05-15", next_due_date="2024-06-15"))
        store.add_rule(make_rule(id="save", amount=300.0, description="Save",
                                 start_date="2024-06-10", next_due_date="2024-06-10",
                                 is_transfer=True, to_account_id="acc2"))
        return store

    def test_daily_balance(self, services, ledger):
        points = services.forecast.get_balance_forecast(months=1)
        assert len(points) == 30
        assert points[0] == {"date": "2024-06-01", "balance": 1000.0}
        assert points[14] == {"date": "2024-06-15", "balance": 900.0}
        assert points[-1]["balance"] == 900.0

    def test_transfer_only_moves_single_account_view(self, services, ledger):
        checking = services.forecast.get_balance_forecast("acc1", months=1)
        assert checking[9] == {"date": "2024-06-10", "balance": 700.0}
        savings = services.forecast.get_balance_forecast("acc2", months=1)
        assert savings[-1]["balance"] == 300.0

    def test_monthly_buckets(self, services, ledger):
        rows = services.forecast.get_monthly_forecast(months=2)
        assert [r["month"] for r in rows] == ["2024-06", "2024-07"]
        assert rows[0] == {"month": "2024-06", "income": 0.0, "expense": 100.0, "net": -100.0}
        savings = services.forecast.get_monthly_forecast("acc2", months=1)
        assert savings[0]["income"] == 300.0

    def test_forecast_does_not_write(self, services, ledger):
        services.forecast.get_balance_forecast(months=6)
        assert len(ledger.list_transactions()) == 1
        assert ledger.get_rule("rule-1").next_due_date == "2024-06-15"


class TestCharts:
    def test_balance_chart_is_png(self):
        points = [{"date": f"2024-06-{d:02d}", "balance": 100.0 * d} for d in range(1, 31)]
        assert render_balance_chart(points).startswith(PNG_SIGNATURE)

    def test_empty_chart_still_renders(self):
        assert render_balance_chart([]).startswith(PNG_SIGNATURE)
        assert render_monthly_chart([]).startswith(PNG_SIGNATURE)

    def test_forecast_charts(self, services, store):
        store.add_rule(make_rule(next_due_date="2024-06-01", start_date="2024-06-01"))
        assert services.forecast.render_monthly_forecast().startswith(PNG_SIGNATURE)
        assert services.forecast.render_balance_forecast("acc1", months=1).startswith(PNG_SIGNATURE)

    def test_report_charts(self, services, store):
        store.append_transaction(make_tx(id="1", kind="income", amount=300.0, date="2024-05-10"))
        assert services.reports.render_monthly(months=3).startswith(PNG_SIGNATURE)
        png = services.reports.render_trend(date(2024, 5, 1), date(2024, 6, 1))
        assert png.startswith(PNG_SIGNATURE)
