from datetime import date
from typing import Callable

from models.transaction import Transaction
from services.chart_service import render_balance_chart, render_monthly_chart
from services.ledger_store import LedgerStore
from services.projection_service import project
from utils.constants import FORECAST_MONTHS
from utils.date_helpers import add_months, format_date, format_month, iter_days, today


def net_totals(transactions, global_view: bool) -> dict:
    """Income/expense totals. In a global view transfer legs cancel out
    and are left out of both sides."""
    income = expense = 0.0
    for tx in transactions:
        if global_view and tx.is_transfer:
            continue
        if tx.kind == "income":
            income += tx.amount
        else:
            expense += tx.amount
    return {"income": income, "expense": expense, "net": income - expense}


class ForecastService:
    def __init__(self, store: LedgerStore, clock: Callable[[], date] = today):
        self._store = store
        self._clock = clock

    def _projected(self, start: date, end: date, account_filter) -> list[Transaction]:
        account_ids = self._store.resolve_account_ids(account_filter)
        return list(project(self._store.list_rules(), start, end, account_ids))

    def get_monthly_forecast(self, account_filter=None, months: int = FORECAST_MONTHS) -> list[dict]:
        """
        [{month:'YYYY-MM', income:float, expense:float, net:float}]
        from the current month for `months` months, from projected occurrences.
        """
        global_view = self._store.resolve_account_ids(account_filter) is None
        month_start = self._clock().replace(day=1)
        result = []
        for i in range(months):
            start = add_months(month_start, i)
            end = add_months(month_start, i + 1)
            totals = net_totals(self._projected(start, end, account_filter), global_view)
            result.append({"month": format_month(start), **totals})
        return result

    def get_balance_forecast(self, account_filter=None, months: int = FORECAST_MONTHS) -> list[dict]:
        """[{date:'YYYY-MM-DD', balance:float}] for each day from today for `months` months.

        Starts from today's balance and adds projected occurrences day by
        day. Transfers move money between accounts, so they only change
        the balance of a view that holds one side.
        """
        start = self._clock()
        end = add_months(start, months)
        balance = self._store.get_balance(account_filter or "all")

        by_day: dict[str, float] = {}
        for tx in self._projected(start, end, account_filter):
            by_day[tx.date] = by_day.get(tx.date, 0.0) + tx.signed_amount

        points = []
        for day in iter_days(start, end):
            key = format_date(day)
            balance += by_day.get(key, 0.0)
            points.append({"date": key, "balance": balance})
        return points

    def render_balance_forecast(self, account_filter=None, months: int = FORECAST_MONTHS) -> bytes:
        """PNG of get_balance_forecast."""
        return render_balance_chart(self.get_balance_forecast(account_filter, months), "Balance forecast")

    def render_monthly_forecast(self, account_filter=None, months: int = FORECAST_MONTHS) -> bytes:
        return render_monthly_chart(self.get_monthly_forecast(account_filter, months), "Forecast")
