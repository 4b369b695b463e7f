from datetime import date, timedelta
from typing import Callable

from models.transaction import Transaction
from services.chart_service import render_balance_chart, render_monthly_chart
from services.forecast_service import net_totals
from services.ledger_store import LedgerStore
from services.projection_service import project
from utils.date_helpers import add_months, cycle_bounds, format_date, format_month, iter_days, today


class ReportService:
    def __init__(self, store: LedgerStore, clock: Callable[[], date] = today):
        self._store = store
        self._clock = clock

    def get_cycle_bounds(self, view_date: date | None = None) -> tuple[date, date]:
        return cycle_bounds(view_date or self._clock(), self._store.reset_day)

    def get_cycle_transactions(
        self, view_date: date | None = None, account_filter=None
    ) -> list[Transaction]:
        """Actual transactions in the cycle plus projections for its future part.

        Projections only cover days after today; anything due earlier is
        the recurrence engine's job. Newest first.
        """
        start, end = self.get_cycle_bounds(view_date)
        account_ids = self._store.resolve_account_ids(account_filter)
        start_str, end_str = format_date(start), format_date(end)

        actual = [
            t for t in self._store.list_transactions()
            if start_str <= t.date[:10] < end_str
            and (account_ids is None or t.account_id in account_ids)
        ]
        projected_from = max(start, self._clock() + timedelta(days=1))
        projected = list(project(self._store.list_rules(), projected_from, end, account_ids))
        return sorted(actual + projected, key=lambda t: t.date[:10], reverse=True)

    def get_cycle_summary(self, view_date: date | None = None, account_filter=None) -> dict:
        start, end = self.get_cycle_bounds(view_date)
        global_view = self._store.resolve_account_ids(account_filter) is None
        rows = self.get_cycle_transactions(view_date, account_filter)
        actual = [t for t in rows if not t.is_projected]

        totals = net_totals(actual, global_view)
        return {
            "start": format_date(start),
            "end": format_date(end),
            "income": totals["income"],
            "expense": totals["expense"],
            "savings": totals["net"],
            "current_total": sum(t.signed_amount for t in actual),
            "forecast_total": sum(t.signed_amount for t in rows),
            "balance": self._store.get_balance(account_filter or "all"),
        }

    def get_trend_data(self, start: date, end: date, account_filter=None) -> list[dict]:
        """Daily running balance over [start, end).

        The first point starts from the balance of everything dated
        before `start`; later transactions never leak into it.
        """
        account_ids = self._store.resolve_account_ids(account_filter)
        start_str, end_str = format_date(start), format_date(end)

        balance = 0.0
        by_day: dict[str, float] = {}
        for tx in self._store.list_transactions():
            if account_ids is not None and tx.account_id not in account_ids:
                continue
            day = tx.date[:10]
            if day < start_str:
                balance += tx.signed_amount
            elif day < end_str:
                by_day[day] = by_day.get(day, 0.0) + tx.signed_amount

        points = []
        for d in iter_days(start, end):
            key = format_date(d)
            balance += by_day.get(key, 0.0)
            points.append({"date": key, "balance": balance})
        return points

    def get_monthly_chart_data(self, account_filter=None, months: int = 6) -> list[dict]:
        """Return list of {month, income, expense, net} for the last `months` months."""
        account_ids = self._store.resolve_account_ids(account_filter)
        first = add_months(self._clock().replace(day=1), -(months - 1))
        buckets = {format_month(add_months(first, i)): [] for i in range(months)}
        for tx in self._store.list_transactions():
            if account_ids is not None and tx.account_id not in account_ids:
                continue
            month = tx.date[:7]
            if month in buckets:
                buckets[month].append(tx)
        return [
            {"month": month, **net_totals(txs, account_ids is None)}
            for month, txs in buckets.items()
        ]

    def render_trend(self, start: date, end: date, account_filter=None) -> bytes:
        return render_balance_chart(self.get_trend_data(start, end, account_filter), "Balance trend")

    def render_monthly(self, account_filter=None, months: int = 6) -> bytes:
        return render_monthly_chart(self.get_monthly_chart_data(account_filter, months))
