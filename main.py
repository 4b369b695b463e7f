import os
import sys
from dataclasses import dataclass
from datetime import date
from typing import Callable

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import structlog

from database.db_manager import DatabaseManager
from services.account_service import AccountService
from services.category_service import CategoryService
from services.data_service import DataService
from services.edit_propagation import RuleEditPropagator
from services.forecast_service import ForecastService
from services.ledger_store import LedgerStore
from services.notifier import Notifier
from services.recurrence_engine import RecurrenceEngine
from services.recurring_service import RecurringService
from services.report_service import ReportService
from services.savings_goal_service import SavingsGoalService
from services.sync_service import SqliteSync, load_store
from services.transaction_service import TransactionService
from services.transfer_service import TransferCoordinator
from utils.app_config import get_db_folder, get_log_level
from utils.constants import APP_NAME
from utils.currency import format_currency
from utils.date_helpers import today
from utils.log import configure_logging

log = structlog.get_logger(__name__)


@dataclass
class Services:
    store: LedgerStore
    notifier: Notifier
    transfers: TransferCoordinator
    engine: RecurrenceEngine
    accounts: AccountService
    categories: CategoryService
    transactions: TransactionService
    recurring: RecurringService
    goals: SavingsGoalService
    reports: ReportService
    forecast: ForecastService
    data: DataService


def build_services(
    store: LedgerStore,
    notifier: Notifier | None = None,
    clock: Callable[[], date] = today,
) -> Services:
    notifier = notifier or Notifier()
    transfers = TransferCoordinator(store)
    engine = RecurrenceEngine(store, transfers, clock=clock, notifier=notifier)
    propagator = RuleEditPropagator(store, engine)
    return Services(
        store=store,
        notifier=notifier,
        transfers=transfers,
        engine=engine,
        accounts=AccountService(store),
        categories=CategoryService(store, notifier),
        transactions=TransactionService(store, transfers, notifier),
        recurring=RecurringService(store, engine, propagator, notifier),
        goals=SavingsGoalService(store, notifier),
        reports=ReportService(store, clock),
        forecast=ForecastService(store, clock),
        data=DataService(store),
    )


def main():
    # ── Bootstrap: read DB folder and log level from pre-DB config ────────────
    configure_logging(get_log_level())
    db_folder = get_db_folder()

    # ── Database → store ─────────────────────────────────────────────────────
    db = DatabaseManager.open(db_folder=db_folder)
    store = load_store(db)

    # ── Services ─────────────────────────────────────────────────────────────
    notifier = Notifier()
    SqliteSync(db, store, notifier).attach()
    services = build_services(store, notifier)

    # ── Apply due recurring rules ────────────────────────────────────────────
    new_transactions = services.engine.materialize_due()
    log.info("startup_complete", app=APP_NAME, materialized=len(new_transactions))

    summary = services.reports.get_cycle_summary()
    print(f"{APP_NAME}: cycle {summary['start']} to {summary['end']}")
    print(f"  Balance:  {format_currency(summary['balance'])}")
    print(f"  Income:   {format_currency(summary['income'])}")
    print(f"  Expense:  {format_currency(summary['expense'])}")
    print(f"  Forecast: {format_currency(summary['forecast_total'])}")
    if new_transactions:
        print(f"  {len(new_transactions)} recurring transaction(s) added.")

    db.close()


if __name__ == "__main__":
    main()
