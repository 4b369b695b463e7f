import pytest

from database.db_manager import DatabaseManager
from main import build_services
from models.account import Account
from models.recurring_rule import RecurringRule
from models.transaction import Transaction
from services.ledger_store import LedgerStore
from services.notifier import Notifier
from utils.date_helpers import FixedClock


def make_rule(**overrides) -> RecurringRule:
    values = dict(
        id="rule-1",
        amount=100.0,
        kind="expense",
        account_id="acc1",
        description="Rent",
        frequency="monthly",
        start_date="2024-01-01",
        next_due_date="2024-01-01",
    )
    values.update(overrides)
    return RecurringRule(**values)


def make_tx(**overrides) -> Transaction:
    values = dict(
        id="tx-1",
        amount=50.0,
        kind="expense",
        date="2024-01-01",
        account_id="acc1",
        description="Groceries",
    )
    values.update(overrides)
    return Transaction(**values)


@pytest.fixture
def clock():
    return FixedClock("2024-06-01")


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def store():
    s = LedgerStore()
    s.add_account(Account(id="acc1", name="Checking"))
    s.add_account(Account(id="acc2", name="Savings", kind="savings"))
    s.set_selected_account("acc1")
    return s


@pytest.fixture
def services(store, notifier, clock):
    return build_services(store, notifier, clock)


@pytest.fixture
def db():
    manager = DatabaseManager(":memory:")
    manager.initialize()
    yield manager
    manager.close()
