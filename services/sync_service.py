"""Write-through persistence from the ledger store to sqlite.

The store is the system of record while the app runs. SqliteSync listens
to its events and mirrors each one into the database; load_store builds a
store from the database at startup.
"""
import structlog

from database.account_dao import AccountDAO
from database.account_group_dao import AccountGroupDAO
from database.category_dao import CategoryDAO
from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.savings_goal_dao import SavingsGoalDAO
from database.transaction_dao import TransactionDAO
from models.account import Account
from services.ledger_store import LedgerStore, StoreEvent
from services.notifier import Notifier
from utils.constants import DEFAULT_ACCOUNT_ID, DEFAULT_ACCOUNT_NAME, DEFAULT_RESET_DAY

log = structlog.get_logger(__name__)


class SqliteSync:
    def __init__(self, db: DatabaseManager, store: LedgerStore, notifier: Notifier | None = None):
        self._db = db
        self._store = store
        self._notifier = notifier
        self._accounts = AccountDAO(db)
        self._txs = TransactionDAO(db)
        self._rules = RecurringDAO(db)
        self._categories = CategoryDAO(db)
        self._groups = AccountGroupDAO(db)
        self._goals = SavingsGoalDAO(db)

    def attach(self):
        """Subscribe to the store. Returns the unsubscribe callable."""
        return self._store.subscribe(self)

    def __call__(self, event: StoreEvent):
        try:
            self._apply(event)
        except Exception as e:
            # The in-memory change stands; the user is told the save failed.
            log.exception("sync_failed", action=event.action, collection=event.collection)
            if self._notifier:
                self._notifier.notify("error", f"Could not save changes: {e}")

    def _apply(self, event: StoreEvent):
        collection, action = event.collection, event.action

        if collection == "settings":
            for key in event.ids:
                if key == "reset_day":
                    self._db.set_setting("reset_day", str(self._store.reset_day))
                elif key == "selected_account_id":
                    self._db.set_setting("selected_account_id", self._store.selected_account_id or "")
            return

        if collection == "accounts":
            if action == "replace":
                self._accounts.replace_all(event.records)
            elif action == "remove":
                for account_id in event.ids:
                    self._accounts.delete(account_id)
            else:
                for account in event.records:
                    self._accounts.upsert(account)
            return

        if collection == "transactions":
            if action == "replace":
                self._txs.replace_all(event.records)
            elif action == "remove":
                self._txs.delete_many(event.ids)
            else:
                self._txs.upsert_many(event.records)
            return

        dao = {
            "rules": self._rules,
            "categories": self._categories,
            "groups": self._groups,
            "goals": self._goals,
        }.get(collection)
        if dao is None:
            log.warning("sync_unknown_collection", collection=collection)
            return
        if action == "replace":
            dao.replace_all(event.records)
        elif action == "remove":
            for record_id in event.ids:
                dao.delete(record_id)
        else:
            dao.upsert_many(event.records)


def load_store(db: DatabaseManager, store: LedgerStore | None = None) -> LedgerStore:
    """Hydrate a store from the database, running the startup migrations.

    - a database with no accounts gets the default account
    - transactions and rules without an account move to the default
      account (or the first account when there is no default)
    - the selected account falls back to the first account
    """
    store = store or LedgerStore()
    account_dao = AccountDAO(db)
    tx_dao = TransactionDAO(db)
    rule_dao = RecurringDAO(db)

    accounts = account_dao.get_all()
    if not accounts:
        default = Account(id=DEFAULT_ACCOUNT_ID, name=DEFAULT_ACCOUNT_NAME)
        account_dao.upsert(default)
        accounts = [default]
        log.info("default_account_created", account_id=default.id)

    fallback_id = next((a.id for a in accounts if a.id == DEFAULT_ACCOUNT_ID), accounts[0].id)
    moved_txs = tx_dao.assign_account(fallback_id)
    moved_rules = rule_dao.assign_account(fallback_id)
    if moved_txs or moved_rules:
        log.info("orphans_assigned", account_id=fallback_id, transactions=moved_txs, rules=moved_rules)

    store.replace_all(
        transactions=tx_dao.get_all(),
        rules=rule_dao.get_all(),
        categories=CategoryDAO(db).get_all(),
        groups=AccountGroupDAO(db).get_all(),
        goals=SavingsGoalDAO(db).get_all(),
        accounts=accounts,
    )

    selected = db.get_setting("selected_account_id")
    if not selected or store.get_account(selected) is None:
        selected = accounts[0].id
    store.set_selected_account(selected)

    raw_day = db.get_setting("reset_day", str(DEFAULT_RESET_DAY))
    try:
        store.set_reset_day(int(raw_day))
    except ValueError:
        log.warning("invalid_reset_day", value=raw_day)
        store.set_reset_day(DEFAULT_RESET_DAY)

    log.info(
        "store_loaded",
        accounts=len(accounts),
        transactions=len(store.list_transactions()),
        rules=len(store.list_rules()),
    )
    return store
