from uuid import uuid4

from models.transaction import Transaction
from models.transfer import Transfer
from services.ledger_store import LedgerStore
from services.notifier import Notifier
from services.transfer_service import TransferCoordinator
from utils.date_helpers import normalize_date, parse_date


class TransactionService:
    """Direct user entry. Deletes and edits go through the transfer
    coordinator so a transfer's two legs always change together."""

    def __init__(
        self,
        store: LedgerStore,
        transfers: TransferCoordinator,
        notifier: Notifier | None = None,
    ):
        self._store = store
        self._transfers = transfers
        self._notifier = notifier

    def get_for_account(
        self,
        account_id: str | None,
        month: str | None = None,
        kind_filter: str | None = None,
        search: str | None = None,
    ) -> list[Transaction]:
        """Transactions sorted by date; account_id None means every account."""
        result = []
        for tx in self._store.list_transactions(account_id):
            if month and not tx.date.startswith(month):
                continue
            if kind_filter and kind_filter != "all" and tx.kind != kind_filter:
                continue
            if search and search.lower() not in tx.description.lower():
                continue
            result.append(tx)
        return sorted(result, key=lambda t: (t.date[:10], t.id))

    def get_with_running_balance(self, account_id: str) -> list[tuple[Transaction, float]]:
        """Returns transactions paired with running balance for display."""
        balance = 0.0
        rows = []
        for tx in self.get_for_account(account_id):
            balance += tx.signed_amount
            rows.append((tx, balance))
        return rows

    def get_balance(self, account_id: str | None = None) -> float:
        return self._store.get_balance(account_id)

    def create_income_expense(
        self,
        account_id: str,
        kind: str,
        amount: float,
        date: str,
        description: str = "",
        category_id: str | None = None,
    ) -> Transaction:
        if not parse_date(date):
            raise ValueError("Invalid date format. Use YYYY-MM-DD.")
        tx = self._store.append_transaction(Transaction(
            id=str(uuid4()),
            amount=amount,
            kind=kind,
            date=normalize_date(date),
            account_id=account_id,
            description=description,
            category_id=category_id,
        ))
        self._saved("Transaction saved.")
        return tx

    def create_transfer(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: float,
        date: str,
        description: str = "",
        category_id: str | None = None,
    ) -> Transfer:
        transfer = self._transfers.create_transfer(
            from_account_id, to_account_id, amount, date, description,
            category_id=category_id,
        )
        self._saved("Transfer saved.")
        return transfer

    def update(self, tx_id: str, **changes) -> Transaction:
        if "date" in changes:
            changes["date"] = normalize_date(changes["date"])
        updated = self._transfers.update_transaction(tx_id, changes)
        self._saved("Transaction updated.")
        return next(t for t in updated if t.id == tx_id)

    def delete(self, tx_id: str) -> int:
        """Delete a transaction (and its transfer pair). Returns rows removed."""
        removed = self._transfers.delete_transaction(tx_id)
        self._saved("Transaction deleted.")
        return len(removed)

    def _saved(self, message: str):
        if self._notifier:
            self._notifier.notify("saved", message)
