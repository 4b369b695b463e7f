from typing import Optional

import structlog

from models.transaction import Transaction
from models.transfer import Transfer
from services.errors import TransferError
from services.ledger_store import LedgerStore
from services.validation import is_amount
from utils.date_helpers import parse_date

log = structlog.get_logger(__name__)

# Fields that must stay identical on both legs of a transfer.
SHARED_FIELDS = (
    "amount", "date", "description", "category_id", "recurring_id", "is_recurring",
)


class TransferCoordinator:
    def __init__(self, store: LedgerStore):
        self._store = store

    def create_transfer(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: float,
        date: str,
        description: str = "",
        recurring_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> Transfer:
        """Append both sides of a transfer, or neither."""
        if from_account_id == to_account_id:
            raise TransferError("Cannot transfer to the same account.")
        if not is_amount(amount):
            raise TransferError("Amount must be positive.")
        if not parse_date(date):
            raise TransferError("Invalid date.")

        transfer = Transfer.create(
            from_account_id, to_account_id, amount, date, description,
            recurring_id=recurring_id, category_id=category_id,
        )
        self._store.append_transaction(transfer.debit)
        try:
            self._store.append_transaction(transfer.credit)
        except Exception as exc:
            # Retract the debit so no half-transfer stays visible.
            self._store.remove_transactions([transfer.debit.id])
            log.error("transfer_rolled_back", debit_id=transfer.debit.id, error=str(exc))
            raise TransferError(f"Could not create transfer: {exc}") from exc

        log.info(
            "transfer_created",
            debit_id=transfer.debit.id,
            credit_id=transfer.credit.id,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount,
            date=date,
        )
        return transfer

    def get_transfer(self, tx_id: str) -> Transfer | None:
        """Return the transfer a transaction belongs to, or None."""
        tx = self._store.get_transaction(tx_id)
        if tx is None or not tx.linked_transaction_id:
            return None
        other = self._store.get_transaction(tx.linked_transaction_id)
        if other is None:
            return None
        return Transfer.from_legs(tx, other)

    def delete_transaction(self, tx_id: str) -> list[Transaction]:
        """Delete a transaction; a transfer leg takes its pair with it."""
        tx = self._store.get_transaction(tx_id)
        if tx is None:
            raise KeyError(f"Unknown transaction: {tx_id}")
        ids = [tx_id]
        if tx.linked_transaction_id:
            if self._store.get_transaction(tx.linked_transaction_id) is not None:
                ids.append(tx.linked_transaction_id)
            else:
                log.warning("transfer_pair_missing", tx_id=tx_id, linked_id=tx.linked_transaction_id)
        removed = self._store.remove_transactions(ids)
        log.info("transactions_deleted", ids=ids)
        return removed

    def update_transaction(self, tx_id: str, patch: dict) -> list[Transaction]:
        """Update a transaction, mirroring shared fields onto its transfer pair."""
        tx = self._store.get_transaction(tx_id)
        if tx is None:
            raise KeyError(f"Unknown transaction: {tx_id}")
        if "kind" in patch and tx.is_transfer and patch["kind"] != tx.kind:
            raise TransferError("The direction of a transfer leg cannot change.")
        patches = {tx_id: dict(patch)}
        if tx.linked_transaction_id and self._store.get_transaction(tx.linked_transaction_id):
            shared = {k: v for k, v in patch.items() if k in SHARED_FIELDS}
            if shared:
                patches[tx.linked_transaction_id] = shared
        return self._store.update_transactions(patches)
