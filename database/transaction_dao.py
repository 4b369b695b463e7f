from database.db_manager import DatabaseManager
from models.transaction import Transaction

COLUMNS = (
    "id", "amount", "kind", "date", "account_id", "description", "category_id",
    "is_recurring", "recurring_id", "is_transfer", "linked_transaction_id",
)


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["id"],
            amount=row["amount"],
            kind=row["kind"],
            date=row["date"],
            account_id=row["account_id"],
            description=row["description"],
            category_id=row["category_id"],
            is_recurring=bool(row["is_recurring"]),
            recurring_id=row["recurring_id"],
            is_transfer=bool(row["is_transfer"]),
            linked_transaction_id=row["linked_transaction_id"],
        )

    def _values(self, tx: Transaction) -> tuple:
        return (
            tx.id, tx.amount, tx.kind, tx.date, tx.account_id, tx.description, tx.category_id,
            int(tx.is_recurring), tx.recurring_id, int(tx.is_transfer),
            tx.linked_transaction_id,
        )

    def get_all(self) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM transactions ORDER BY date, rowid"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def _insert(self, conn, txs: list[Transaction]):
        placeholders = ", ".join("?" for _ in COLUMNS)
        conn.executemany(
            f"INSERT OR REPLACE INTO transactions({', '.join(COLUMNS)}) VALUES ({placeholders})",
            [self._values(tx) for tx in txs],
        )

    def upsert_many(self, txs: list[Transaction]):
        with self._db.get_connection() as conn:
            self._insert(conn, txs)

    def delete_many(self, tx_ids: list[str]):
        conn = self._db.get_connection()
        conn.executemany("DELETE FROM transactions WHERE id = ?", [(i,) for i in tx_ids])
        conn.commit()

    def replace_all(self, txs: list[Transaction]):
        with self._db.get_connection() as conn:
            conn.execute("DELETE FROM transactions")
            self._insert(conn, txs)

    def assign_account(self, account_id: str) -> int:
        """Give every account-less row to account_id. Returns rows changed."""
        conn = self._db.get_connection()
        cursor = conn.execute(
            "UPDATE transactions SET account_id = ? WHERE account_id IS NULL OR account_id = ''",
            (account_id,),
        )
        conn.commit()
        return cursor.rowcount
