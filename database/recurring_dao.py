from database.db_manager import DatabaseManager
from models.recurring_rule import RecurringRule

COLUMNS = (
    "id", "amount", "kind", "account_id", "description", "frequency",
    "start_date", "next_due_date", "interval", "end_date", "active",
    "is_transfer", "to_account_id", "category_id",
)


class RecurringDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> RecurringRule:
        return RecurringRule(
            id=row["id"],
            amount=row["amount"],
            kind=row["kind"],
            account_id=row["account_id"],
            description=row["description"],
            frequency=row["frequency"],
            start_date=row["start_date"],
            next_due_date=row["next_due_date"],
            interval=row["interval"],
            end_date=row["end_date"],
            active=bool(row["active"]),
            is_transfer=bool(row["is_transfer"]),
            to_account_id=row["to_account_id"],
            category_id=row["category_id"],
        )

    def get_all(self) -> list[RecurringRule]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM recurring_rules ORDER BY rowid").fetchall()
        return [self._row_to_model(r) for r in rows]

    def _insert(self, conn, rules: list[RecurringRule]):
        placeholders = ", ".join("?" for _ in COLUMNS)
        conn.executemany(
            f"INSERT OR REPLACE INTO recurring_rules({', '.join(COLUMNS)}) VALUES ({placeholders})",
            [
                (
                    r.id, r.amount, r.kind, r.account_id, r.description, r.frequency,
                    r.start_date, r.next_due_date, r.interval, r.end_date,
                    int(r.active), int(r.is_transfer), r.to_account_id, r.category_id,
                )
                for r in rules
            ],
        )

    def upsert_many(self, rules: list[RecurringRule]):
        with self._db.get_connection() as conn:
            self._insert(conn, rules)

    def delete(self, rule_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM recurring_rules WHERE id = ?", (rule_id,))
        conn.commit()

    def replace_all(self, rules: list[RecurringRule]):
        with self._db.get_connection() as conn:
            conn.execute("DELETE FROM recurring_rules")
            self._insert(conn, rules)

    def assign_account(self, account_id: str) -> int:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "UPDATE recurring_rules SET account_id = ? WHERE account_id IS NULL OR account_id = ''",
            (account_id,),
        )
        conn.commit()
        return cursor.rowcount
