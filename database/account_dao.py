from database.db_manager import DatabaseManager
from models.account import Account


class AccountDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Account:
        return Account(
            id=row["id"],
            name=row["name"],
            kind=row["kind"],
            include_in_total=bool(row["include_in_total"]),
        )

    def get_all(self) -> list[Account]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM accounts ORDER BY position, rowid"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def _write(self, conn, account: Account, position: int | None = None):
        if position is None:
            row = conn.execute(
                "SELECT position FROM accounts WHERE id = ?", (account.id,)
            ).fetchone()
            if row:
                position = row["position"]
            else:
                position = conn.execute(
                    "SELECT COALESCE(MAX(position) + 1, 0) FROM accounts"
                ).fetchone()[0]
        conn.execute(
            """INSERT INTO accounts(id, name, kind, include_in_total, position)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   name = excluded.name,
                   kind = excluded.kind,
                   include_in_total = excluded.include_in_total""",
            (account.id, account.name, account.kind, int(account.include_in_total), position),
        )

    def upsert(self, account: Account):
        conn = self._db.get_connection()
        self._write(conn, account)
        conn.commit()

    def delete(self, account_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
        conn.commit()

    def replace_all(self, accounts: list[Account]):
        with self._db.get_connection() as conn:
            conn.execute("DELETE FROM accounts")
            for position, account in enumerate(accounts):
                self._write(conn, account, position)
