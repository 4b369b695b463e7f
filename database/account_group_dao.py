import json

from database.db_manager import DatabaseManager
from models.account_group import AccountGroup


class AccountGroupDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> AccountGroup:
        return AccountGroup(
            id=row["id"],
            name=row["name"],
            account_ids=json.loads(row["account_ids"] or "[]"),
        )

    def get_all(self) -> list[AccountGroup]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM account_groups ORDER BY rowid").fetchall()
        return [self._row_to_model(r) for r in rows]

    def _insert(self, conn, groups: list[AccountGroup]):
        conn.executemany(
            "INSERT OR REPLACE INTO account_groups(id, name, account_ids) VALUES (?, ?, ?)",
            [(g.id, g.name, json.dumps(g.account_ids)) for g in groups],
        )

    def upsert_many(self, groups: list[AccountGroup]):
        with self._db.get_connection() as conn:
            self._insert(conn, groups)

    def delete(self, group_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM account_groups WHERE id = ?", (group_id,))
        conn.commit()

    def replace_all(self, groups: list[AccountGroup]):
        with self._db.get_connection() as conn:
            conn.execute("DELETE FROM account_groups")
            self._insert(conn, groups)
