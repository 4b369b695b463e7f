from database.db_manager import DatabaseManager
from models.category import Category


class CategoryDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            kind=row["kind"],
            color=row["color"],
            is_system=bool(row["is_system"]),
        )

    def get_all(self) -> list[Category]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM categories ORDER BY name").fetchall()
        return [self._row_to_model(r) for r in rows]

    def _insert(self, conn, categories: list[Category]):
        conn.executemany(
            """INSERT OR REPLACE INTO categories(id, name, kind, color, is_system)
               VALUES (?, ?, ?, ?, ?)""",
            [(c.id, c.name, c.kind, c.color, int(c.is_system)) for c in categories],
        )

    def upsert_many(self, categories: list[Category]):
        with self._db.get_connection() as conn:
            self._insert(conn, categories)

    def delete(self, category_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        conn.commit()

    def replace_all(self, categories: list[Category]):
        with self._db.get_connection() as conn:
            conn.execute("DELETE FROM categories")
            self._insert(conn, categories)
