from database.db_manager import DatabaseManager
from models.savings_goal import SavingsGoal


class SavingsGoalDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> SavingsGoal:
        return SavingsGoal(
            id=row["id"],
            name=row["name"],
            target_amount=row["target_amount"],
            current_amount=row["current_amount"],
            deadline=row["deadline"],
            color=row["color"],
        )

    def get_all(self) -> list[SavingsGoal]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM savings_goals ORDER BY rowid").fetchall()
        return [self._row_to_model(r) for r in rows]

    def _insert(self, conn, goals: list[SavingsGoal]):
        conn.executemany(
            """INSERT OR REPLACE INTO savings_goals
                   (id, name, target_amount, current_amount, deadline, color)
               VALUES (?, ?, ?, ?, ?, ?)""",
            [
                (g.id, g.name, g.target_amount, g.current_amount, g.deadline, g.color)
                for g in goals
            ],
        )

    def upsert_many(self, goals: list[SavingsGoal]):
        with self._db.get_connection() as conn:
            self._insert(conn, goals)

    def delete(self, goal_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM savings_goals WHERE id = ?", (goal_id,))
        conn.commit()

    def replace_all(self, goals: list[SavingsGoal]):
        with self._db.get_connection() as conn:
            conn.execute("DELETE FROM savings_goals")
            self._insert(conn, goals)
