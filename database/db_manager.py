import os
import sqlite3

from utils.constants import DB_FILE, DEFAULT_CATEGORIES


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def initialize(self):
        """Create schema and seed default settings."""
        conn = self.get_connection()
        self._create_schema(conn)
        self._migrate_schema(conn)
        self._seed_defaults(conn)
        conn.commit()

    def _migrate_schema(self, conn: sqlite3.Connection):
        """Idempotent ALTER TABLE for columns added after initial release."""
        cols = {row[1] for row in conn.execute("PRAGMA table_info(recurring_rules)").fetchall()}
        if "interval" not in cols:
            conn.execute(
                "ALTER TABLE recurring_rules ADD COLUMN interval INTEGER NOT NULL DEFAULT 1"
            )
        if "category_id" not in cols:
            conn.execute("ALTER TABLE recurring_rules ADD COLUMN category_id TEXT")

        cols = {row[1] for row in conn.execute("PRAGMA table_info(transactions)").fetchall()}
        if "category_id" not in cols:
            conn.execute("ALTER TABLE transactions ADD COLUMN category_id TEXT")

    def _create_schema(self, conn: sqlite3.Connection):
        # No foreign keys: deleting an account leaves its transactions behind.
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS accounts (
                id               TEXT PRIMARY KEY,
                name             TEXT NOT NULL,
                kind             TEXT NOT NULL DEFAULT 'checking',
                include_in_total INTEGER NOT NULL DEFAULT 1,
                position         INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id                    TEXT PRIMARY KEY,
                amount                REAL NOT NULL CHECK(amount > 0),
                kind                  TEXT NOT NULL CHECK(kind IN ('income','expense')),
                date                  TEXT NOT NULL,
                account_id            TEXT,
                description           TEXT NOT NULL DEFAULT '',
                category_id           TEXT,
                is_recurring          INTEGER NOT NULL DEFAULT 0,
                recurring_id          TEXT,
                is_transfer           INTEGER NOT NULL DEFAULT 0,
                linked_transaction_id TEXT
            );

            CREATE TABLE IF NOT EXISTS recurring_rules (
                id            TEXT PRIMARY KEY,
                amount        REAL NOT NULL CHECK(amount > 0),
                kind          TEXT NOT NULL CHECK(kind IN ('income','expense')),
                account_id    TEXT,
                description   TEXT NOT NULL DEFAULT '',
                frequency     TEXT NOT NULL CHECK(frequency IN ('daily','weekly','monthly','yearly')),
                start_date    TEXT NOT NULL,
                next_due_date TEXT NOT NULL,
                interval      INTEGER NOT NULL DEFAULT 1,
                end_date      TEXT,
                active        INTEGER NOT NULL DEFAULT 1,
                is_transfer   INTEGER NOT NULL DEFAULT 0,
                to_account_id TEXT,
                category_id   TEXT
            );

            CREATE TABLE IF NOT EXISTS categories (
                id        TEXT PRIMARY KEY,
                name      TEXT NOT NULL,
                kind      TEXT NOT NULL CHECK(kind IN ('income','expense','both')),
                color     TEXT NOT NULL DEFAULT '#888888',
                is_system INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS account_groups (
                id          TEXT PRIMARY KEY,
                name        TEXT NOT NULL,
                account_ids TEXT NOT NULL DEFAULT '[]'
            );

            CREATE TABLE IF NOT EXISTS savings_goals (
                id             TEXT PRIMARY KEY,
                name           TEXT NOT NULL,
                target_amount  REAL NOT NULL,
                current_amount REAL NOT NULL DEFAULT 0,
                deadline       TEXT,
                color          TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_transactions_account_id   ON transactions(account_id);
            CREATE INDEX IF NOT EXISTS idx_transactions_date         ON transactions(date);
            CREATE INDEX IF NOT EXISTS idx_transactions_recurring_id ON transactions(recurring_id);

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        defaults = [
            ("reset_day", "1"),
            ("selected_account_id", ""),
        ]
        for key, value in defaults:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

        # Default categories
        for cat in DEFAULT_CATEGORIES:
            conn.execute(
                """INSERT OR IGNORE INTO categories(id, name, kind, color, is_system)
                   VALUES (?, ?, ?, ?, 1)""",
                (cat["id"], cat["name"], cat["kind"], cat["color"]),
            )

    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        conn = self.get_connection()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
            (key, value),
        )
        conn.commit()

    @staticmethod
    def open(db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: opens (and creates if needed) the ledger DB.

        db_folder: if provided, the DB file is stored in that directory instead of CWD.
        """
        path = os.path.join(db_folder, DB_FILE) if db_folder else DB_FILE
        if db_folder:
            os.makedirs(db_folder, exist_ok=True)
        db = DatabaseManager(path)
        db.initialize()
        return db

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
