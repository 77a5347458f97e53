import os
import sqlite3
from typing import Any

from src.shared.telemetry import Telemetry, measure_time

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS articles (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        slug TEXT NOT NULL UNIQUE,
        content TEXT NOT NULL,
        excerpt TEXT,
        status TEXT NOT NULL DEFAULT 'draft',
        author_id TEXT,
        categories TEXT DEFAULT '[]',
        tags TEXT DEFAULT '[]',
        featured_image TEXT,
        meta_title TEXT,
        meta_description TEXT,
        focus_keyword TEXT,
        view_count INTEGER DEFAULT 0,
        reading_time INTEGER DEFAULT 0,
        scheduled_at TEXT,
        published_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_articles_status_scheduled "
    "ON articles (status, scheduled_at)",
    """
    CREATE TABLE IF NOT EXISTS user_profiles (
        id TEXT PRIMARY KEY,
        full_name TEXT,
        email TEXT,
        age INTEGER,
        country TEXT,
        gender TEXT,
        role TEXT DEFAULT 'user',
        is_verified BOOLEAN DEFAULT 0,
        created_at TEXT NOT NULL,
        last_login TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS anonymous_players (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        age INTEGER CHECK (age IS NULL OR (age >= 0 AND age <= 120)),
        country TEXT,
        test_result TEXT NOT NULL DEFAULT '{}',
        test_score INTEGER,
        test_duration INTEGER,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_test_results (
        id TEXT PRIMARY KEY,
        user_id TEXT,
        test_type TEXT DEFAULT 'iq',
        score INTEGER NOT NULL,
        correct_answers INTEGER DEFAULT 0,
        total_questions INTEGER DEFAULT 0,
        accuracy INTEGER DEFAULT 0,
        classification TEXT,
        percentile REAL,
        duration_seconds INTEGER DEFAULT 0,
        answers TEXT DEFAULT '[]',
        category_scores TEXT DEFAULT '{}',
        name TEXT,
        email TEXT,
        age INTEGER,
        country TEXT,
        gender TEXT,
        tested_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS test_behavior_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        session_id TEXT NOT NULL,
        event_type TEXT NOT NULL,
        question_number INTEGER,
        timestamp TEXT NOT NULL,
        event_data TEXT DEFAULT '{}'
    )
    """,
]

# Columns added after the first release of each table
MIGRATIONS: dict[str, dict[str, str]] = {
    "anonymous_players": {
        "email": "TEXT",
        "gender": "TEXT",
    },
}


class DatabaseManager:
    """
    Responsible for:
    1. Managing the SQLite connection lifecycle.
    2. Initializing the database schema (DDL).
    3. Handling migrations.
    4. Ensuring pickle-safety for Streamlit Session State.
    """

    def __init__(self, db_path: str = "data/iqsite.db") -> None:
        self.db_path = db_path
        self.telemetry = Telemetry("DatabaseManager")
        self._shared_connection: sqlite3.Connection | None = None

        self._ensure_db_exists()

        # In-memory databases live only as long as their connection
        if self.db_path == ":memory:":
            self._shared_connection = self._connect()

        self._init_schema()
        self._migrate_schema()

    # --- SERIALIZATION LOGIC (Pickle Safety) ---
    def __getstate__(self) -> dict[str, Any]:
        state = self.__dict__.copy()
        state.pop("_shared_connection", None)
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        # Lazily re-created by get_connection(); ":memory:" data is lost here
        self.__dict__.update(state)
        self._shared_connection = None

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def get_connection(self) -> sqlite3.Connection:
        """Returns a usable database connection, reconnecting if necessary."""
        if self._shared_connection:
            try:
                self._shared_connection.execute("SELECT 1")
                return self._shared_connection
            except sqlite3.ProgrammingError:
                self._shared_connection = None

        conn = self._connect()
        if self.db_path != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL")

        self._shared_connection = conn
        return conn

    def close(self) -> None:
        if self._shared_connection:
            self._shared_connection.close()
            self._shared_connection = None

    def _ensure_db_exists(self) -> None:
        if self.db_path == ":memory:":
            return
        dir_name = os.path.dirname(self.db_path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)

    @measure_time("db_init_schema")
    def _init_schema(self) -> None:
        conn = self.get_connection()
        try:
            for statement in SCHEMA:
                conn.execute(statement)
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error("Schema Init Failed", e)
            raise

    def _migrate_schema(self) -> None:
        conn = self.get_connection()
        try:
            for table, columns in MIGRATIONS.items():
                existing = {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}
                for column, ddl in columns.items():
                    if column not in existing:
                        self.telemetry.log_info(f"Migrating: Adding {column} to {table}")
                        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error("Schema migration failed", e)
            raise
