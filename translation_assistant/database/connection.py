"""
Database Connection Manager
===========================
Handles SQLite database connections with proper context management.
"""
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator

from translation_assistant.config import config
from translation_assistant.utils.logging import get_logger


def _casefold(value):
    """SQL function for Unicode-aware case-insensitive matching."""
    return value.casefold() if isinstance(value, str) else value


class Database:
    """
    Thread-safe SQLite database manager.

    Each thread gets its own connection; writes go through ``transaction()``.
    """

    _lock = threading.Lock()

    def __init__(self, db_path: Path = None):
        self.db_path = Path(db_path or config.paths.db_path)
        self.logger = get_logger().db_logger
        self._local = threading.local()
        self._initialized = False

        # Ensure directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def connection(self) -> sqlite3.Connection:
        """Get thread-local connection."""
        if not hasattr(self._local, 'connection') or self._local.connection is None:
            self._local.connection = self._create_connection()
        return self._local.connection

    def _create_connection(self) -> sqlite3.Connection:
        """Create a new database connection."""
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=config.database.timeout
        )
        conn.row_factory = sqlite3.Row
        conn.create_function("casefold", 1, _casefold, deterministic=True)

        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA foreign_keys=ON")

        return conn

    def initialize(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return

            self._create_tables()
            self._create_indexes()
            self._initialized = True

            self.logger.info(f"Database initialized: {self.db_path}")

    def _create_tables(self) -> None:
        """Create database tables."""
        with self.connection:
            self.connection.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE,
                    username TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    preferences TEXT NOT NULL DEFAULT '{}',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    last_login_at TEXT,
                    CONSTRAINT valid_username CHECK (length(username) BETWEEN 3 AND 30)
                )
            """)

            self.connection.execute("""
                CREATE TABLE IF NOT EXISTS translations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    original_text TEXT NOT NULL,
                    original_language TEXT NOT NULL DEFAULT 'auto',
                    translated_text TEXT NOT NULL,
                    tone TEXT NOT NULL DEFAULT 'natural',
                    tags TEXT NOT NULL DEFAULT '[]',
                    is_favorite INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
                    CONSTRAINT valid_tone CHECK (
                        tone IN ('natural', 'gentle', 'cute', 'depressed', 'angry')
                    )
                )
            """)

            self.connection.execute("""
                CREATE TABLE IF NOT EXISTS translation_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    translation_id INTEGER NOT NULL,
                    accessed_at TEXT NOT NULL,
                    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
                    FOREIGN KEY (translation_id) REFERENCES translations(id) ON DELETE CASCADE,
                    UNIQUE(user_id, translation_id)
                )
            """)

    def _create_indexes(self) -> None:
        """Create database indexes for performance."""
        with self.connection:
            self.connection.execute("""
                CREATE INDEX IF NOT EXISTS idx_translations_user_created
                ON translations(user_id, created_at DESC)
            """)
            self.connection.execute("""
                CREATE INDEX IF NOT EXISTS idx_translations_user_favorite
                ON translations(user_id, is_favorite)
            """)
            self.connection.execute("""
                CREATE INDEX IF NOT EXISTS idx_history_user_accessed
                ON translation_history(user_id, accessed_at DESC)
            """)

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database transactions."""
        conn = self.connection
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            self.logger.error(f"Transaction rolled back: {e}")
            raise

    def execute(
        self,
        query: str,
        params: tuple = None
    ) -> sqlite3.Cursor:
        """Execute a query."""
        try:
            if params:
                return self.connection.execute(query, params)
            return self.connection.execute(query)
        except sqlite3.Error as e:
            self.logger.error(f"Database error: {e}")
            raise

    def fetchone(
        self,
        query: str,
        params: tuple = None
    ) -> Optional[sqlite3.Row]:
        """Execute query and fetch one result."""
        cursor = self.execute(query, params)
        return cursor.fetchone()

    def fetchall(
        self,
        query: str,
        params: tuple = None
    ) -> list:
        """Execute query and fetch all results."""
        cursor = self.execute(query, params)
        return cursor.fetchall()

    def close(self) -> None:
        """Close thread-local connection."""
        if hasattr(self._local, 'connection') and self._local.connection:
            self._local.connection.close()
            self._local.connection = None


# Global accessor
_database: Optional[Database] = None


def get_database() -> Database:
    """Get database singleton."""
    global _database
    if _database is None:
        _database = Database()
        _database.initialize()
    return _database


def init_database(db_path: Path = None) -> Database:
    """Replace the singleton with a database at ``db_path`` and create its schema."""
    global _database
    reset_database()
    _database = Database(db_path)
    _database.initialize()
    return _database


def reset_database() -> None:
    """Reset database singleton (for testing)."""
    global _database
    if _database:
        _database.close()
    _database = None
