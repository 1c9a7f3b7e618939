"""
SQLite connection handling for the ledger store.

One DatabaseManager owns one connection for the life of a CLI run or a
test. The SQLite repository asks it for that connection on every call, so
closing it is safe: the next call reconnects and the repository
re-registers its search function on the new connection.
"""
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

Connection = sqlite3.Connection

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

class DatabaseConfig:
    """Where the ledger database lives; the parent directory is created on demand."""

    def __init__(self, db_path: Path | str = "data/ledger.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def connection_string(self) -> str:
        """Return the database file path as a string"""
        return str(self.db_path.absolute())

def configure_connection(conn: Connection) -> None:
    """
    Make rows addressable by column name.

    Dates and amounts stay as text; the repository converts them, so no
    detect_types conversion is registered here.
    """
    conn.execute("PRAGMA foreign_keys = ON")
    conn.row_factory = sqlite3.Row

class DatabaseManager:
    """
    Owns the single connection the ledger store works through.

    Writes go through transaction(); reads use get_connection() directly.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._connection: Connection | None = None

    def get_connection(self) -> Connection:
        """Return the open connection, reconnecting if close() was called"""
        if self._connection is None:
            self._connection = self._create_connection()
        return self._connection

    def _create_connection(self) -> Connection:
        conn = sqlite3.connect(
            self.config.connection_string,
            check_same_thread=False, # Allow multi-threaded access
        )
        configure_connection(conn)
        return conn

    def initialize(self) -> None:
        """Create the transactions table, its indexes and the schema_version row if missing."""
        execute_schema(self.get_connection(), SCHEMA_PATH)

    def close(self) -> None:
        """Close the database connection if open."""
        if self._connection:
            self._connection.close()
            self._connection = None

    @contextmanager
    def transaction(self) -> Generator[Connection, None, None]:
        """
        Commit on success, roll back on any exception.

        Usage:
            with db_manager.transaction() as conn:
                conn.execute("DELETE FROM transactions WHERE id = ?", (7,))
        """
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close connection."""
        self.close()

def execute_schema(conn: Connection, schema_path: Path = SCHEMA_PATH) -> None:
    """Run a schema script; every statement in schema.sql is idempotent"""
    with open(schema_path) as f:
        schema = f.read()

    conn.executescript(schema)
    conn.commit()
