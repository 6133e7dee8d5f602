"""
Database connection module for pyorm.

A DatabaseConnection is the only thing the query builder talks to: it runs a
parameterized statement with positional bindings and hands back a Statement,
reports the last inserted id, and controls transactions. SQLiteConnection is
the bundled implementation on top of the standard library driver.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from pyorm.database.config import DatabaseConfig, SUPPORTED_SCHEMES
from pyorm.exceptions import ConfigurationError, StorageError


class Statement:
    """Result handle for one executed statement"""

    def __init__(self, cursor: Any, row_count: int = -1):
        self._cursor = cursor
        self._row_count = row_count

    def fetch_all(self) -> List[Dict[str, Any]]:
        """Return all remaining rows as column-name -> value dicts"""
        return [self._to_dict(row) for row in self._cursor.fetchall()]

    def fetch_one(self) -> Optional[Dict[str, Any]]:
        """Return the next row or None"""
        row = self._cursor.fetchone()
        return self._to_dict(row) if row is not None else None

    def row_count(self) -> int:
        """Number of rows affected by an INSERT, UPDATE or DELETE"""
        return self._row_count

    def _to_dict(self, row: Any) -> Dict[str, Any]:
        if isinstance(row, dict):
            return row
        if hasattr(row, 'keys'):
            return {key: row[key] for key in row.keys()}
        columns = [column[0] for column in self._cursor.description]
        return dict(zip(columns, row))


class DatabaseConnection(ABC):
    """
    Abstract base class for database connections.

    Connections are passed explicitly to models and query builders; there is
    no shared global instance. A connection is not safe to share between
    threads.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._connected = False
        self.logger = logging.getLogger(f"pyorm.database.{self.__class__.__name__}")

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> 'DatabaseConnection':
        """Create a connection for the backend named by the config URL scheme"""
        if config.db_type not in SUPPORTED_SCHEMES:
            raise ConfigurationError(
                f"Unsupported database URL: {config.database_url}",
                details={'scheme': config.db_type, 'supported': list(SUPPORTED_SCHEMES)}
            )
        return SQLiteConnection(config)

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> 'DatabaseConnection':
        return cls.from_config(DatabaseConfig(database_url=database_url, **kwargs))

    @abstractmethod
    def connect(self) -> None:
        """Establish database connection."""

    @abstractmethod
    def disconnect(self) -> None:
        """Close database connection."""

    @abstractmethod
    def execute(self, sql: str, bindings: Sequence[Any] = ()) -> Statement:
        """Execute a parameterized statement."""

    @abstractmethod
    def last_insert_id(self) -> Any:
        """Primary key generated by the most recent INSERT."""

    @abstractmethod
    def begin_transaction(self) -> bool:
        pass

    @abstractmethod
    def commit(self) -> bool:
        pass

    @abstractmethod
    def rollback(self) -> bool:
        pass

    @abstractmethod
    def in_transaction(self) -> bool:
        pass

    @property
    def is_connected(self) -> bool:
        """Check if connection is established."""
        return self._connected

    def _log_statement(self, sql: str, bindings: Sequence[Any]) -> None:
        level = logging.INFO if self.config.echo else logging.DEBUG
        # Bound values may carry credentials; only their count is logged
        self.logger.log(level, "%s [%d binding(s)]", sql, len(bindings))

    def __enter__(self) -> 'DatabaseConnection':
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()


class SQLiteConnection(DatabaseConnection):
    """SQLite database connection."""

    def __init__(self, config: Optional[DatabaseConfig] = None):
        super().__init__(config or DatabaseConfig('sqlite:///:memory:'))
        self._connection: Optional[sqlite3.Connection] = None
        self._last_insert_id: Any = None

    def connect(self) -> None:
        """Connect to SQLite database."""
        if self._connected:
            return
        try:
            # Autocommit mode; transactions are opened explicitly
            self._connection = sqlite3.connect(
                self.config.database,
                timeout=self.config.timeout,
                isolation_level=None,
            )
        except sqlite3.Error as e:
            self.logger.error("Database connection failed: %s", e)
            raise StorageError(f"Database connection failed: {e}") from e

        self._connection.row_factory = sqlite3.Row
        self._connection.execute("PRAGMA foreign_keys = ON")
        self._connected = True
        self.logger.info("Connected to SQLite database %s", self.config.database)

    def disconnect(self) -> None:
        """Disconnect from SQLite database."""
        if self._connection:
            self._connection.close()
            self._connection = None
            self._connected = False
            self.logger.info("Disconnected from SQLite database")

    def get_connection(self) -> sqlite3.Connection:
        """Get the underlying sqlite3 connection, connecting on first use."""
        if not self._connected:
            self.connect()
        return self._connection

    def execute(self, sql: str, bindings: Sequence[Any] = ()) -> Statement:
        """Execute SQLite statement."""
        conn = self.get_connection()
        params = tuple(bindings)
        self._log_statement(sql, params)
        try:
            cursor = conn.execute(sql, params)
        except sqlite3.Error as e:
            self.logger.error("Query execution failed: %s", e)
            raise StorageError(f"Query execution failed: {e}", sql=sql) from e

        if cursor.lastrowid:
            self._last_insert_id = cursor.lastrowid
        return Statement(cursor, cursor.rowcount)

    def execute_script(self, script: str) -> None:
        """Run several semicolon-separated statements, e.g. a schema file."""
        try:
            self.get_connection().executescript(script)
        except sqlite3.Error as e:
            self.logger.error("Script execution failed: %s", e)
            raise StorageError(f"Script execution failed: {e}") from e

    def last_insert_id(self) -> Any:
        return self._last_insert_id

    def begin_transaction(self) -> bool:
        self.execute("BEGIN")
        return True

    def commit(self) -> bool:
        if not self.in_transaction():
            return False
        self.execute("COMMIT")
        return True

    def rollback(self) -> bool:
        if not self.in_transaction():
            return False
        self.execute("ROLLBACK")
        return True

    def in_transaction(self) -> bool:
        return self._connected and self._connection.in_transaction


@contextmanager
def transaction(connection: DatabaseConnection) -> Iterator[DatabaseConnection]:
    """
    Run a block inside a transaction.

    Commits when the block finishes and rolls back if it raises. Nested
    transactions are not supported.

    Example:
        >>> with transaction(conn):
        ...     User.create({'name': 'Jane'})
    """
    if connection.in_transaction():
        raise StorageError("Transaction already active; nested transactions are not supported")

    connection.begin_transaction()
    try:
        yield connection
    except BaseException:
        connection.rollback()
        raise
    else:
        connection.commit()


__all__ = ['DatabaseConnection', 'SQLiteConnection', 'Statement', 'transaction']
