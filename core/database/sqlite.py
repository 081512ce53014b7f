# vipgate/core/database/sqlite.py
import os
import re
import sqlite3
import threading
import logging
from typing import Any, Dict, List, Optional, Tuple

from utils.exceptions import DuplicateKeyError, RecordValidationError, StoreUnavailableError
from .base import DatabaseService
from .schema import build_schema_script

logger = logging.getLogger(f"vipgate.{__name__}")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ORDER_BY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\s+(ASC|DESC))?(\s*,\s*[A-Za-z_][A-Za-z0-9_]*(\s+(ASC|DESC))?)*$", re.IGNORECASE)


def dict_factory(cursor, row: Tuple) -> Dict[str, Any]:
    """Converts a database row (tuple) to a dictionary with column names as keys."""
    fields = [column[0] for column in cursor.description]
    return {key: value for key, value in zip(fields, row)}


def _quote(identifier: str) -> str:
    if not _IDENTIFIER_RE.match(identifier):
        raise ValueError(f"Invalid SQL identifier: {identifier!r}")
    return f"`{identifier}`"


class SQLiteDatabase(DatabaseService):
    """
    SQLite implementation of the DatabaseService.
    One connection is shared by all requests and serialized with a lock.
    A path of ":memory:" gives a private in-process database.
    """
    def __init__(self, db_config: Dict[str, Any]):
        """
        Args:
            db_config (Dict[str, Any]): Configuration dictionary.
                                         Expected key: 'path' (e.g., "data/db/vipgate.db").
        """
        self.db_path: str = db_config.get("path", "data/db/vipgate.db")
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        logger.info(f"SQLiteDatabase initialized with db_path: {self.db_path}")
        self._ensure_db_directory()

    def _ensure_db_directory(self):
        if self.db_path == ":memory:":
            return
        db_dir = os.path.dirname(self.db_path)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)
            logger.info(f"Created database directory: {db_dir}")

    def connect(self) -> bool:
        """Establishes a connection to the SQLite database file and creates missing tables."""
        with self._lock:
            if self.conn is not None:
                logger.debug("Already connected to SQLite database.")
                return True
            try:
                self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
                self.conn.row_factory = dict_factory
                self.conn.execute("PRAGMA foreign_keys = ON;")
                self.conn.executescript(build_schema_script())
                self.conn.commit()
                logger.info(f"Successfully connected to SQLite database: {self.db_path}")
                return True
            except sqlite3.Error as e:
                logger.error(f"Error connecting to SQLite database {self.db_path}: {e}", exc_info=True)
                self.conn = None
                return False

    def disconnect(self) -> bool:
        with self._lock:
            if self.conn is None:
                logger.debug("Already disconnected or no active connection.")
                return True
            try:
                self.conn.close()
                self.conn = None
                logger.info("Successfully disconnected from SQLite database.")
                return True
            except sqlite3.Error as e:
                logger.error(f"Error disconnecting from SQLite database: {e}", exc_info=True)
                return False

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            logger.warning("No active database connection. Attempting to connect.")
            if not self.connect():
                raise StoreUnavailableError(f"Could not connect to SQLite database at {self.db_path}")
        return self.conn  # type: ignore[return-value]

    def _execute(self, table: str, query: str, params: Tuple[Any, ...] = (), commit: bool = False) -> sqlite3.Cursor:
        """
        Runs one statement under the connection lock.
        Unique-constraint violations become DuplicateKeyError, other integrity
        failures (foreign key, NOT NULL) become RecordValidationError, and every
        other sqlite3 failure becomes StoreUnavailableError.
        """
        with self._lock:
            conn = self._connection()
            try:
                logger.debug(f"Executing SQL: {query} with params: {params}")
                cursor = conn.execute(query, params)
                if commit:
                    conn.commit()
                return cursor
            except sqlite3.IntegrityError as e:
                conn.rollback()
                if "UNIQUE" in str(e).upper():
                    logger.info(f"Unique constraint rejected write to `{table}`: {e}")
                    raise DuplicateKeyError(table, str(e)) from e
                logger.warning(f"Integrity error on `{table}`: {e}")
                raise RecordValidationError(str(e)) from e
            except sqlite3.Error as e:
                logger.error(f"SQLite execution error: {e} (Query: {query[:200]}..., Params: {params})", exc_info=True)
                if self.conn is not None:
                    self.conn.rollback()
                raise StoreUnavailableError(str(e)) from e

    def _build_filter_conditions(self, filters: Optional[Dict[str, Any]]) -> Tuple[List[str], List[Any]]:
        """
        Builds WHERE clause conditions and corresponding parameters from a filter dictionary.
        Supports operators via suffixes: __lt, __gt.
        Defaults to '=' if no operator suffix is present.
        """
        conditions: List[str] = []
        params_list: List[Any] = []

        for key_with_op, value in (filters or {}).items():
            parts = key_with_op.split('__')
            column_name = _quote(parts[0])
            op_suffix = parts[1].lower() if len(parts) > 1 else None

            if op_suffix is None:
                conditions.append(f"{column_name} = ?")
                params_list.append(value)
            elif op_suffix in ('lt', 'gt'):
                sql_op = '<' if op_suffix == 'lt' else '>'
                conditions.append(f"{column_name} {sql_op} ?")
                params_list.append(value)
            else:
                raise ValueError(f"Unknown operator suffix in filter key '{key_with_op}'")

        return conditions, params_list

    def insert(self, table: str, data: Dict[str, Any]) -> int:
        if not data:
            raise ValueError(f"Insert called with empty data for table `{table}`.")

        columns = ', '.join(_quote(key) for key in data.keys())
        placeholders = ', '.join(['?'] * len(data))
        query = f"INSERT INTO {_quote(table)} ({columns}) VALUES ({placeholders})"
        cursor = self._execute(table, query, tuple(data.values()), commit=True)
        return int(cursor.lastrowid)

    def find_one(self, table: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = self.find(table, filters, limit=1)
        return rows[0] if rows else None

    def find(self, table: str, filters: Optional[Dict[str, Any]] = None,
             order_by: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Finds multiple records matching filters with optional ordering and limit.
        """
        query = f"SELECT * FROM {_quote(table)}"
        conditions, params = self._build_filter_conditions(filters)
        if conditions:
            query += " WHERE " + " AND ".join(conditions)

        if order_by:
            if not _ORDER_BY_RE.match(order_by.strip()):
                raise ValueError(f"Invalid order_by clause: {order_by!r}")
            query += f" ORDER BY {order_by.strip()}"

        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self._lock:
            return self._execute(table, query, tuple(params)).fetchall()

    def update(self, table: str, filters: Dict[str, Any], updates: Dict[str, Any]) -> int:
        if not filters:
            raise ValueError(f"Update operation on table `{table}` requires filters.")
        if not updates:
            return 0

        set_clause = ", ".join(f"{_quote(key)} = ?" for key in updates.keys())
        conditions, where_params = self._build_filter_conditions(filters)
        query = f"UPDATE {_quote(table)} SET {set_clause} WHERE {' AND '.join(conditions)}"
        # update values first, then where clause values
        params = tuple(updates.values()) + tuple(where_params)
        return self._execute(table, query, params, commit=True).rowcount

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        if not filters:
            raise ValueError(f"Delete operation on table `{table}` requires filters.")

        conditions, params = self._build_filter_conditions(filters)
        query = f"DELETE FROM {_quote(table)} WHERE {' AND '.join(conditions)}"
        return self._execute(table, query, tuple(params), commit=True).rowcount

    def count(self, table: str, filters: Optional[Dict[str, Any]] = None) -> int:
        query = f"SELECT COUNT(*) AS count_result FROM {_quote(table)}"
        conditions, params = self._build_filter_conditions(filters)
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        with self._lock:
            row = self._execute(table, query, tuple(params)).fetchone()
        return int(row["count_result"]) if row else 0

    def ping(self) -> bool:
        try:
            with self._lock:
                self._connection().execute("SELECT 1").fetchone()
            return True
        except (sqlite3.Error, StoreUnavailableError) as e:
            logger.error(f"SQLite ping failed: {e}")
            return False
