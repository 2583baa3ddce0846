"""
Обёртка над sqlite3 для core-базы и подключаемых целевых баз.

Все операции выполняются под RLock, поэтому один экземпляр можно безопасно
использовать из потока watcher'а и из потоков обработки запросов.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, TypeVar, Union

from workspace_manager.domain.databases.errors import (
    DatabaseConnectionError,
    ExecError,
    ExecuteError,
    NotConnectedError,
    QueryError,
    TransactionError,
)

from .queries import Query

logger = logging.getLogger(__name__)

T = TypeVar("T")

# LRU sqlite3 по тексту SQL: все члены Query плюс ad-hoc запросы (COUNT по таблицам)
STATEMENT_CACHE_SIZE = len(Query) + 64
Statement = Union[Query, str]


@dataclass(frozen=True)
class SQLiteConfig:
    verbose: bool = False
    timeout: float = 5.0  # busy timeout, секунды
    readonly: bool = False


@dataclass(frozen=True)
class ExecuteResult:
    """Итог выполнения изменяющего запроса."""

    changes: int
    last_row_id: Optional[int]


class SQLiteDatabase:
    """SQLite-соединение с курсорами по членам Query и транзакциями."""

    def __init__(self, filename: Union[str, Path], config: Optional[SQLiteConfig] = None):
        self.filename = str(filename)
        self.config = config or SQLiteConfig()
        self._conn: Optional[sqlite3.Connection] = None
        self._statements: Dict[Query, sqlite3.Cursor] = {}
        self._lock = threading.RLock()
        self._transaction_depth = 0

    # -------------------------------------------------------------------------
    # Подключение
    # -------------------------------------------------------------------------

    def connect(self) -> None:
        with self._lock:
            if self._conn is not None:
                return

            try:
                if self.config.readonly:
                    # mode=ro: файл обязан существовать, journal_mode не трогаем
                    uri = Path(self.filename).resolve().as_uri() + "?mode=ro"
                    conn = sqlite3.connect(
                        uri,
                        uri=True,
                        timeout=self.config.timeout,
                        check_same_thread=False,
                        cached_statements=STATEMENT_CACHE_SIZE,
                        isolation_level=None,
                    )
                else:
                    conn = sqlite3.connect(
                        self.filename,
                        timeout=self.config.timeout,
                        check_same_thread=False,
                        cached_statements=STATEMENT_CACHE_SIZE,
                        isolation_level=None,
                    )
                conn.row_factory = sqlite3.Row
                if self.config.verbose:
                    conn.set_trace_callback(lambda sql: logger.debug(f"[{self.filename}] {sql}"))
                conn.execute("PRAGMA foreign_keys = ON")
                if not self.config.readonly:
                    conn.execute("PRAGMA journal_mode = WAL")
            except sqlite3.Error as exc:
                raise DatabaseConnectionError(
                    f"Failed to connect to database: {exc}",
                    operation="connect",
                ) from exc

            self._conn = conn
            logger.debug(f"Connected to database: {self.filename} (readonly={self.config.readonly})")

    def disconnect(self) -> None:
        with self._lock:
            if self._conn is None:
                return

            try:
                for cursor in self._statements.values():
                    cursor.close()
                self._statements.clear()
                self._conn.close()
            except sqlite3.Error as exc:
                raise DatabaseConnectionError(
                    f"Failed to disconnect from database: {exc}",
                    code="DISCONNECT_ERROR",
                    operation="disconnect",
                ) from exc
            finally:
                self._conn = None
                self._transaction_depth = 0

            logger.debug(f"Disconnected from database: {self.filename}")

    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def cached_statements(self) -> int:
        return len(self._statements)

    # -------------------------------------------------------------------------
    # Запросы
    # -------------------------------------------------------------------------

    def _cursor(self, statement: Statement, operation: str) -> tuple[sqlite3.Cursor, str]:
        if self._conn is None:
            raise NotConnectedError(operation)

        if isinstance(statement, Query):
            cursor = self._statements.get(statement)
            if cursor is None:
                cursor = self._conn.cursor()
                self._statements[statement] = cursor
            return cursor, statement.sql

        return self._conn.cursor(), statement

    def query(self, statement: Statement, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        with self._lock:
            cursor, sql = self._cursor(statement, "query")
            try:
                rows = cursor.execute(sql, tuple(params)).fetchall()
            except sqlite3.Error as exc:
                raise QueryError(f"Query failed: {exc}", operation="query") from exc
            return [dict(row) for row in rows]

    def get(self, statement: Statement, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        with self._lock:
            cursor, sql = self._cursor(statement, "get")
            try:
                row = cursor.execute(sql, tuple(params)).fetchone()
                # Дочитываем курсор, чтобы statement был сброшен до следующего вызова
                cursor.fetchall()
            except sqlite3.Error as exc:
                raise QueryError(f"Get failed: {exc}", code="GET_ERROR", operation="get") from exc
            return dict(row) if row is not None else None

    def exists(self, statement: Statement, params: Sequence[Any] = ()) -> bool:
        return self.get(statement, params) is not None

    def execute(self, statement: Statement, params: Sequence[Any] = ()) -> ExecuteResult:
        with self._lock:
            cursor, sql = self._cursor(statement, "execute")
            try:
                cursor.execute(sql, tuple(params))
            except sqlite3.Error as exc:
                raise ExecuteError(f"Execute failed: {exc}", operation="execute") from exc
            return ExecuteResult(changes=cursor.rowcount, last_row_id=cursor.lastrowid)

    def exec(self, script: str) -> None:
        """DDL и многострочные скрипты; не кэшируются."""
        with self._lock:
            if self._conn is None:
                raise NotConnectedError("exec")
            try:
                self._conn.executescript(script)
            except sqlite3.Error as exc:
                raise ExecError(f"Exec failed: {exc}", operation="exec") from exc

    # -------------------------------------------------------------------------
    # Транзакции
    # -------------------------------------------------------------------------

    @contextmanager
    def _transaction(self) -> Iterator["SQLiteDatabase"]:
        with self._lock:
            if self._conn is None:
                raise NotConnectedError("transaction")

            # Вложенная транзакция присоединяется к внешней
            if self._transaction_depth > 0:
                self._transaction_depth += 1
                try:
                    yield self
                finally:
                    self._transaction_depth -= 1
                return

            try:
                self._conn.execute("BEGIN")
            except sqlite3.Error as exc:
                raise TransactionError(f"Begin failed: {exc}", operation="transaction") from exc
            self._transaction_depth = 1
            try:
                yield self
            except Exception as exc:
                self._transaction_depth = 0
                try:
                    self._conn.execute("ROLLBACK")
                except sqlite3.Error as rollback_exc:
                    logger.error(f"Rollback failed on {self.filename}: {rollback_exc}")
                if isinstance(exc, TransactionError):
                    raise
                raise TransactionError(
                    f"Transaction failed: {exc}",
                    operation="transaction",
                ) from exc
            else:
                self._transaction_depth = 0
                try:
                    self._conn.execute("COMMIT")
                except sqlite3.Error as exc:
                    try:
                        self._conn.execute("ROLLBACK")
                    except sqlite3.Error as rollback_exc:
                        logger.error(f"Rollback failed on {self.filename}: {rollback_exc}")
                    raise TransactionError(f"Commit failed: {exc}", operation="transaction") from exc

    def transaction(self, body: Callable[["SQLiteDatabase"], T]) -> T:
        """BEGIN → body(self) → COMMIT; при любой ошибке ROLLBACK и TransactionError."""
        with self._transaction():
            return body(self)


__all__ = ["SQLiteDatabase", "SQLiteConfig", "ExecuteResult"]
