"""
Инфраструктурный адаптер SQLite.

=== ЭКСПОРТЫ ===
- SQLiteDatabase - соединение с кэшем запросов, транзакциями и типизированными ошибками
- SQLiteConfig - verbose / timeout / readonly
- Query, SCHEMA - каталог запросов и схема core-базы

=== ИСПОЛЬЗОВАНИЕ ===

    from workspace_manager.infrastructure.database import SQLiteDatabase, Query

    store = SQLiteDatabase("core.db")
    store.connect()
    store.exec(SCHEMA)
    record = store.get(Query.GET_DATABASE, ["/data/app.db"])

    # Атомарно: commit при успехе, rollback + TransactionError при ошибке
    store.transaction(lambda db: db.execute(Query.MARK_REMOVED, ["/data/app.db"]))

=== РЕЖИМЫ ===
read-write: journal_mode=WAL, foreign_keys=ON
read-only:  URI mode=ro, файл должен существовать, journal_mode не меняется
"""

from .queries import FIELD_UPDATES, SCHEMA, Query, count_rows_sql
from .sqlite import ExecuteResult, SQLiteConfig, SQLiteDatabase

__all__ = [
    "ExecuteResult",
    "FIELD_UPDATES",
    "Query",
    "SCHEMA",
    "SQLiteConfig",
    "SQLiteDatabase",
    "count_rows_sql",
]
