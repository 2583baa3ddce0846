"""
Доменные объекты реестра управляемых SQLite-баз.

=== НАЗНАЧЕНИЕ ===
- ManagedDatabase - запись реестра (путь, размер, статус, временные метки)
- SystemConfigEntry - пара ключ/значение системной конфигурации
- DatabaseEvent / DatabaseEventKind - наблюдение watcher'а (add/change/unlink)
- MutableFields - единственные поля, которые можно менять через update
- DatabaseStatus - статусы жизненного цикла с таблицей переходов
- ошибки хранилища и реестра

=== ЖИЗНЕННЫЙ ЦИКЛ СТАТУСОВ ===
    active ⇄ inactive ⇄ error
       └────────┴─────────┴──→ removed (поглощающий, строка не удаляется)
"""

from .status import DatabaseStatus
from .models import (
    DatabaseEvent,
    DatabaseEventKind,
    ManagedDatabase,
    MutableFields,
    SystemConfigEntry,
    TableInfo,
)
from .errors import (
    AddDatabaseError,
    DatabaseConnectionError,
    DatabaseError,
    ExecError,
    ExecuteError,
    InitializationError,
    InvalidStatusTransition,
    NotConnectedError,
    NotFoundError,
    QueryError,
    RequestValidationError,
    TransactionError,
    WorkspaceError,
)

__all__ = [
    "DatabaseStatus",
    "DatabaseEvent",
    "DatabaseEventKind",
    "ManagedDatabase",
    "MutableFields",
    "SystemConfigEntry",
    "TableInfo",
    "AddDatabaseError",
    "DatabaseConnectionError",
    "DatabaseError",
    "ExecError",
    "ExecuteError",
    "InitializationError",
    "InvalidStatusTransition",
    "NotConnectedError",
    "NotFoundError",
    "QueryError",
    "RequestValidationError",
    "TransactionError",
    "WorkspaceError",
]
