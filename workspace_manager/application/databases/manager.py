"""
DatabaseManager - единственный владелец реестра управляемых баз.

Держит core-базу (system_config + managed_databases) и карту подключённых
read-only соединений к целевым базам. Все изменения реестра и карты идут под
одним RLock: add для пути P всегда завершается до change/unlink того же P.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from workspace_manager.domain.databases import (
    AddDatabaseError,
    DatabaseError,
    DatabaseStatus,
    InitializationError,
    InvalidStatusTransition,
    ManagedDatabase,
    MutableFields,
    NotFoundError,
    SystemConfigEntry,
    TableInfo,
)
from workspace_manager.infrastructure.database import (
    FIELD_UPDATES,
    SCHEMA,
    Query,
    SQLiteConfig,
    SQLiteDatabase,
    count_rows_sql,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"


class DatabaseManagerListener:
    """Наблюдатель за жизненным циклом записей реестра.

    Методы по умолчанию ничего не делают - переопределяйте нужные.
    """

    def on_database_added(self, record: ManagedDatabase) -> None:
        pass

    def on_database_changed(self, record: ManagedDatabase) -> None:
        pass

    def on_database_removed(self, path: str, previous_status: Optional[DatabaseStatus]) -> None:
        """previous_status=None - записи для пути не было (повторный unlink)."""

    def on_cleanup(self) -> None:
        pass


@dataclass
class DatabaseManagerConfig:
    core_path: str = "core.db"
    sqlite: SQLiteConfig = field(default_factory=SQLiteConfig)
    server_id: str = "unknown"


class DatabaseManager:
    """Реестр управляемых SQLite-баз и их подключений."""

    def __init__(self, config: Optional[DatabaseManagerConfig] = None):
        self.config = config or DatabaseManagerConfig()
        self.core_db = SQLiteDatabase(self.config.core_path, self.config.sqlite)
        self._attached: Dict[str, SQLiteDatabase] = {}
        self._listeners: List[DatabaseManagerListener] = []
        self._lock = threading.RLock()
        self._initialized = False

    # -------------------------------------------------------------------------
    # Наблюдатели
    # -------------------------------------------------------------------------

    def subscribe(self, listener: DatabaseManagerListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: DatabaseManagerListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, method: str, *args: Any) -> None:
        for listener in list(self._listeners):
            getattr(listener, method)(*args)

    # -------------------------------------------------------------------------
    # Инициализация
    # -------------------------------------------------------------------------

    def initialize(self) -> None:
        with self._lock:
            if self._initialized:
                return

            try:
                logger.info(f"Initializing database manager (core: {self.config.core_path})")
                self.core_db.connect()
                self.core_db.exec(SCHEMA)
                self._initialize_system_config()
                self._initialized = True
                logger.info("✅ Database manager initialized")
            except DatabaseError as exc:
                raise InitializationError(
                    f"Failed to initialize database manager: {exc}",
                    operation="initialize",
                ) from exc

    def _initialize_system_config(self) -> None:
        configs = {
            "server_id": self.config.server_id,
            "initialization_status": {"status": "completed", "version": SCHEMA_VERSION},
            "schema_version": {"version": SCHEMA_VERSION},
        }

        def seed(db: SQLiteDatabase) -> None:
            for key, value in configs.items():
                db.execute(Query.UPSERT_CONFIG, [key, json.dumps(value)])

        self.core_db.transaction(seed)

    def is_initialized(self) -> bool:
        return self._initialized

    # -------------------------------------------------------------------------
    # Системная конфигурация
    # -------------------------------------------------------------------------

    def get_system_config(self, key: str) -> Optional[SystemConfigEntry]:
        row = self.core_db.get(Query.GET_CONFIG, [key])
        return SystemConfigEntry.from_row(row) if row else None

    def set_system_config(self, key: str, value: Any) -> None:
        self.core_db.execute(Query.UPSERT_CONFIG, [key, json.dumps(value)])

    # -------------------------------------------------------------------------
    # Жизненный цикл записей
    # -------------------------------------------------------------------------

    def add_managed_database(self, path: str, size: Optional[int] = None) -> ManagedDatabase:
        """Регистрирует новую базу со статусом active и подключается к ней.

        Существующая запись для пути (в любом статусе, включая removed) - ошибка:
        повторная регистрация не превращается в upsert.
        """
        with self._lock:

            def insert(db: SQLiteDatabase) -> tuple[ManagedDatabase, SQLiteDatabase]:
                db.execute(Query.INSERT_DATABASE, [path, os.path.basename(path), size])
                row = db.get(Query.GET_DATABASE, [path])
                if row is None:
                    raise NotFoundError(
                        "Failed to retrieve newly created database record",
                        operation="addManagedDatabase",
                    )
                # Подключение внутри транзакции: если открыть файл не удалось,
                # вставка откатывается вместе с ним
                connection = SQLiteDatabase(
                    path,
                    SQLiteConfig(readonly=True, timeout=self.config.sqlite.timeout),
                )
                connection.connect()
                return ManagedDatabase.from_row(row), connection

            try:
                record, connection = self.core_db.transaction(insert)
            except DatabaseError as exc:
                raise AddDatabaseError(
                    f"Failed to add managed database {path}: {exc}",
                    operation="addManagedDatabase",
                ) from exc

            self._attached[path] = connection
            logger.info(f"➕ Database added: {path} (size={size})")
            self._notify("on_database_added", record)
            return record

    def update_managed_database(self, path: str, fields: MutableFields) -> Optional[ManagedDatabase]:
        """Меняет size/status/last_checked; last_modified обновляется всегда.

        Неизвестный путь и removed-запись - тихий no-op без уведомления.
        """
        with self._lock:
            current = self.get_managed_database(path)
            if current is None:
                logger.debug(f"Update skipped, no record for {path}")
                return None

            assignments = fields.assignments()
            if "status" in assignments:
                target = DatabaseStatus(assignments["status"])
                if target is DatabaseStatus.REMOVED:
                    raise InvalidStatusTransition(
                        f"Use removeManagedDatabase to remove {path}",
                        operation="updateManagedDatabase",
                    )
                if not current.status.can_transition_to(target):
                    raise InvalidStatusTransition(
                        f"Invalid status transition for {path}: {current.status.value} -> {target.value}",
                        operation="updateManagedDatabase",
                    )

            if current.status is DatabaseStatus.REMOVED:
                # Снятая запись больше не отслеживается: изменения файла игнорируем
                logger.debug(f"Update skipped, {path} is removed")
                return None

            def apply(db: SQLiteDatabase) -> None:
                if not assignments:
                    db.execute(Query.TOUCH_DATABASE, [path])
                for column, value in assignments.items():
                    db.execute(FIELD_UPDATES[column], [value, path])

            self.core_db.transaction(apply)

            record = self.get_managed_database(path)
            if record is None:
                return None

            self._sync_attachment(record)
            logger.debug(f"Database changed: {path} {assignments}")
            self._notify("on_database_changed", record)
            return record

    def remove_managed_database(self, path: str) -> None:
        """Мягкое удаление: status=removed, строка остаётся. Идемпотентно."""
        with self._lock:
            current = self.get_managed_database(path)
            previous_status = current.status if current else None

            self.core_db.execute(Query.MARK_REMOVED, [path])
            self._detach(path)

            if current is None:
                logger.debug(f"Remove for unknown path: {path}")
            else:
                logger.info(f"➖ Database removed: {path}")
            self._notify("on_database_removed", path, previous_status)

    def get_managed_database(self, path: str) -> Optional[ManagedDatabase]:
        row = self.core_db.get(Query.GET_DATABASE, [path])
        return ManagedDatabase.from_row(row) if row else None

    def list_managed_databases(self) -> List[ManagedDatabase]:
        """Все записи кроме removed, свежие изменения первыми."""
        return [ManagedDatabase.from_row(row) for row in self.core_db.query(Query.LIST_DATABASES)]

    def count_managed_databases(self) -> int:
        row = self.core_db.get(Query.COUNT_DATABASES)
        return int(row["total"]) if row else 0

    def get_database_info(self, path: str) -> List[TableInfo]:
        """Таблицы подключённой базы с количеством строк."""
        with self._lock:
            connection = self._attached.get(path)
            if connection is None:
                raise NotFoundError(
                    f"Database not found or not loaded: {path}",
                    operation="getDatabaseInfo",
                )

            tables = []
            for row in connection.query(Query.LIST_TABLES):
                counted = connection.get(count_rows_sql(row["name"]))
                tables.append(
                    TableInfo(
                        name=row["name"],
                        row_count=int(counted["row_count"]) if counted else 0,
                        sql=row["sql"],
                    )
                )
            return tables

    # -------------------------------------------------------------------------
    # Подключения
    # -------------------------------------------------------------------------

    def is_attached(self, path: str) -> bool:
        return path in self._attached

    def attached_paths(self) -> List[str]:
        with self._lock:
            return list(self._attached)

    def _attach(self, path: str) -> None:
        if path in self._attached:
            return
        connection = SQLiteDatabase(path, SQLiteConfig(readonly=True, timeout=self.config.sqlite.timeout))
        connection.connect()
        self._attached[path] = connection

    def _detach(self, path: str) -> None:
        connection = self._attached.pop(path, None)
        if connection is not None:
            connection.disconnect()
            logger.debug(f"Detached {path}")

    def _sync_attachment(self, record: ManagedDatabase) -> None:
        """Подключение существует только пока запись active."""
        if not record.is_active:
            self._detach(record.path)
            return
        try:
            self._attach(record.path)
        except DatabaseError as exc:
            logger.warning(f"⚠️ Cannot attach {record.path}: {exc}")

    def restore_attachments(self) -> int:
        """Переподключает active-записи после рестарта.

        Записи, файл которых не открывается, переводятся в error.
        """
        restored = 0
        with self._lock:
            for row in self.core_db.query(Query.LIST_ACTIVE_DATABASES):
                path = row["path"]
                if path in self._attached:
                    continue
                try:
                    self._attach(path)
                    restored += 1
                except DatabaseError as exc:
                    logger.warning(f"⚠️ Cannot restore {path}: {exc}")
                    self.update_managed_database(path, MutableFields(status=DatabaseStatus.ERROR))
        if restored:
            logger.info(f"🔄 Restored {restored} attachment(s)")
        return restored

    def cleanup(self) -> None:
        with self._lock:
            for path, connection in list(self._attached.items()):
                try:
                    connection.disconnect()
                except DatabaseError as exc:
                    logger.error(f"Failed to close database {path}: {exc}")
            self._attached.clear()

            self.core_db.disconnect()
            self._initialized = False
            logger.info("Database manager cleaned up")
            self._notify("on_cleanup")
