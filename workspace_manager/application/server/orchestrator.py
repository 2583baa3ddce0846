"""
WorkspaceManager - связывает watcher с реестром и обслуживает запросы.

Поток данных: watcher → DatabaseEvent → вызов DatabaseManager →
уведомление менеджера → агрегированное состояние + ServerEvent подписчикам.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, List, Mapping, Optional

from workspace_manager.application.databases import DatabaseManager, DatabaseManagerListener
from workspace_manager.application.handlers import HANDLERS, HandlerContext, Response
from workspace_manager.application.monitor import FileSystemWatcher, FileSystemWatcherListener
from workspace_manager.domain.databases import (
    DatabaseEvent,
    DatabaseStatus,
    ManagedDatabase,
    MutableFields,
)

from .state import ServerEvent, ServerEventListener, ServerEventType, ServerState, ServerStatus

logger = logging.getLogger(__name__)


class _ManagerBridge(DatabaseManagerListener):
    def __init__(self, server: "WorkspaceManager"):
        self.server = server

    def on_database_added(self, record: ManagedDatabase) -> None:
        self.server._on_database_added(record)

    def on_database_changed(self, record: ManagedDatabase) -> None:
        self.server._on_database_changed(record)

    def on_database_removed(self, path: str, previous_status: Optional[DatabaseStatus]) -> None:
        self.server._on_database_removed(path, previous_status)


class _WatcherBridge(FileSystemWatcherListener):
    def __init__(self, server: "WorkspaceManager"):
        self.server = server

    def on_database_add(self, event: DatabaseEvent) -> None:
        self.server._apply_event(event, lambda: self.server._register_discovered(event))

    def on_database_change(self, event: DatabaseEvent) -> None:
        self.server._apply_event(
            event,
            lambda: self.server.database_manager.update_managed_database(
                event.path, MutableFields(size=event.size)
            ),
        )

    def on_database_unlink(self, event: DatabaseEvent) -> None:
        self.server._apply_event(
            event,
            lambda: self.server.database_manager.remove_managed_database(event.path),
        )

    def on_watch_error(self, error: Exception) -> None:
        self.server._record_error(error)


class WorkspaceManager:
    """Оркестратор: реестр баз + watcher + диспетчер запросов."""

    def __init__(
        self,
        server_id: str,
        database_manager: DatabaseManager,
        file_watcher: FileSystemWatcher,
    ):
        self.server_id = server_id
        self.database_manager = database_manager
        self.file_watcher = file_watcher

        self._state = ServerState(watched_paths=file_watcher.get_watched_paths())
        self._state_lock = threading.Lock()
        self._start_time: Optional[float] = None
        self._listeners: List[ServerEventListener] = []

        self._manager_bridge = _ManagerBridge(self)
        self._watcher_bridge = _WatcherBridge(self)
        self.database_manager.subscribe(self._manager_bridge)
        self.file_watcher.subscribe(self._watcher_bridge)

    # -------------------------------------------------------------------------
    # Жизненный цикл
    # -------------------------------------------------------------------------

    def start(self) -> None:
        with self._state_lock:
            if self._state.status is ServerStatus.RUNNING:
                logger.info("Workspace manager is already running")
                return
            self._state.status = ServerStatus.INITIALIZING
            self._state.error = None

        logger.info(f"🚀 Starting workspace manager {self.server_id}")
        try:
            self.database_manager.initialize()
            self.database_manager.restore_attachments()

            records = self.database_manager.list_managed_databases()
            with self._state_lock:
                self._state.database_count = len(records)

            # Известные реестру пути не должны повторно приходить как add
            self.file_watcher.seed({record.path: record.size for record in records})
            self.file_watcher.start()
        except Exception as exc:
            logger.error(f"❌ Failed to start workspace manager: {exc}")
            with self._state_lock:
                self._state.status = ServerStatus.ERROR
            self._record_error(exc)
            raise

        with self._state_lock:
            self._state.status = ServerStatus.RUNNING
            self._start_time = time.monotonic()
        logger.info(f"✅ Workspace manager started: {len(records)} database(s) registered")
        self._publish(ServerEvent(ServerEventType.SERVER_START))

    def stop(self) -> None:
        with self._state_lock:
            if self._state.status is ServerStatus.STOPPED:
                logger.debug("Workspace manager is already stopped")
                return

        logger.info("Stopping workspace manager...")
        self.file_watcher.stop()
        self.database_manager.cleanup()

        with self._state_lock:
            self._state.status = ServerStatus.STOPPED
            self._start_time = None
        logger.info("Workspace manager stopped")
        self._publish(ServerEvent(ServerEventType.SERVER_STOP))

    # -------------------------------------------------------------------------
    # Запросы
    # -------------------------------------------------------------------------

    def handle_message(self, request: Any) -> dict:
        """Выполняет запрос {type, data?}. Никогда не бросает исключений."""
        started = time.perf_counter()
        message_type = request.get("type") if isinstance(request, Mapping) else None
        logger.debug(f"Handling message: {message_type}")

        try:
            handler = HANDLERS.get(message_type) if isinstance(message_type, str) else None
            if handler is None:
                raise LookupError(f"Unknown message type: {message_type}")
            response = handler(request, HandlerContext(server=self))
        except Exception as exc:
            logger.warning(f"⚠️ Message {message_type} failed: {exc}")
            response = Response.fail(str(exc))

        duration = time.perf_counter() - started
        logger.debug(f"Message {message_type} handled in {duration * 1000:.1f}ms (success={response.success})")
        return response.as_dict()

    # -------------------------------------------------------------------------
    # Подписчики
    # -------------------------------------------------------------------------

    def subscribe(self, listener: ServerEventListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ServerEventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self, event: ServerEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                logger.error(f"❌ Server event listener failed on {event.type.value}: {exc}", exc_info=True)

    # -------------------------------------------------------------------------
    # Аксессоры
    # -------------------------------------------------------------------------

    def get_server_id(self) -> str:
        return self.server_id

    def get_state(self) -> ServerState:
        with self._state_lock:
            self._state.watched_paths = self.file_watcher.get_watched_paths()
            return self._state.snapshot()

    def get_uptime(self) -> float:
        """Секунды с момента старта; 0, если сервер не запущен."""
        with self._state_lock:
            if self._start_time is None:
                return 0.0
            return time.monotonic() - self._start_time

    def get_database_manager(self) -> DatabaseManager:
        return self.database_manager

    def get_file_watcher(self) -> FileSystemWatcher:
        return self.file_watcher

    # -------------------------------------------------------------------------
    # События
    # -------------------------------------------------------------------------

    def _apply_event(self, event: DatabaseEvent, action) -> None:
        logger.debug(f"Applying {event.kind.value} for {event.path}")
        try:
            action()
        except Exception as exc:
            # Ошибка одного события не останавливает watcher
            logger.error(f"❌ Error handling {event.kind.value} for {event.path}: {exc}")
            self._record_error(exc)

    def _register_discovered(self, event: DatabaseEvent) -> None:
        existing = self.database_manager.get_managed_database(event.path)
        if existing is not None and existing.status is not DatabaseStatus.REMOVED:
            # Уже зарегистрирована (например, через attach_database): это обновление
            self.database_manager.update_managed_database(event.path, MutableFields(size=event.size))
            return
        self.database_manager.add_managed_database(event.path, event.size)

    def _record_error(self, error: Exception) -> None:
        event = ServerEvent(ServerEventType.ERROR, {"error": str(error)})
        with self._state_lock:
            self._state.error = str(error)
            self._state.last_event = event
        self._publish(event)

    def _on_database_added(self, record: ManagedDatabase) -> None:
        event = ServerEvent(ServerEventType.DATABASE_ADDED, {"path": record.path})
        with self._state_lock:
            self._state.database_count += 1
            self._state.last_event = event
        self._publish(event)

    def _on_database_changed(self, record: ManagedDatabase) -> None:
        event = ServerEvent(ServerEventType.DATABASE_CHANGED, {"path": record.path})
        with self._state_lock:
            self._state.last_event = event
        self._publish(event)

    def _on_database_removed(self, path: str, previous_status: Optional[DatabaseStatus]) -> None:
        event = ServerEvent(ServerEventType.DATABASE_REMOVED, {"path": path})
        with self._state_lock:
            # Повторный unlink и снятие уже removed-записи счётчик не меняют
            if previous_status is not None and previous_status is not DatabaseStatus.REMOVED:
                self._state.database_count = max(0, self._state.database_count - 1)
            self._state.last_event = event
        self._publish(event)
