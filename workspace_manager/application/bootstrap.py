from __future__ import annotations

import uuid
from typing import List, Optional

from settings import Settings, settings
from workspace_manager.application.databases import DatabaseManager, DatabaseManagerConfig
from workspace_manager.application.monitor import FileSystemWatcher, WatcherConfig
from workspace_manager.application.server import WorkspaceManager
from workspace_manager.infrastructure.database import SQLiteConfig

SERVER_ID_PREFIX = "workspace-manager"


def resolve_server_id(app_settings: Settings = settings) -> str:
    """SERVER_ID из настроек или сгенерированный workspace-manager-<uuid4>."""

    return app_settings.SERVER_ID or f"{SERVER_ID_PREFIX}-{uuid.uuid4()}"


def build_database_manager(app_settings: Settings, server_id: str) -> DatabaseManager:
    """Создаёт реестр баз поверх core-базы из настроек."""

    return DatabaseManager(
        DatabaseManagerConfig(
            core_path=app_settings.CORE_DB_PATH,
            sqlite=SQLiteConfig(
                verbose=app_settings.SQLITE_VERBOSE,
                timeout=app_settings.SQLITE_TIMEOUT,
            ),
            server_id=server_id,
        )
    )


def build_file_watcher(
    app_settings: Settings,
    server_id: str,
    *,
    watch_paths: Optional[List[str]] = None,
) -> FileSystemWatcher:
    paths = watch_paths if watch_paths is not None else Settings.split_list(app_settings.WATCH_PATHS)
    return FileSystemWatcher(
        WatcherConfig(
            paths=paths,
            patterns=Settings.split_list(app_settings.WATCH_PATTERNS),
            ignored=Settings.split_list(app_settings.WATCH_IGNORED),
            poll_interval=app_settings.POLL_INTERVAL,
            use_polling=app_settings.USE_POLLING,
            persistent=app_settings.PERSISTENT,
            stability_threshold=app_settings.STABILITY_THRESHOLD,
            server_id=server_id,
        )
    )


def build_workspace_manager(
    app_settings: Settings = settings,
    *,
    watch_paths: Optional[List[str]] = None,
) -> WorkspaceManager:
    """Полный bootstrap оркестратора (без запуска)."""

    server_id = resolve_server_id(app_settings)
    return WorkspaceManager(
        server_id=server_id,
        database_manager=build_database_manager(app_settings, server_id),
        file_watcher=build_file_watcher(app_settings, server_id, watch_paths=watch_paths),
    )


__all__ = [
    "SERVER_ID_PREFIX",
    "resolve_server_id",
    "build_database_manager",
    "build_file_watcher",
    "build_workspace_manager",
]
