"""
Use-case'ы реестра управляемых баз.

=== ЭКСПОРТЫ ===
- DatabaseManager - add/update/remove/list/info + карта подключений
- DatabaseManagerListener - наблюдатель (added/changed/removed/cleanup)
- DatabaseManagerConfig - путь к core-базе, опции SQLite, server_id

=== ИСПОЛЬЗОВАНИЕ ===

    manager = DatabaseManager(DatabaseManagerConfig(core_path="core.db", server_id="ws-1"))
    manager.initialize()
    record = manager.add_managed_database("/data/app.db", size=4096)
    manager.update_managed_database("/data/app.db", MutableFields(size=8192))
    manager.remove_managed_database("/data/app.db")  # status=removed, строка остаётся
    manager.cleanup()
"""

from .manager import (
    SCHEMA_VERSION,
    DatabaseManager,
    DatabaseManagerConfig,
    DatabaseManagerListener,
)

__all__ = [
    "SCHEMA_VERSION",
    "DatabaseManager",
    "DatabaseManagerConfig",
    "DatabaseManagerListener",
]
