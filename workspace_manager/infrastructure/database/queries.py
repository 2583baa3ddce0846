"""
Каталог SQL-запросов core-базы.

Каждый запрос к реестру и системной конфигурации описан здесь. Хранилище
держит по одному курсору на член Query, так что число курсоров ограничено
этим перечислением. Скомпилированные выражения живут в LRU-кэше самого
sqlite3 (по тексту SQL); его размер выставляется от len(Query) с запасом
на ad-hoc запросы к целевым базам.
"""

from enum import Enum


SCHEMA = """
    CREATE TABLE IF NOT EXISTS system_config (
        config_key TEXT PRIMARY KEY,
        config_value TEXT NOT NULL,
        last_modified DATETIME DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS managed_databases (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        path TEXT UNIQUE NOT NULL,
        name TEXT NOT NULL,
        size INTEGER,
        last_modified DATETIME,
        status TEXT CHECK (status IN ('active', 'inactive', 'error', 'removed')) DEFAULT 'active',
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        last_checked DATETIME DEFAULT CURRENT_TIMESTAMP
    );

    CREATE INDEX IF NOT EXISTS idx_databases_path ON managed_databases(path);
    CREATE INDEX IF NOT EXISTS idx_databases_status ON managed_databases(status);
"""


class Query(str, Enum):
    """Закрытый набор запросов к core-базе."""

    UPSERT_CONFIG = """
        INSERT OR REPLACE INTO system_config (config_key, config_value, last_modified)
        VALUES (?, ?, CURRENT_TIMESTAMP)
    """
    GET_CONFIG = "SELECT * FROM system_config WHERE config_key = ?"

    INSERT_DATABASE = """
        INSERT INTO managed_databases (path, name, size, last_modified)
        VALUES (?, ?, ?, CURRENT_TIMESTAMP)
    """
    GET_DATABASE = "SELECT * FROM managed_databases WHERE path = ?"
    LIST_DATABASES = """
        SELECT * FROM managed_databases
        WHERE status != 'removed'
        ORDER BY last_modified DESC, id DESC
    """
    LIST_ACTIVE_DATABASES = "SELECT * FROM managed_databases WHERE status = 'active' ORDER BY id"
    COUNT_DATABASES = "SELECT COUNT(*) AS total FROM managed_databases WHERE status != 'removed'"

    UPDATE_SIZE = """
        UPDATE managed_databases SET size = ?, last_modified = CURRENT_TIMESTAMP WHERE path = ?
    """
    UPDATE_STATUS = """
        UPDATE managed_databases SET status = ?, last_modified = CURRENT_TIMESTAMP WHERE path = ?
    """
    UPDATE_LAST_CHECKED = """
        UPDATE managed_databases SET last_checked = ?, last_modified = CURRENT_TIMESTAMP WHERE path = ?
    """
    TOUCH_DATABASE = "UPDATE managed_databases SET last_modified = CURRENT_TIMESTAMP WHERE path = ?"
    MARK_REMOVED = """
        UPDATE managed_databases SET status = 'removed', last_modified = CURRENT_TIMESTAMP WHERE path = ?
    """

    # Запросы к подключённым (read-only) целевым базам
    LIST_TABLES = """
        SELECT name, sql FROM sqlite_master
        WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
        ORDER BY name
    """

    @property
    def sql(self) -> str:
        return self.value


# Колонка → запрос, обновляющий только её (и last_modified)
FIELD_UPDATES = {
    "size": Query.UPDATE_SIZE,
    "status": Query.UPDATE_STATUS,
    "last_checked": Query.UPDATE_LAST_CHECKED,
}


def count_rows_sql(table: str) -> str:
    """COUNT(*) по таблице целевой базы; имя экранируется как идентификатор."""
    quoted = '"' + table.replace('"', '""') + '"'
    return f"SELECT COUNT(*) AS row_count FROM {quoted}"
