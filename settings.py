"""
Настройки приложения

"""
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Определяем путь к корню проекта (где находится settings.py)
PROJECT_ROOT = Path(__file__).parent
ENV_FILE = PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Настройки приложения

    Примечание: Значения можно переопределить через переменные окружения
    или .env рядом с settings.py. Списки задаются через запятую.
    """

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Application
    APP_NAME: str = "SQLite Workspace Manager"
    VERSION: str = "0.3.1"
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s - %(message)s"

    # Server identity (не задан - генерируется workspace-manager-<uuid4>)
    SERVER_ID: Optional[str] = None

    # Core database
    CORE_DB_PATH: str = "core.db"
    SQLITE_VERBOSE: bool = False
    SQLITE_TIMEOUT: float = 5.0  # секунды ожидания блокировки

    # File Monitoring
    WATCH_PATHS: str = ""
    WATCH_PATTERNS: str = "*.db,*.sqlite,*.sqlite3"
    WATCH_IGNORED: str = "node_modules,.git,dist,*-journal,*-wal,*-shm"
    POLL_INTERVAL: float = 1.0  # секунды
    USE_POLLING: bool = True
    PERSISTENT: bool = True  # поток watcher'а держит процесс
    STABILITY_THRESHOLD: float = 2.0  # секунды без изменений до события

    @staticmethod
    def split_list(value: str) -> List[str]:
        """'a, b,,c' -> ['a', 'b', 'c']"""
        return [item.strip() for item in value.split(",") if item.strip()]


settings = Settings()
