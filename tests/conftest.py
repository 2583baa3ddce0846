"""
Pytest fixtures для тестирования workspace manager
"""
import logging
import sqlite3
import time
from pathlib import Path
from typing import Callable, Generator

import pytest

from settings import Settings
from workspace_manager.application.bootstrap import build_workspace_manager
from workspace_manager.application.databases import DatabaseManager, DatabaseManagerConfig
from workspace_manager.application.monitor import FileSystemWatcher, WatcherConfig
from workspace_manager.application.server import WorkspaceManager

# Короткие интервалы, чтобы события приходили за доли секунды
POLL_INTERVAL = 0.05
STABILITY_THRESHOLD = 0.1
EVENT_TIMEOUT = 5.0


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """Настройка логирования для тестов - изолированно от основного приложения"""
    root_logger = logging.getLogger()

    # Очищаем все существующие handlers
    root_logger.handlers.clear()

    # Создаём новый handler для тестов
    handler = logging.StreamHandler()
    handler.setLevel(logging.ERROR)  # В тестах показываем только ошибки
    formatter = logging.Formatter('%(asctime)s | %(levelname)-8s | %(name)s - %(message)s')
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.ERROR)

    yield


def wait_for(condition: Callable[[], bool], timeout: float = EVENT_TIMEOUT, interval: float = 0.02) -> bool:
    """Ждёт, пока condition() не вернёт True; False по таймауту"""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return condition()


def create_sqlite_db(path: Path, rows: int = 0) -> Path:
    """Создаёт настоящую SQLite-базу с таблицей items и rows строками"""
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        conn.execute("CREATE TABLE IF NOT EXISTS items (id INTEGER PRIMARY KEY, title TEXT)")
        conn.executemany("INSERT INTO items (title) VALUES (?)", [(f"item-{i}",) for i in range(rows)])
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def workspace(tmp_path) -> Path:
    """Отслеживаемая папка (core-база лежит отдельно, чтобы не попасть под *.db)"""
    folder = tmp_path / "watched"
    folder.mkdir()
    return folder


@pytest.fixture
def core_db_path(tmp_path) -> str:
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    return str(state_dir / "core.db")


@pytest.fixture
def database_manager(core_db_path) -> Generator[DatabaseManager, None, None]:
    manager = DatabaseManager(DatabaseManagerConfig(core_path=core_db_path, server_id="test-server"))
    manager.initialize()
    yield manager
    manager.cleanup()


@pytest.fixture
def make_watcher() -> Generator[Callable[..., FileSystemWatcher], None, None]:
    """Фабрика watcher'ов с короткими интервалами; все останавливаются после теста"""
    created = []

    def _make(paths, **overrides) -> FileSystemWatcher:
        options = dict(
            poll_interval=POLL_INTERVAL,
            stability_threshold=STABILITY_THRESHOLD,
            persistent=False,
            server_id="test-server",
        )
        options.update(overrides)
        watcher = FileSystemWatcher(WatcherConfig(paths=[str(p) for p in paths], **options))
        created.append(watcher)
        return watcher

    yield _make

    for watcher in created:
        watcher.stop()


@pytest.fixture
def test_settings(core_db_path, workspace) -> Settings:
    return Settings(
        SERVER_ID="test-server",
        CORE_DB_PATH=core_db_path,
        WATCH_PATHS=str(workspace),
        POLL_INTERVAL=POLL_INTERVAL,
        STABILITY_THRESHOLD=STABILITY_THRESHOLD,
        PERSISTENT=False,
    )


@pytest.fixture
def server(test_settings) -> Generator[WorkspaceManager, None, None]:
    """Незапущенный оркестратор; останавливается после теста"""
    manager = build_workspace_manager(test_settings)
    yield manager
    manager.stop()


@pytest.fixture
def running_server(server) -> WorkspaceManager:
    server.start()
    return server
