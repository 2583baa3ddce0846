"""
FileSystemWatcher - мониторинг корней на появление, изменение и удаление баз.

Работает опросом: фоновый поток раз в poll_interval обходит корни сканером и
сравнивает сигнатуры (size, mtime) с известными. Новый или изменённый файл
объявляется только после того, как его сигнатура простояла без изменений
stability_threshold секунд - так многошаговая запись SQLite (страницы, затем
checkpoint WAL) превращается в одно событие.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Set, Tuple

from workspace_manager.domain.databases import DatabaseEvent, DatabaseEventKind

from .file_filter import DEFAULT_IGNORED, DEFAULT_PATTERNS, FileFilter
from .scanner import FileSignature, Scanner

logger = logging.getLogger(__name__)


class WatcherState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class FileSystemWatcherListener:
    """Наблюдатель за событиями watcher'а. Методы по умолчанию пустые."""

    def on_database_event(self, event: DatabaseEvent) -> None:
        pass

    def on_database_add(self, event: DatabaseEvent) -> None:
        pass

    def on_database_change(self, event: DatabaseEvent) -> None:
        pass

    def on_database_unlink(self, event: DatabaseEvent) -> None:
        pass

    def on_started(self, server_id: str, paths: List[str]) -> None:
        pass

    def on_ready(self, server_id: str, paths: List[str]) -> None:
        pass

    def on_stopped(self, server_id: str) -> None:
        pass

    def on_watch_error(self, error: Exception) -> None:
        pass


@dataclass
class WatcherConfig:
    paths: List[str]
    patterns: List[str] = field(default_factory=lambda: list(DEFAULT_PATTERNS))
    ignored: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORED))
    poll_interval: float = 1.0  # секунды
    use_polling: bool = True
    persistent: bool = True
    stability_threshold: float = 2.0  # секунды
    server_id: str = "unknown"


@dataclass
class _Pending:
    signature: FileSignature
    since: float


def _is_under(path: str, roots: List[str]) -> bool:
    for root in roots:
        if path == root:
            return True
        prefix = root if root.endswith(os.sep) else root + os.sep
        if path.startswith(prefix):
            return True
    return False


class FileSystemWatcher:
    """Опрашивающий watcher файлов баз данных."""

    def __init__(self, config: WatcherConfig):
        self.config = config
        self.config.paths = list(config.paths)
        self.scanner = Scanner(FileFilter(config.patterns, config.ignored))

        self._state = WatcherState.STOPPED
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._listeners: List[FileSystemWatcherListener] = []

        # path -> последняя объявленная сигнатура (None: сигнатура неизвестна)
        self._known: Dict[str, Optional[FileSignature]] = {}
        self._pending: Dict[str, _Pending] = {}
        self._missing_roots: Set[str] = set()

    # -------------------------------------------------------------------------
    # Наблюдатели
    # -------------------------------------------------------------------------

    def subscribe(self, listener: FileSystemWatcherListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: FileSystemWatcherListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, method: str, *args) -> None:
        for listener in list(self._listeners):
            try:
                getattr(listener, method)(*args)
            except Exception as exc:
                logger.error(f"❌ Watcher listener {method} failed: {exc}", exc_info=True)

    def _report_error(self, error: Exception) -> None:
        logger.warning(f"⚠️ Watcher error: {error}")
        self._notify("on_watch_error", error)

    # -------------------------------------------------------------------------
    # Жизненный цикл
    # -------------------------------------------------------------------------

    @property
    def state(self) -> WatcherState:
        return self._state

    def is_running(self) -> bool:
        return self._state is WatcherState.RUNNING

    def seed(self, known: Mapping[str, Optional[int]]) -> None:
        """Загружает пути, уже известные реестру (path -> размер из реестра).

        После старта такие файлы не объявляются как add: при расхождении
        размера приходит change, при отсутствии файла - unlink.
        """
        with self._lock:
            for path, size in known.items():
                signature: Optional[FileSignature] = None
                try:
                    signature = Scanner.signature(os.stat(path))
                except OSError:
                    pass
                if signature is not None and size is not None and signature.size != size:
                    signature = None
                self._known[path] = signature
                self._pending.pop(path, None)
        logger.debug(f"Seeded watcher with {len(known)} known path(s)")

    def start(self) -> None:
        with self._lock:
            if self._state is not WatcherState.STOPPED:
                logger.info(f"Watcher is already {self._state.value}")
                return
            self._state = WatcherState.STARTING
            paths = list(self.config.paths)

        try:
            logger.info(
                f"Starting file system watcher: {len(paths)} path(s), "
                f"patterns={self.scanner.file_filter.patterns}, "
                f"poll={self.config.poll_interval}s, stability={self.config.stability_threshold}s"
            )
            if not self.config.use_polling:
                logger.warning("Native file notifications are not available, using polling")

            # Первичный скан синхронно: ошибки старта уходят вызывающему
            result = self.scanner.scan(paths)
            if result.errors:
                raise result.errors[0]

            with self._lock:
                self._missing_roots = set(result.missing_roots)
                # События первичного скана объявит первый цикл опроса
                self._diff(result.files, paths, time.monotonic())

            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name=f"fs-watcher-{self.config.server_id}",
                daemon=not self.config.persistent,
            )
            with self._lock:
                self._thread = thread
                self._stop_event = stop_event
                self._state = WatcherState.RUNNING
            thread.start()
        except Exception as exc:
            with self._lock:
                self._thread = None
                self._stop_event = None
                self._state = WatcherState.STOPPED
            logger.error(f"❌ Failed to start watcher: {exc}")
            self._notify("on_watch_error", exc)
            raise

        for root in result.missing_roots:
            logger.info(f"Watched path does not exist yet: {root}")
        logger.info("✅ File system watcher started")
        self._notify("on_started", self.config.server_id, paths)
        self._notify("on_ready", self.config.server_id, paths)

    def stop(self) -> None:
        with self._lock:
            if self._state is not WatcherState.RUNNING:
                logger.debug("Watcher is not running")
                return
            self._state = WatcherState.STOPPING
            thread, stop_event = self._thread, self._stop_event

        if stop_event is not None:
            stop_event.set()
        # Текущая доставка события не прерывается - дожидаемся её
        if thread is not None and thread is not threading.current_thread():
            thread.join()

        with self._lock:
            self._thread = None
            self._stop_event = None
            self._state = WatcherState.STOPPED

        logger.info("File system watcher stopped")
        self._notify("on_stopped", self.config.server_id)

    # -------------------------------------------------------------------------
    # Пути
    # -------------------------------------------------------------------------

    def get_watched_paths(self) -> List[str]:
        with self._lock:
            return list(self.config.paths)

    def reload_paths(self, paths: List[str]) -> None:
        """Полная замена набора путей: stop + start, если watcher запущен."""
        logger.info(f"Reloading watcher paths: {paths}")
        with self._lock:
            self.config.paths = list(paths)
            running = self._state is WatcherState.RUNNING

        if running:
            self.stop()
            self.start()

    def add_path(self, path: str) -> None:
        with self._lock:
            if path in self.config.paths:
                return
            paths = self.config.paths + [path]
        self.reload_paths(paths)

    def remove_path(self, path: str) -> None:
        with self._lock:
            if path not in self.config.paths:
                return
            paths = [p for p in self.config.paths if p != path]
        self.reload_paths(paths)

    # -------------------------------------------------------------------------
    # Опрос
    # -------------------------------------------------------------------------

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.config.poll_interval):
            try:
                self._poll(stop_event)
            except Exception as exc:
                # Ошибка одного цикла не останавливает мониторинг
                self._report_error(exc)

    def _poll(self, stop_event: threading.Event) -> None:
        with self._lock:
            paths = list(self.config.paths)

        result = self.scanner.scan(paths)
        for error in result.errors:
            self._report_error(error)

        with self._lock:
            disappeared = set(result.missing_roots) - self._missing_roots
            self._missing_roots = set(result.missing_roots)
            events = self._diff(result.files, paths, time.monotonic())

        for root in sorted(disappeared):
            self._report_error(FileNotFoundError(f"Watched path is not available: {root}"))

        for event, signature in events:
            if stop_event.is_set():
                break
            with self._lock:
                if event.kind is DatabaseEventKind.UNLINK:
                    self._known.pop(event.path, None)
                else:
                    self._known[event.path] = signature
                    self._pending.pop(event.path, None)
            self._emit(event)

    def _diff(
        self,
        files: Dict[str, FileSignature],
        roots: List[str],
        now: float,
    ) -> List[Tuple[DatabaseEvent, Optional[FileSignature]]]:
        """Сравнивает скан с известным состоянием. Вызывается под self._lock."""
        events: List[Tuple[DatabaseEvent, Optional[FileSignature]]] = []

        for path, signature in files.items():
            if path in self._known and self._known[path] == signature:
                self._pending.pop(path, None)
                continue

            pending = self._pending.get(path)
            if pending is None or pending.signature != signature:
                pending = _Pending(signature=signature, since=now)
                self._pending[path] = pending
            if now - pending.since < self.config.stability_threshold:
                continue

            kind = DatabaseEventKind.CHANGE if path in self._known else DatabaseEventKind.ADD
            events.append((DatabaseEvent(kind=kind, path=path, size=signature.size), signature))

        for path in self._known:
            # Пути вне текущих корней не отслеживаются: unlink для них не шлём
            if path not in files and _is_under(path, roots):
                events.append((DatabaseEvent(kind=DatabaseEventKind.UNLINK, path=path), None))

        for path in list(self._pending):
            if path not in files:
                del self._pending[path]

        return events

    def _emit(self, event: DatabaseEvent) -> None:
        logger.debug(f"File event: {event.kind.value} {event.path} size={event.size}")
        self._notify("on_database_event", event)
        self._notify(f"on_database_{event.kind.value}", event)
