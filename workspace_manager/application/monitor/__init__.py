"""
Мониторинг файловой системы на появление, изменение и удаление SQLite-баз.

=== СОСТАВ ===
- FileFilter - glob-шаблоны баз и правила игнорирования
- Scanner - обход корней, сигнатуры (size, mtime) найденных файлов
- FileSystemWatcher - фоновый опрос с окном стабильности и событиями add/change/unlink
"""

from .file_filter import DEFAULT_IGNORED, DEFAULT_PATTERNS, FileFilter
from .scanner import FileSignature, ScanResult, Scanner
from .watcher import (
    FileSystemWatcher,
    FileSystemWatcherListener,
    WatcherConfig,
    WatcherState,
)

__all__ = [
    "DEFAULT_IGNORED",
    "DEFAULT_PATTERNS",
    "FileFilter",
    "FileSignature",
    "ScanResult",
    "Scanner",
    "FileSystemWatcher",
    "FileSystemWatcherListener",
    "WatcherConfig",
    "WatcherState",
]
