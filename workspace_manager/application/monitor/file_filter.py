import fnmatch
from pathlib import PurePath
from typing import Iterable, List

DEFAULT_PATTERNS = ["*.db", "*.sqlite", "*.sqlite3"]

# VCS, артефакты сборки и служебные файлы самого SQLite (journal/WAL/shm):
# запись в них не должна порождать событий
DEFAULT_IGNORED = [
    "node_modules",
    ".git",
    "dist",
    "*-journal",
    "*-wal",
    "*-shm",
]


def _normalize(patterns: Iterable[str]) -> List[str]:
    result = []
    for pattern in patterns:
        pattern = pattern.strip()
        while pattern.startswith("**/"):
            pattern = pattern[3:]
        if pattern.endswith("/**"):
            pattern = pattern[:-3]
        if pattern:
            result.append(pattern)
    return result


class FileFilter:
    """Отбор файлов баз данных по glob-шаблонам и исключениям"""

    def __init__(self, patterns: List[str] = None, ignored: List[str] = None):
        """
        Args:
            patterns: Шаблоны файлов баз (например, ['*.db', '**/*.sqlite'])
            ignored: Шаблоны имён папок и файлов для игнорирования (например, ['.git', '*-wal'])
        """
        self.patterns: List[str] = _normalize(DEFAULT_PATTERNS if patterns is None else patterns)
        self.ignored: List[str] = _normalize(DEFAULT_IGNORED if ignored is None else ignored)

    def is_ignored(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.ignored)

    def should_skip_directory(self, dir_name: str) -> bool:
        """Проверяет, нужно ли пропустить директорию"""
        return self.is_ignored(dir_name)

    def matches(self, relative_path: str) -> bool:
        """Совпадает ли путь (относительно корня) с одним из шаблонов баз"""
        name = PurePath(relative_path).name
        for pattern in self.patterns:
            # Шаблоны с '/' сверяем с относительным путём, остальные - с именем
            target = relative_path if "/" in pattern else name
            if fnmatch.fnmatch(target, pattern):
                return True
        return False

    def should_skip_file(self, relative_path: str) -> bool:
        """
        Проверяет, нужно ли пропустить файл

        Returns:
            True если файл игнорируется или не похож на базу данных
        """
        if self.is_ignored(PurePath(relative_path).name):
            return True
        return not self.matches(relative_path)
