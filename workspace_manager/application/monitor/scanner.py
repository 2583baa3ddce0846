import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, NamedTuple

from .file_filter import FileFilter


class FileSignature(NamedTuple):
    """Размер и mtime: пока они не меняются, запись файла считается завершённой"""

    size: int
    mtime_ns: int


@dataclass
class ScanResult:
    files: Dict[str, FileSignature] = field(default_factory=dict)
    missing_roots: List[str] = field(default_factory=list)
    errors: List[OSError] = field(default_factory=list)


class Scanner:
    def __init__(self, file_filter: FileFilter = None):
        self.file_filter = file_filter or FileFilter()

    @staticmethod
    def signature(stat_info: os.stat_result) -> FileSignature:
        return FileSignature(size=stat_info.st_size, mtime_ns=stat_info.st_mtime_ns)

    def scan(self, roots: List[str]) -> ScanResult:
        """Обходит корни и возвращает {путь: сигнатура} для файлов баз.

        Пути строятся от корня в том виде, в каком он задан в конфигурации.
        Несуществующие корни не ошибка - они попадают в missing_roots.
        """
        result = ScanResult()

        for root in roots:
            root_path = Path(root)

            if root_path.is_file():
                # Корнем может быть сам файл базы
                if not self.file_filter.should_skip_file(root_path.name):
                    self._stat_into(result, root)
                continue

            if not root_path.exists():
                result.missing_roots.append(root)
                continue

            # os.walk делает один scandir на папку - быстрее чем rglob
            for current, dirs, filenames in os.walk(root, onerror=result.errors.append):
                dirs[:] = [d for d in dirs if not self.file_filter.should_skip_directory(d)]

                relative_dir = os.path.relpath(current, root)
                for filename in filenames:
                    relative = filename if relative_dir == "." else f"{relative_dir}/{filename}"
                    relative = relative.replace(os.sep, "/")
                    if self.file_filter.should_skip_file(relative):
                        continue
                    self._stat_into(result, os.path.join(current, filename))

        return result

    def _stat_into(self, result: ScanResult, path: str) -> None:
        try:
            stat_info = os.stat(path)
        except FileNotFoundError:
            # Файл исчез между scandir и stat
            return
        except OSError as exc:
            result.errors.append(exc)
            return
        result.files[path] = self.signature(stat_info)
