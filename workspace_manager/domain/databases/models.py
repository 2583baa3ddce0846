from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from .status import DatabaseStatus


@dataclass(slots=True)
class ManagedDatabase:
    """Запись реестра управляемых баз (строка managed_databases)."""

    id: int
    path: str
    name: str
    status: DatabaseStatus
    size: Optional[int] = None
    created_at: Optional[str] = None
    last_modified: Optional[str] = None
    last_checked: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ManagedDatabase":
        return cls(
            id=row["id"],
            path=row["path"],
            name=row["name"],
            status=DatabaseStatus(row["status"]),
            size=row["size"],
            created_at=row["created_at"],
            last_modified=row["last_modified"],
            last_checked=row["last_checked"],
        )

    @property
    def is_active(self) -> bool:
        return self.status is DatabaseStatus.ACTIVE

    def as_dict(self) -> dict:
        """Представление для ответов протокола."""
        return {
            "path": self.path,
            "name": self.name,
            "size": self.size,
            "status": self.status.value,
            "lastModified": self.last_modified,
        }


@dataclass(slots=True)
class SystemConfigEntry:
    """Строка system_config; значение хранится как JSON-текст."""

    config_key: str
    config_value: str
    last_modified: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SystemConfigEntry":
        return cls(
            config_key=row["config_key"],
            config_value=row["config_value"],
            last_modified=row["last_modified"],
        )

    @property
    def value(self) -> Any:
        return json.loads(self.config_value)


@dataclass(slots=True)
class TableInfo:
    """Таблица целевой базы и количество строк в ней."""

    name: str
    row_count: int = 0
    sql: Optional[str] = None

    def as_dict(self) -> dict:
        return {"name": self.name, "rowCount": self.row_count}


@dataclass(slots=True)
class MutableFields:
    """Поля записи, которые разрешено менять через update.

    None означает «не трогать поле».
    """

    size: Optional[int] = None
    status: Optional[DatabaseStatus] = None
    last_checked: Optional[str] = None

    def assignments(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if self.size is not None:
            values["size"] = self.size
        if self.status is not None:
            values["status"] = DatabaseStatus(self.status).value
        if self.last_checked is not None:
            values["last_checked"] = self.last_checked
        return values


class DatabaseEventKind(str, Enum):
    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"


@dataclass(slots=True)
class DatabaseEvent:
    """Наблюдение watcher'а; живёт только до обработки оркестратором."""

    kind: DatabaseEventKind
    path: str
    timestamp: datetime = field(default_factory=datetime.now)
    size: Optional[int] = None

    def as_dict(self) -> dict:
        data = {
            "type": self.kind.value,
            "path": self.path,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.size is not None:
            data["size"] = self.size
        return data
