from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class ServerStatus(str, Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


class ServerEventType(str, Enum):
    SERVER_START = "server:start"
    SERVER_STOP = "server:stop"
    DATABASE_ADDED = "database:added"
    DATABASE_CHANGED = "database:changed"
    DATABASE_REMOVED = "database:removed"
    ERROR = "error"


@dataclass(slots=True)
class ServerEvent:
    """Событие уровня сервера для внешних подписчиков.

    details: {"path": ...} для database:*, {"error": ...} для error.
    """

    type: ServerEventType
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def path(self) -> Optional[str]:
        return self.details.get("path")

    def as_dict(self) -> dict:
        return {"type": self.type.value, **self.details}


ServerEventListener = Callable[[ServerEvent], None]


@dataclass(slots=True)
class ServerState:
    """Агрегированное состояние сервера.

    database_count равен числу записей реестра со статусом != removed.
    """

    status: ServerStatus = ServerStatus.INITIALIZING
    database_count: int = 0
    watched_paths: List[str] = field(default_factory=list)
    last_event: Optional[ServerEvent] = None
    error: Optional[str] = None

    def snapshot(self) -> "ServerState":
        return replace(self, watched_paths=list(self.watched_paths))
