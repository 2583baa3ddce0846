"""
Контракты протокола запрос/ответ.

Запрос: {"type": str, "data": ...}; ответ: {"success": bool, "data"?, "error"?}.
Payload'ы валидируются pydantic-моделями.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from workspace_manager.domain.databases import RequestValidationError

if TYPE_CHECKING:
    from workspace_manager.application.server.orchestrator import WorkspaceManager


# === Payload Models ===

class DatabasePathRequest(BaseModel):
    """Запрос, адресующий одну базу по пути."""
    path: str = Field(..., description="Путь к файлу базы")


class UpdatePathsRequest(BaseModel):
    """Изменение набора отслеживаемых корней."""
    paths: List[str] = Field(..., description="Корни для операции")
    operation: Literal["set", "add", "remove"] = "set"


# === Envelope ===

@dataclass
class Response:
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "Response":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "Response":
        return cls(success=False, error=error)

    def as_dict(self) -> Dict[str, Any]:
        """Отсутствующие ключи не попадают в ответ."""
        result: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class HandlerContext:
    server: "WorkspaceManager"


Handler = Callable[[Dict[str, Any], HandlerContext], Response]

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def parse_payload(model: Type[PayloadT], data: Any) -> PayloadT:
    """Валидирует data запроса; ошибки pydantic превращаются в RequestValidationError."""
    try:
        return model.model_validate(data if data is not None else {})
    except ValidationError as exc:
        details = ", ".join(_describe(error) for error in exc.errors())
        raise RequestValidationError(f"Invalid request parameters: {details}") from exc


def _describe(error: Dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error['msg']}" if location else error["msg"]
