"""
Иерархия ошибок workspace manager.

Все ошибки хранилища несут код и имя операции, в которой они возникли,
чтобы вызывающая сторона могла отличить сбой подключения от сбоя запроса.
"""

from __future__ import annotations


class WorkspaceError(Exception):
    """Базовая ошибка приложения."""


class DatabaseError(WorkspaceError):
    """Ошибка уровня хранилища/реестра с кодом и тегом операции."""

    code = "DATABASE_ERROR"

    def __init__(self, message: str, code: str | None = None, operation: str = "unknown"):
        super().__init__(message)
        self.message = message
        self.code = code or self.code
        self.operation = operation

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, operation={self.operation!r}, message={self.message!r})"


class DatabaseConnectionError(DatabaseError):
    code = "CONNECTION_ERROR"


class NotConnectedError(DatabaseError):
    code = "NOT_CONNECTED"

    def __init__(self, operation: str):
        super().__init__("Database not connected", operation=operation)


class QueryError(DatabaseError):
    code = "QUERY_ERROR"


class ExecuteError(DatabaseError):
    code = "EXECUTE_ERROR"


class ExecError(DatabaseError):
    code = "EXEC_ERROR"


class TransactionError(DatabaseError):
    code = "TRANSACTION_ERROR"


class InitializationError(DatabaseError):
    code = "INIT_ERROR"


class AddDatabaseError(DatabaseError):
    code = "ADD_DATABASE_ERROR"


class NotFoundError(DatabaseError):
    code = "DATABASE_NOT_FOUND"


class InvalidStatusTransition(DatabaseError):
    code = "INVALID_STATUS_TRANSITION"


class RequestValidationError(WorkspaceError):
    """Некорректный payload входящего запроса."""
