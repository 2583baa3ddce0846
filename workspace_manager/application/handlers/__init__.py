"""
Обработчики запросов протокола.

=== ТИПЫ ЗАПРОСОВ ===
- status - состояние сервера
- list_databases / database_info - чтение реестра
- attach_database / detach_database - ручная регистрация и снятие базы
- list_paths / update_paths - отслеживаемые корни (set/add/remove)
"""

from typing import Dict

from .contracts import (
    DatabasePathRequest,
    Handler,
    HandlerContext,
    Response,
    UpdatePathsRequest,
    parse_payload,
)
from .databases import (
    handle_attach_database,
    handle_database_info,
    handle_detach_database,
    handle_list_databases,
)
from .paths import handle_list_paths, handle_update_paths
from .status import handle_status

HANDLERS: Dict[str, Handler] = {
    "status": handle_status,
    "list_databases": handle_list_databases,
    "database_info": handle_database_info,
    "attach_database": handle_attach_database,
    "detach_database": handle_detach_database,
    "list_paths": handle_list_paths,
    "update_paths": handle_update_paths,
}

__all__ = [
    "HANDLERS",
    "DatabasePathRequest",
    "Handler",
    "HandlerContext",
    "Response",
    "UpdatePathsRequest",
    "parse_payload",
]
