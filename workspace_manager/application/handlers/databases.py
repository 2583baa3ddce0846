"""Обработчики запросов к реестру баз."""

import logging
from typing import Any, Dict

from workspace_manager.domain.databases import RequestValidationError

from .contracts import DatabasePathRequest, HandlerContext, Response, parse_payload

logger = logging.getLogger(__name__)


def handle_list_databases(request: Dict[str, Any], context: HandlerContext) -> Response:
    try:
        databases = context.server.get_database_manager().list_managed_databases()
        return Response.ok({"databases": [database.as_dict() for database in databases]})
    except Exception as e:
        logger.error(f"❌ Failed to list databases: {e}")
        return Response.fail(f"Failed to list databases: {e}")


def handle_database_info(request: Dict[str, Any], context: HandlerContext) -> Response:
    try:
        payload = parse_payload(DatabasePathRequest, request.get("data"))
        manager = context.server.get_database_manager()

        database = manager.get_managed_database(payload.path)
        if database is None:
            return Response.fail(f"Database not found: {payload.path}")

        tables = manager.get_database_info(payload.path)
        return Response.ok({
            **database.as_dict(),
            "tables": [table.as_dict() for table in tables],
        })
    except RequestValidationError as e:
        return Response.fail(str(e))
    except Exception as e:
        logger.warning(f"⚠️ Failed to get database info: {e}")
        return Response.fail(f"Failed to get database info: {e}")


def handle_attach_database(request: Dict[str, Any], context: HandlerContext) -> Response:
    try:
        payload = parse_payload(DatabasePathRequest, request.get("data"))
        database = context.server.get_database_manager().add_managed_database(payload.path)
        return Response.ok(database.as_dict())
    except RequestValidationError as e:
        return Response.fail(str(e))
    except Exception as e:
        logger.warning(f"⚠️ Failed to attach database: {e}")
        return Response.fail(f"Failed to attach database: {e}")


def handle_detach_database(request: Dict[str, Any], context: HandlerContext) -> Response:
    try:
        payload = parse_payload(DatabasePathRequest, request.get("data"))
        context.server.get_database_manager().remove_managed_database(payload.path)
        return Response.ok({"message": f"Database {payload.path} successfully detached"})
    except RequestValidationError as e:
        return Response.fail(str(e))
    except Exception as e:
        logger.warning(f"⚠️ Failed to detach database: {e}")
        return Response.fail(f"Failed to detach database: {e}")
