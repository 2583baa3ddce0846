"""Обработчики запросов к набору отслеживаемых корней."""

import logging
from typing import Any, Dict

from workspace_manager.domain.databases import RequestValidationError

from .contracts import HandlerContext, Response, UpdatePathsRequest, parse_payload

logger = logging.getLogger(__name__)

_PAST_TENSE = {"set": "set", "add": "added", "remove": "removed"}


def handle_update_paths(request: Dict[str, Any], context: HandlerContext) -> Response:
    try:
        payload = parse_payload(UpdatePathsRequest, request.get("data"))
        watcher = context.server.get_file_watcher()

        if payload.operation == "set":
            watcher.reload_paths(payload.paths)
        elif payload.operation == "add":
            for path in payload.paths:
                watcher.add_path(path)
        else:
            for path in payload.paths:
                watcher.remove_path(path)

        return Response.ok({
            "operation": payload.operation,
            "paths": watcher.get_watched_paths(),
            "message": f"Paths successfully {_PAST_TENSE[payload.operation]}",
        })
    except RequestValidationError as e:
        return Response.fail(str(e))
    except Exception as e:
        logger.warning(f"⚠️ Failed to update paths: {e}")
        return Response.fail(f"Failed to update paths: {e}")


def handle_list_paths(request: Dict[str, Any], context: HandlerContext) -> Response:
    try:
        return Response.ok({"paths": context.server.get_file_watcher().get_watched_paths()})
    except Exception as e:
        return Response.fail(f"Failed to list paths: {e}")
