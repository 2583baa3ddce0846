from datetime import datetime
from typing import Any, Dict

from .contracts import HandlerContext, Response


def handle_status(request: Dict[str, Any], context: HandlerContext) -> Response:
    server = context.server
    state = server.get_state()

    data: Dict[str, Any] = {
        "serverId": server.get_server_id(),
        "status": state.status.value,
        "uptime": server.get_uptime(),
        "databaseCount": state.database_count,
        "watchedPaths": state.watched_paths,
    }
    if state.last_event is not None:
        data["lastEvent"] = {
            "type": state.last_event.type.value,
            "timestamp": datetime.now().isoformat(),
            "details": state.last_event.as_dict(),
        }
    return Response.ok(data)
