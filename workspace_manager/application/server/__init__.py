from .orchestrator import WorkspaceManager
from .state import ServerEvent, ServerEventListener, ServerEventType, ServerState, ServerStatus

__all__ = [
    "WorkspaceManager",
    "ServerEvent",
    "ServerEventListener",
    "ServerEventType",
    "ServerState",
    "ServerStatus",
]
