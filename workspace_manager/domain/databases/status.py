from enum import Enum


class DatabaseStatus(str, Enum):
    """Lifecycle statuses for managed databases."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ERROR = "error"
    REMOVED = "removed"

    def can_transition_to(self, target: "DatabaseStatus") -> bool:
        """removed - поглощающий статус: из него можно перейти только в него же."""
        target = DatabaseStatus(target)
        if self is DatabaseStatus.REMOVED:
            return target is DatabaseStatus.REMOVED
        return True
