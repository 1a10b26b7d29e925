class TaskboardError(Exception):
    """Base class for board errors."""


class NotFound(TaskboardError):
    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} {item_id} not found")
        self.kind = kind
        self.item_id = item_id


class InvalidTransition(TaskboardError):
    """A drag event arrived in a state that cannot accept it."""


class PersistenceError(TaskboardError):
    """A persistence command was not applied."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
