from tasktracker.services import task_service


__all__ = [
    "task_service",
]
