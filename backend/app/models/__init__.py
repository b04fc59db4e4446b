from app.models.class_model import Class
from app.models.task import Task, Priority

__all__ = [
    "Class",
    "Task",
    "Priority",
]
