from app.schemas.class_schema import ClassCreate, ClassUpdate, ClassRead
from app.schemas.task import TaskCreate, TaskUpdate, TaskRead
from app.schemas.bulk import (
    MoveTasksRequest,
    MoveTasksResponse,
    DeleteClassesRequest,
    DeleteClassesResponse,
    CompleteAllTasksRequest,
    CompleteAllTasksResponse,
    DuplicateClassRequest,
    DuplicateClassResponse,
    DeleteClassResponse,
)

__all__ = [
    "ClassCreate",
    "ClassUpdate",
    "ClassRead",
    "TaskCreate",
    "TaskUpdate",
    "TaskRead",
    "MoveTasksRequest",
    "MoveTasksResponse",
    "DeleteClassesRequest",
    "DeleteClassesResponse",
    "CompleteAllTasksRequest",
    "CompleteAllTasksResponse",
    "DuplicateClassRequest",
    "DuplicateClassResponse",
    "DeleteClassResponse",
]
