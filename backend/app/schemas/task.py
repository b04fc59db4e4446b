import uuid
from datetime import date, datetime

from pydantic import Field

from app.models import Priority
from app.schemas.fields import CamelModel, RequiredStr, SanitizedId, SanitizedPriority, SanitizedStr


class TaskCreate(CamelModel):
    """Schema for creating a new task."""
    name: RequiredStr
    description: SanitizedStr = ""
    class_id: SanitizedId
    estimated_time: int = Field(default=0, ge=0)  # minutes
    due_date: date | None = None
    completed: bool = False
    priority: SanitizedPriority = Priority.MEDIUM


class TaskUpdate(CamelModel):
    """Schema for updating a task. Omitted or null fields are left unchanged."""
    name: RequiredStr | None = None
    description: SanitizedStr | None = None
    class_id: SanitizedId | None = None
    estimated_time: int | None = Field(default=None, ge=0)
    due_date: date | None = None
    completed: bool | None = None
    priority: SanitizedPriority | None = None


class TaskRead(CamelModel):
    """Schema for reading a task with its class name resolved."""
    id: uuid.UUID
    name: str
    description: str
    class_id: uuid.UUID
    class_name: str | None = None
    estimated_time: int
    due_date: date | None
    completed: bool
    priority: Priority
    created_at: datetime
