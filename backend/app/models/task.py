import uuid
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(SQLModel, table=True):
    """
    Task model, scoped to exactly one class.

    Key fields:
    - class_id: Reference to the owning class. No foreign key; deletes
      cascade through app.services.cascade and app.services.bulk.
    - estimated_time: Minutes, never negative
    """

    __tablename__ = "tasks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    description: str = Field(default="")
    class_id: uuid.UUID = Field(index=True)
    estimated_time: int = Field(default=0, ge=0)
    due_date: date | None = Field(default=None, index=True)
    completed: bool = Field(default=False)
    priority: Priority = Field(default=Priority.MEDIUM)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        index=True,
    )

    def copy_to(self, class_id: uuid.UUID) -> "Task":
        """New, not yet persisted, incomplete copy of this task under another class."""
        return Task(
            name=self.name,
            description=self.description,
            class_id=class_id,
            estimated_time=self.estimated_time,
            due_date=self.due_date,
            completed=False,
            priority=self.priority,
        )
