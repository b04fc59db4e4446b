import uuid
from datetime import datetime

from app.schemas.fields import CamelModel, RequiredStr, SanitizedStr


class ClassCreate(CamelModel):
    """Schema for creating a new class."""
    name: RequiredStr
    description: SanitizedStr = ""
    user_id: RequiredStr | None = None  # Falls back to settings.default_user_id


class ClassUpdate(CamelModel):
    """Schema for updating a class. Omitted or null fields are left unchanged."""
    name: RequiredStr | None = None
    description: SanitizedStr | None = None


class ClassRead(CamelModel):
    """Schema for reading a class."""
    id: uuid.UUID
    name: str
    description: str
    user_id: str
    created_at: datetime
