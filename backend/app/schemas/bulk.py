"""
Request and response bodies for the bulk endpoints.

Request fields are optional at the schema level; presence is checked by
the bulk services so that a missing id is reported as a 400 with a
readable message before any transaction starts.
"""

import uuid

from app.schemas.fields import CamelModel, SanitizedId, SanitizedStr


class MoveTasksRequest(CamelModel):
    from_class_id: SanitizedId | None = None
    to_class_id: SanitizedId | None = None


class DeleteClassesRequest(CamelModel):
    class_ids: list[SanitizedId] | None = None


class CompleteAllTasksRequest(CamelModel):
    class_id: SanitizedId | None = None


class DuplicateClassRequest(CamelModel):
    class_id: SanitizedId | None = None
    new_class_name: SanitizedStr | None = None


class BulkResponse(CamelModel):
    message: str
    transactional: bool = True


class MoveTasksResponse(BulkResponse):
    moved_count: int
    from_class: str
    to_class: str


class DeleteClassesResponse(BulkResponse):
    classes_deleted: int
    tasks_deleted: int


class CompleteAllTasksResponse(BulkResponse):
    class_name: str
    tasks_completed: int


class DuplicateClassResponse(BulkResponse):
    new_class_id: uuid.UUID
    new_class_name: str
    tasks_copied: int


class DeleteClassResponse(BulkResponse):
    tasks_deleted: int
