"""
Class routes for the Taskr API.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_executor, get_session
from app.exceptions import ErrorResponse, NotFoundError, mark_transactional
from app.logging_config import get_logger
from app.models import Class
from app.repository import Repository
from app.schemas import ClassCreate, ClassRead, ClassUpdate, DeleteClassResponse
from app.services.cascade import delete_class_cascade
from app.transactions import TransactionExecutor

logger = get_logger(__name__)

router = APIRouter(responses={404: {"model": ErrorResponse}})


@router.get("", response_model=list[ClassRead])
async def list_classes(
    session: AsyncSession = Depends(get_session),
) -> list[Class]:
    """List all classes, newest first."""
    classes = await Repository(session).list_classes()

    logger.debug(f"Listed {len(classes)} classes")

    return classes


@router.get("/{class_id}", response_model=ClassRead)
async def get_class(
    class_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> Class:
    """Get a class by ID."""
    class_item = await Repository(session).get_class(class_id)
    if not class_item:
        raise NotFoundError("Class", str(class_id))
    return class_item


@router.post("", response_model=ClassRead, status_code=status.HTTP_201_CREATED)
async def create_class(
    class_in: ClassCreate,
    session: AsyncSession = Depends(get_session),
) -> Class:
    """
    Create a new class.

    If userId is not provided, the configured placeholder owner is used.
    """
    class_item = Class(
        name=class_in.name,
        description=class_in.description,
        user_id=class_in.user_id or get_settings().default_user_id,
    )
    await Repository(session).save(class_item)

    logger.info(f"Created class: id={class_item.id} name='{class_item.name}'")

    return class_item


@router.put("/{class_id}", response_model=ClassRead)
async def update_class(
    class_id: uuid.UUID,
    class_in: ClassUpdate,
    session: AsyncSession = Depends(get_session),
) -> Class:
    """Update a class. Only the supplied fields change."""
    repository = Repository(session)
    class_item = await repository.get_class(class_id)
    if not class_item:
        raise NotFoundError("Class", str(class_id))

    update_data = class_in.model_dump(exclude_unset=True, exclude_none=True)

    logger.info(f"Updating class {class_id}: {update_data}")

    for field, value in update_data.items():
        setattr(class_item, field, value)

    return await repository.save(class_item)


@router.delete(
    "/{class_id}",
    response_model=DeleteClassResponse,
    dependencies=[Depends(mark_transactional)],
)
async def delete_class(
    class_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    executor: TransactionExecutor = Depends(get_executor),
) -> DeleteClassResponse:
    """
    Delete a class and all its tasks.

    Both deletes happen in one transaction: either the class and every
    task referencing it are gone, or nothing changed.
    """
    tasks_deleted = await delete_class_cascade(Repository(session), executor, class_id)
    return DeleteClassResponse(
        message="Class and associated tasks deleted successfully",
        tasks_deleted=tasks_deleted,
    )
