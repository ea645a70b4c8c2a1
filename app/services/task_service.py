"""
Task service — per-user CRUD for the Task aggregate.

Every query is scoped by ``user_id`` and excludes soft-deleted rows, so a
task owned by someone else is indistinguishable from a missing one.
Functions flush but do not commit; the transaction boundary is owned by
the ``get_db`` dependency.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Task, isoformat, new_id
from app.schemas import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


def _task_to_dict(task: Task) -> dict:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "completed": task.completed,
        "user_id": task.user_id,
        "created_at": isoformat(task.created_at),
        "updated_at": isoformat(task.updated_at),
    }


async def _get_owned_task(db: AsyncSession, task_id: str, user_id: str) -> Task | None:
    q = select(Task).where(
        Task.id == task_id,
        Task.user_id == user_id,
        Task.deleted_at.is_(None),
    )
    result = await db.execute(q)
    return result.scalar_one_or_none()


async def get_tasks(db: AsyncSession, user_id: str) -> list[dict]:
    """Return all live tasks for *user_id*, newest first."""
    q = (
        select(Task)
        .where(Task.user_id == user_id, Task.deleted_at.is_(None))
        .order_by(Task.created_at.desc())
    )
    result = await db.execute(q)
    return [_task_to_dict(t) for t in result.scalars().all()]


async def get_task(db: AsyncSession, task_id: str, user_id: str) -> dict | None:
    task = await _get_owned_task(db, task_id, user_id)
    if task is None:
        logger.warning("Task not found", extra={"task_id": task_id, "user_id": user_id})
        return None
    return _task_to_dict(task)


async def create_task(db: AsyncSession, data: TaskCreate, user_id: str) -> dict:
    """Create a task owned by *user_id*; the id is assigned here, never by the client."""
    task = Task(
        id=new_id(),
        title=data.title,
        description=data.description,
        completed=data.completed,
        user_id=user_id,
    )
    db.add(task)
    await db.flush()

    logger.info("Task created", extra={"task_id": task.id, "user_id": user_id})
    return _task_to_dict(task)


async def update_task(
    db: AsyncSession, task_id: str, data: TaskUpdate, user_id: str
) -> dict | None:
    """
    Apply the fields present in *data* to the task.

    Returns None when the task does not exist for this user.
    """
    task = await _get_owned_task(db, task_id, user_id)
    if task is None:
        logger.warning("Task not found for update", extra={"task_id": task_id, "user_id": user_id})
        return None

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(task, field, value)

    await db.flush()
    logger.info("Task updated", extra={"task_id": task_id, "user_id": user_id})
    return _task_to_dict(task)


async def delete_task(db: AsyncSession, task_id: str, user_id: str) -> bool:
    """
    Soft-delete the task.

    Returns True on success, False when the task does not exist for this user.
    """
    task = await _get_owned_task(db, task_id, user_id)
    if task is None:
        logger.warning("Task not found for deletion", extra={"task_id": task_id, "user_id": user_id})
        return False

    task.deleted_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("Task deleted", extra={"task_id": task_id, "user_id": user_id})
    return True
