# app/services/tasks.py
"""
Task operations that touch more than one table.

Each multi-record mutation is flushed and committed once, so a failure leaves
nothing half-written; the failure itself is logged and reported as ``Internal``.
"""
import logging
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, Internal
from app.models.message import Message
from app.models.notification import Notification
from app.models.task import Task
from app.models.team import Team, TeamMember
from app.models.user import User
from app.realtime.relay import Relay
from app.schemas.notification import NotificationResponse
from app.schemas.task import TaskResponse

logger = logging.getLogger(__name__)


def assignment_message(task: Task) -> str:
    return f"You have been assigned to task: {task.title}"


def task_payload(task: Task) -> dict:
    return TaskResponse.model_validate(task).model_dump(mode="json")


async def get_task_or_404(db: AsyncSession, task_id: int) -> Task:
    result = await db.execute(select(Task).where(Task.id == task_id))
    task = result.scalar_one_or_none()
    if not task:
        raise NotFound("Task not found")
    return task


async def ensure_student_exists(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id, User.role == "student")
    )
    student = result.scalar_one_or_none()
    if not student:
        raise NotFound("Assigned student not found")
    return student


async def apply_task_changes(db: AsyncSession, task: Task, changes: dict) -> Optional[Notification]:
    """
    Write ``changes`` onto ``task``.

    When the assignee changes to a new student, exactly one notification is
    created for them in the same commit. Returns that notification, if any.
    """
    previous_assignee = task.assigned_to_id
    for field, value in changes.items():
        setattr(task, field, value)

    notification = None
    if task.assigned_to_id is not None and task.assigned_to_id != previous_assignee:
        notification = Notification(
            user_id=task.assigned_to_id,
            task_id=task.id,
            message=assignment_message(task),
        )
        db.add(notification)

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to update task %s", task.id)
        raise Internal()

    await db.refresh(task)
    if notification is not None:
        await db.refresh(notification)
        logger.info("Task %s assigned to user %s; notification %s created",
                    task.id, notification.user_id, notification.id)
    return notification


async def publish_task_change(relay: Relay, task: Task, notification: Optional[Notification] = None) -> None:
    await relay.emit_task_update(task_payload(task))
    if notification is not None:
        payload = NotificationResponse.model_validate(notification).model_copy(
            update={"task_title": task.title}
        )
        await relay.emit_notification(notification.user_id, payload.model_dump(mode="json"))


async def delete_task_cascade(db: AsyncSession, task: Task) -> None:
    """Remove the task together with its teams, memberships and messages. Notifications stay."""
    task_id = task.id
    try:
        await db.execute(delete(TeamMember).where(TeamMember.task_id == task_id))
        await db.execute(delete(Team).where(Team.task_id == task_id))
        await db.execute(delete(Message).where(Message.task_id == task_id))
        await db.delete(task)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to delete task %s", task_id)
        raise Internal()
    logger.info("Task %s deleted with its teams and messages", task_id)
