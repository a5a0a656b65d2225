from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from typing import List
from app.database import get_db
from app.core.auth import get_current_user
from app.core.errors import NotFound
from app.models.notification import Notification
from app.models.task import Task
from app.models.user import User
from app.schemas.auth import MessageOut
from app.schemas.notification import NotificationResponse

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _to_response(notification: Notification, task_title) -> NotificationResponse:
    return NotificationResponse.model_validate(notification).model_copy(update={"task_title": task_title})


@router.get("", response_model=List[NotificationResponse])
async def get_notifications(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    rows = await db.execute(
        select(Notification, Task.title)
        .outerjoin(Task, Task.id == Notification.task_id)
        .where(Notification.user_id == current_user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return [_to_response(n, title) for n, title in rows.all()]


@router.post("/mark-all-read", response_model=MessageOut)
async def mark_all_as_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await db.execute(
        update(Notification)
        .where(Notification.user_id == current_user.id)
        .where(Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return MessageOut(message="All notifications marked as read")


@router.post("/{notification_id}/mark-read", response_model=NotificationResponse)
async def mark_as_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    # Someone else's notification looks exactly like a missing one
    result = await db.execute(
        select(Notification)
        .where(Notification.id == notification_id)
        .where(Notification.user_id == current_user.id)
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise NotFound("Notification not found")

    notification.is_read = True
    await db.commit()
    await db.refresh(notification)

    title = await db.execute(select(Task.title).where(Task.id == notification.task_id))
    return _to_response(notification, title.scalar_one_or_none())
