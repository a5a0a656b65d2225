from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
from app.database import get_db
from app.core.auth import get_current_user
from app.core.errors import Forbidden
from app.core.permissions import can_view_task_artifacts
from app.models.message import Message
from app.models.task import Task
from app.models.user import User
from app.schemas.message import MessageCreate, TaskMessageCreate, MessageResponse
from app.services.tasks import get_task_or_404

router = APIRouter(prefix="/academic", tags=["messages"])


def _to_response(message: Message, sender_name: str) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        task_id=message.task_id,
        sender_id=message.sender_id,
        sender_name=sender_name,
        content=message.content,
        timestamp=message.timestamp,
    )


async def _post_message(db: AsyncSession, task_id: int, content: str, sender: User) -> MessageResponse:
    task = await get_task_or_404(db, task_id)
    if not can_view_task_artifacts(sender, task):
        raise Forbidden()

    message = Message(task_id=task.id, sender_id=sender.id, content=content)
    db.add(message)
    await db.commit()
    await db.refresh(message)
    return _to_response(message, sender.name)


@router.post("/tasks/{task_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_task_message(
    task_id: int,
    message_in: MessageCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await _post_message(db, task_id, message_in.content, current_user)


@router.post("/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    message_in: TaskMessageCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Same as the task-scoped route, with the task id in the body."""
    return await _post_message(db, message_in.task_id, message_in.content, current_user)


@router.get("/tasks/{task_id}/messages", response_model=List[MessageResponse])
async def get_task_messages(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Full chat history of a task, oldest first.
    Visible to the task owner and to everyone the task is assigned to.
    """
    result = await db.execute(select(Task).where(Task.id == task_id))
    task = result.scalar_one_or_none()
    if task is None:
        return []
    if not can_view_task_artifacts(current_user, task):
        raise Forbidden()

    rows = await db.execute(
        select(Message, User.name)
        .join(User, User.id == Message.sender_id)
        .where(Message.task_id == task_id)
        .order_by(Message.timestamp, Message.id)
    )
    return [_to_response(message, sender_name) for message, sender_name in rows.all()]
