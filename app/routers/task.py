from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import List, Literal, Optional
from app.database import get_db
from app.core.auth import get_current_user, get_current_teacher, get_current_student
from app.core.errors import Forbidden
from app.core.permissions import owns_task, is_assigned_to_task, can_view_task_artifacts
from app.models.task import Task
from app.models.user import User
from app.realtime.relay import Relay, get_relay
from app.schemas.auth import MessageOut
from app.schemas.task import (
    TaskCreate, TaskUpdate, TaskAssign, TaskUpdateStatus, TaskResponse,
    StatusFilter, PriorityFilter, TaskSortField,
)
from app.schemas.user import UserResponse
from app.services.tasks import (
    get_task_or_404, ensure_student_exists, apply_task_changes,
    publish_task_change, delete_task_cascade, task_payload,
)
from app.utils.dates import utcnow

router = APIRouter(prefix="/academic", tags=["tasks"])


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    db: AsyncSession = Depends(get_db),
    relay: Relay = Depends(get_relay),
    teacher: User = Depends(get_current_teacher)
):
    if task_in.assigned_to_id is not None:
        await ensure_student_exists(db, task_in.assigned_to_id)

    data = task_in.model_dump()
    task = Task(**data, creator_id=teacher.id)
    db.add(task)
    await db.commit()
    await db.refresh(task)

    await relay.emit_task_update(task_payload(task))
    return task


@router.get("/tasks", response_model=List[TaskResponse])
async def list_tasks(
    status_filter: StatusFilter = Query("all", alias="status"),
    priority: PriorityFilter = "all",
    filter_type: Optional[Literal["assigned", "created"]] = None,
    sort_by: TaskSortField = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Tasks the caller created or is assigned to (directly or by branch).

    ``filter_type`` narrows to one side; ``all`` disables a status/priority filter.
    """
    assigned = or_(Task.assigned_to_id == current_user.id, Task.assigned_to_branch == current_user.branch)
    created = Task.creator_id == current_user.id
    if filter_type == "assigned":
        query = select(Task).where(assigned)
    elif filter_type == "created":
        query = select(Task).where(created)
    else:
        query = select(Task).where(or_(assigned, created))

    if status_filter != "all":
        query = query.where(Task.status == status_filter)
    if priority != "all":
        query = query.where(Task.priority == priority)

    column = getattr(Task, sort_by)
    if sort_order == "asc":
        query = query.order_by(column.asc(), Task.id.asc())
    else:
        query = query.order_by(column.desc(), Task.id.desc())

    result = await db.execute(query)
    return result.scalars().all()


@router.get("/tasks/teacher", response_model=List[TaskResponse])
async def get_teacher_tasks(
    db: AsyncSession = Depends(get_db),
    teacher: User = Depends(get_current_teacher)
):
    result = await db.execute(
        select(Task)
        .where(Task.creator_id == teacher.id)
        .order_by(Task.created_at.desc(), Task.id.desc())
    )
    return result.scalars().all()


@router.get("/tasks/student", response_model=List[TaskResponse])
async def get_student_tasks(
    db: AsyncSession = Depends(get_db),
    student: User = Depends(get_current_student)
):
    # Individually assigned or assigned to my branch; one row per task
    result = await db.execute(
        select(Task)
        .where(or_(Task.assigned_to_id == student.id, Task.assigned_to_branch == student.branch))
        .order_by(Task.created_at.desc(), Task.id.desc())
    )
    return result.scalars().all()


@router.get("/tasks/overdue", response_model=List[TaskResponse])
async def get_overdue_tasks(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(Task)
        .where(Task.due_date.isnot(None))
        .where(Task.due_date < utcnow())
        .where(Task.status != "Completed")
        .where(or_(Task.assigned_to_id == current_user.id, Task.creator_id == current_user.id))
        .order_by(Task.due_date)
    )
    return result.scalars().all()


@router.get("/students", response_model=List[UserResponse])
async def get_students(
    db: AsyncSession = Depends(get_db),
    teacher: User = Depends(get_current_teacher)
):
    branches = teacher.branches_handled or []
    if not branches:
        return []
    result = await db.execute(
        select(User)
        .where(User.role == "student")
        .where(User.branch.in_(branches))
        .order_by(User.name)
    )
    return result.scalars().all()


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = await get_task_or_404(db, task_id)
    if not can_view_task_artifacts(current_user, task):
        raise Forbidden()
    return task


@router.put("/tasks/{task_id}/assign", response_model=TaskResponse)
async def assign_task(
    task_id: int,
    assign_in: TaskAssign,
    db: AsyncSession = Depends(get_db),
    relay: Relay = Depends(get_relay),
    teacher: User = Depends(get_current_teacher)
):
    task = await get_task_or_404(db, task_id)
    if not owns_task(teacher, task):
        raise Forbidden()

    if assign_in.assigned_to_id is None and assign_in.assigned_to_branch is None:
        raise HTTPException(400, "assigned_to_id or assigned_to_branch is required")

    # Setting one target never clears the other
    changes = {}
    if assign_in.assigned_to_id is not None:
        await ensure_student_exists(db, assign_in.assigned_to_id)
        changes["assigned_to_id"] = assign_in.assigned_to_id
    if assign_in.assigned_to_branch is not None:
        changes["assigned_to_branch"] = assign_in.assigned_to_branch

    notification = await apply_task_changes(db, task, changes)
    await publish_task_change(relay, task, notification)
    return task


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    task_in: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    relay: Relay = Depends(get_relay),
    teacher: User = Depends(get_current_teacher)
):
    task = await get_task_or_404(db, task_id)
    if not owns_task(teacher, task):
        raise Forbidden()

    changes = task_in.model_dump(exclude_unset=True)
    for required in ("title", "priority", "status", "team_members", "min_team_size", "max_team_size"):
        if required in changes and changes[required] is None:
            raise HTTPException(400, f"{required} cannot be null")

    min_size = changes.get("min_team_size", task.min_team_size)
    max_size = changes.get("max_team_size", task.max_team_size)
    if max_size < min_size:
        raise HTTPException(400, "max_team_size must be greater than or equal to min_team_size")

    new_assignee = changes.get("assigned_to_id")
    if new_assignee is not None and new_assignee != task.assigned_to_id:
        await ensure_student_exists(db, new_assignee)

    notification = await apply_task_changes(db, task, changes)
    await publish_task_change(relay, task, notification)
    return task


@router.delete("/tasks/{task_id}", response_model=MessageOut)
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    teacher: User = Depends(get_current_teacher)
):
    task = await get_task_or_404(db, task_id)
    if not owns_task(teacher, task):
        raise Forbidden()

    await delete_task_cascade(db, task)
    return MessageOut(message="Task deleted successfully")


@router.patch("/tasks/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    task_id: int,
    status_in: TaskUpdateStatus,
    db: AsyncSession = Depends(get_db),
    relay: Relay = Depends(get_relay),
    student: User = Depends(get_current_student)
):
    task = await get_task_or_404(db, task_id)
    if not is_assigned_to_task(student, task):
        raise Forbidden("You are not assigned to this task")

    # Any of the four statuses, in any order
    await apply_task_changes(db, task, {"status": status_in.status})
    await publish_task_change(relay, task)
    return task
