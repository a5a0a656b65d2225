import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from typing import List
from app.database import get_db
from app.core.auth import get_current_user, get_current_student
from app.core.errors import Forbidden, NotFound, Conflict
from app.core.permissions import is_assigned_to_task, can_view_task_artifacts
from app.models.task import Task
from app.models.team import Team, TeamMember
from app.models.user import User
from app.schemas.team import TeamCreate, TeamResponse
from app.services.tasks import get_task_or_404
from app.services.teams import (
    TeamLocks, build_team_response, count_members, find_membership, get_team_locks,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/academic", tags=["teams"])


@router.post("/teams", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    team_in: TeamCreate,
    db: AsyncSession = Depends(get_db),
    student: User = Depends(get_current_student)
):
    task = await get_task_or_404(db, team_in.task_id)
    if not is_assigned_to_task(student, task):
        raise Forbidden("You are not assigned to this task")

    if await find_membership(db, task.id, student.id):
        raise Conflict("You are already in a team for this task")

    team = Team(task_id=task.id, team_name=team_in.team_name)
    db.add(team)
    await db.flush()
    db.add(TeamMember(team_id=team.id, task_id=task.id, user_id=student.id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("You are already in a team for this task")
    await db.refresh(team)

    logger.info("Team %s created for task %s by user %s", team.id, task.id, student.id)
    return await build_team_response(db, team)


@router.post("/teams/{team_id}/join", response_model=TeamResponse)
async def join_team(
    team_id: int,
    db: AsyncSession = Depends(get_db),
    locks: TeamLocks = Depends(get_team_locks),
    student: User = Depends(get_current_student)
):
    # Capacity check and insert run under the team's lock; the row lock
    # covers other worker processes on Postgres
    async with locks.hold(team_id):
        result = await db.execute(select(Team).where(Team.id == team_id).with_for_update())
        team = result.scalar_one_or_none()
        if not team:
            raise NotFound("Team not found")

        task = await get_task_or_404(db, team.task_id)
        if not is_assigned_to_task(student, task):
            raise Forbidden("You are not assigned to this task")

        if await count_members(db, team.id) >= task.max_team_size:
            raise Conflict("Team is full")

        membership = await find_membership(db, task.id, student.id)
        if membership is not None:
            if membership.team_id == team.id:
                raise Conflict("You are already in this team")
            raise Conflict("You are already in a team for this task")

        db.add(TeamMember(team_id=team.id, task_id=task.id, user_id=student.id))
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise Conflict("You are already in a team for this task")
    await db.refresh(team)

    logger.info("User %s joined team %s", student.id, team.id)
    return await build_team_response(db, team)


@router.get("/tasks/{task_id}/teams", response_model=List[TeamResponse])
async def get_task_teams(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = await db.execute(select(Task).where(Task.id == task_id))
    task = result.scalar_one_or_none()
    if task is None:
        # Deleted tasks leave no teams behind
        return []
    if not can_view_task_artifacts(current_user, task):
        raise Forbidden()

    teams = await db.execute(
        select(Team).where(Team.task_id == task_id).order_by(Team.id)
    )
    return [await build_team_response(db, team) for team in teams.scalars().all()]
