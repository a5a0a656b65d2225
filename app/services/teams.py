# app/services/teams.py
import asyncio
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import Request
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.team import Team, TeamMember
from app.models.user import User
from app.schemas.team import TeamResponse
from app.schemas.user import UserSummary


async def get_members(db: AsyncSession, team_id: int) -> List[User]:
    """Members of a team in the order they joined."""
    result = await db.execute(
        select(User)
        .join(TeamMember, TeamMember.user_id == User.id)
        .where(TeamMember.team_id == team_id)
        .order_by(TeamMember.id)
    )
    return list(result.scalars().all())


async def count_members(db: AsyncSession, team_id: int) -> int:
    result = await db.execute(
        select(func.count(TeamMember.id)).where(TeamMember.team_id == team_id)
    )
    return result.scalar_one()


async def find_membership(db: AsyncSession, task_id: int, user_id: int) -> Optional[TeamMember]:
    result = await db.execute(
        select(TeamMember)
        .where(TeamMember.task_id == task_id)
        .where(TeamMember.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def build_team_response(db: AsyncSession, team: Team) -> TeamResponse:
    members = await get_members(db, team.id)
    return TeamResponse(
        id=team.id,
        task_id=team.task_id,
        team_name=team.team_name,
        members=[UserSummary.model_validate(m) for m in members],
        created_at=team.created_at,
    )


class TeamLocks:
    """
    One ``asyncio.Lock`` per team id, held while a join checks capacity and inserts.

    Entries are dropped once nobody holds or waits on them, so the table only
    contains teams with a join in flight.
    """

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}
        self._users: Dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, team_id: int):
        lock = self._locks.setdefault(team_id, asyncio.Lock())
        self._users[team_id] = self._users.get(team_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[team_id] -= 1
            if not self._users[team_id]:
                del self._users[team_id]
                del self._locks[team_id]

    def __len__(self) -> int:
        return len(self._locks)


def get_team_locks(request: Request) -> TeamLocks:
    return request.app.state.team_locks
