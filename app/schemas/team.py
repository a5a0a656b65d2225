from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from .user import UserSummary

class TeamCreate(BaseModel):
    task_id: int
    team_name: Optional[str] = Field(None, max_length=100)

class TeamResponse(BaseModel):
    id: int
    task_id: int
    team_name: Optional[str]
    members: List[UserSummary]   # join order
    created_at: datetime
