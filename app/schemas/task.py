from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import List, Literal, Optional
from .user import Branch

Priority = Literal["Low", "Medium", "High", "Urgent"]
Status = Literal["To Do", "In Progress", "Review", "Completed"]
AssignmentType = Literal["individual", "branch", "team"]
StatusFilter = Literal["all", "To Do", "In Progress", "Review", "Completed"]
PriorityFilter = Literal["all", "Low", "Medium", "High", "Urgent"]
TaskSortField = Literal["created_at", "updated_at", "due_date", "priority", "status", "title"]

class TeamMemberSnapshot(BaseModel):
    id: str
    name: str
    rollNumber: Optional[str] = None
    email: Optional[str] = None

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Priority = "Medium"
    status: Status = "To Do"
    assigned_to_id: Optional[int] = None
    assigned_to_branch: Optional[Branch] = None
    assignment_type: Optional[AssignmentType] = None
    assigned_student_name: Optional[str] = None
    assigned_student_roll: Optional[str] = None
    team_members: List[TeamMemberSnapshot] = []
    min_team_size: int = Field(1, ge=1)
    max_team_size: int = Field(1, ge=1)

    @model_validator(mode="after")
    def check_team_sizes(self):
        if self.max_team_size < self.min_team_size:
            raise ValueError("max_team_size must be greater than or equal to min_team_size")
        return self

class TaskUpdate(BaseModel):
    # creator_id is intentionally absent: ownership never changes
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[Priority] = None
    status: Optional[Status] = None
    assigned_to_id: Optional[int] = None
    assigned_to_branch: Optional[Branch] = None
    assignment_type: Optional[AssignmentType] = None
    assigned_student_name: Optional[str] = None
    assigned_student_roll: Optional[str] = None
    team_members: Optional[List[TeamMemberSnapshot]] = None
    min_team_size: Optional[int] = Field(None, ge=1)
    max_team_size: Optional[int] = Field(None, ge=1)

class TaskAssign(BaseModel):
    assigned_to_id: Optional[int] = None
    assigned_to_branch: Optional[Branch] = None

class TaskUpdateStatus(BaseModel):
    status: Status

class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    due_date: Optional[datetime]
    priority: str
    status: str
    creator_id: int
    assigned_to_id: Optional[int]
    assigned_to_branch: Optional[str]
    assignment_type: Optional[str]
    assigned_student_name: Optional[str]
    assigned_student_roll: Optional[str]
    team_members: List[TeamMemberSnapshot]
    min_team_size: int
    max_team_size: int
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}
