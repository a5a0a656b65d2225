from pydantic import BaseModel, Field, field_validator
from datetime import datetime

class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message content cannot be empty")
        return v

class TaskMessageCreate(MessageCreate):
    task_id: int

class MessageResponse(BaseModel):
    id: int
    task_id: int
    sender_id: int
    sender_name: str
    content: str
    timestamp: datetime
