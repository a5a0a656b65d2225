from pydantic import BaseModel
from datetime import datetime
from typing import Optional

class NotificationResponse(BaseModel):
    id: int
    user_id: int
    task_id: int
    task_title: Optional[str] = None   # None once the task is gone
    message: str
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
