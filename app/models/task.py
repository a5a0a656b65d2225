from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from app.database import Base
from app.utils.dates import utcnow

PRIORITIES = ("Low", "Medium", "High", "Urgent")
STATUSES = ("To Do", "In Progress", "Review", "Completed")
ASSIGNMENT_TYPES = ("individual", "branch", "team")

class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    priority = Column(String, nullable=False, default="Medium")
    status = Column(String, nullable=False, default="To Do")   # unordered, any transition allowed

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)   # Owning teacher
    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # Individual student
    assigned_to_branch = Column(String, nullable=True)                                  # Whole branch
    assignment_type = Column(String, nullable=True)   # individual, branch, team
    assigned_student_name = Column(String, nullable=True)
    assigned_student_roll = Column(String, nullable=True)

    # Planned roster as entered by the teacher; formed teams live in team_members
    team_members = Column(JSON, nullable=False, default=list)
    min_team_size = Column(Integer, nullable=False, default=1)
    max_team_size = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
