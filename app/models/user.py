from sqlalchemy import Column, Integer, String, DateTime, JSON
from app.database import Base
from app.utils.dates import utcnow

BRANCHES = ("CSE", "AIML", "Data Science", "IT", "EEE", "ECE")
ROLES = ("teacher", "student")

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False)     # teacher, student; fixed at registration
    branch = Column(String, nullable=False)

    # Student fields
    year = Column(Integer, nullable=True)     # 1–4
    section = Column(String, nullable=True)
    roll_number = Column(String, unique=True, nullable=True)

    # Teacher fields
    departments = Column(JSON, nullable=False, default=list)
    branches_handled = Column(JSON, nullable=False, default=list)

    # Password reset (sha256 of the OTP, never the OTP itself)
    reset_password_token = Column(String, nullable=True)
    reset_password_expires = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
