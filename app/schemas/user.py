from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Literal, Optional

Role = Literal["teacher", "student"]
Branch = Literal["CSE", "AIML", "Data Science", "IT", "EEE", "ECE"]


def require_text(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} cannot be blank")
    return value


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    role: Role
    branch: Branch
    # Student specific fields
    year: Optional[int] = Field(None, ge=1, le=4)
    section: Optional[str] = None
    roll_number: Optional[str] = None
    # Teacher specific fields
    departments: List[str] = []
    branches_handled: List[Branch] = []

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return require_text(v, "Name")

    @field_validator("roll_number")
    @classmethod
    def strip_roll_number(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None

class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return require_text(v, "Name")

class UserSummary(BaseModel):
    id: int
    name: str
    email: EmailStr

    model_config = {"from_attributes": True}

class UserResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    branch: str
    year: Optional[int] = None
    section: Optional[str] = None
    roll_number: Optional[str] = None
    departments: List[str] = []
    branches_handled: List[str] = []

    model_config = {"from_attributes": True}

class AuthResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    branch: str
    token: str
