from pydantic import BaseModel, EmailStr, Field, field_validator

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

class ResetPasswordRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

class MessageOut(BaseModel):
    message: str
