# app/routers/user.py
import logging
import smtplib

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.auth import get_current_user, TOKEN_COOKIE
from app.core.errors import Conflict
from app.core.security import create_access_token, generate_otp, hash_otp, otp_expiry
from app.database import get_db
from app.models.user import User
from app.schemas.auth import ForgotPasswordRequest, ResetPasswordRequest, MessageOut
from app.schemas.user import UserCreate, UserLogin, UserUpdate, UserResponse, AuthResponse
from app.services import mailer
from app.utils.dates import utcnow
from app.utils.password import hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

RESET_REQUESTED_MESSAGE = "If an account exists with this email, you will receive a password reset OTP."


def _issue_token(response: Response, user: User) -> AuthResponse:
    token = create_access_token({"sub": str(user.id)})
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
    )
    return AuthResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        branch=user.branch,
        token=token,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate, response: Response, db: AsyncSession = Depends(get_db)):
    logger.info("Registration attempt: email=%s role=%s", user_in.email, user_in.role)

    result = await db.execute(select(User).where(User.email == user_in.email))
    if result.scalar_one_or_none():
        raise Conflict("User already exists")

    # Role-specific requirements
    if user_in.role == "student":
        if not user_in.roll_number:
            raise HTTPException(status_code=400, detail="Roll number is required for students")
        existing_roll = await db.execute(select(User).where(User.roll_number == user_in.roll_number))
        if existing_roll.scalar_one_or_none():
            raise Conflict("Roll number already exists")
    elif not user_in.branches_handled:
        raise HTTPException(status_code=400, detail="Branches handled are required for teachers")

    user = User(
        name=user_in.name,
        email=user_in.email,
        hashed_password=hash_password(user_in.password),
        role=user_in.role,
        branch=user_in.branch,
        year=user_in.year if user_in.role == "student" else None,
        section=user_in.section if user_in.role == "student" else None,
        roll_number=user_in.roll_number if user_in.role == "student" else None,
        departments=list(user_in.departments) if user_in.role == "teacher" else [],
        branches_handled=list(user_in.branches_handled) if user_in.role == "teacher" else [],
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration
        await db.rollback()
        raise Conflict("User already exists")
    await db.refresh(user)

    logger.info("User created: id=%s", user.id)
    return _issue_token(response, user)


@router.post("/login", response_model=AuthResponse)
async def login(user_in: UserLogin, response: Response, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == user_in.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(user_in.password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    return _issue_token(response, user)


@router.post("/logout", response_model=MessageOut)
async def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE)
    return MessageOut(message="Logged out")


@router.get("/profile", response_model=UserResponse)
async def read_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    update_in: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if update_in.name is not None:
        current_user.name = update_in.name
    db.add(current_user)
    await db.commit()
    await db.refresh(current_user)
    return current_user


@router.post("/forgot-password", response_model=MessageOut)
async def forgot_password(request: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == request.email))
    user = result.scalar_one_or_none()

    # Same answer whether or not the account exists
    if not user:
        return MessageOut(message=RESET_REQUESTED_MESSAGE)

    otp = generate_otp()
    user.reset_password_token = hash_otp(otp)
    user.reset_password_expires = otp_expiry()
    db.add(user)
    await db.commit()
    logger.info("Password reset OTP issued for user %s", user.id)

    try:
        await mailer.send_password_reset_otp(user.email, user.name, otp)
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send password reset email to user %s", user.id)

    return MessageOut(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password", response_model=MessageOut)
async def reset_password(request: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(User)
        .where(User.email == request.email)
        .where(User.reset_password_token == hash_otp(request.otp.strip()))
        .where(User.reset_password_expires > utcnow())
    )
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired OTP")

    user.hashed_password = hash_password(request.password)
    user.reset_password_token = None
    user.reset_password_expires = None
    db.add(user)
    await db.commit()

    logger.info("Password reset for user %s", user.id)
    return MessageOut(message="Password has been reset successfully")
