# app/core/auth.py
from typing import Optional
from fastapi import Depends, Request, WebSocket
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.database import get_db
from app.models.user import User
from app.core.errors import Unauthenticated, Forbidden
from app.core.permissions import is_teacher, is_student
from app.core.security import decode_access_token

TOKEN_COOKIE = "token"

# auto_error=False so the cookie can be tried when no header is sent
reusable_oauth2 = HTTPBearer(auto_error=False)

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(reusable_oauth2)
) -> User:
    token = credentials.credentials if credentials else request.cookies.get(TOKEN_COOKIE)
    if not token:
        raise Unauthenticated()

    user_id = decode_access_token(token)
    if user_id is None:
        raise Unauthenticated("Invalid token")
    try:
        user_pk = int(user_id)
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid token")

    result = await db.execute(select(User).where(User.id == user_pk))
    user = result.scalar_one_or_none()
    if user is None:
        raise Unauthenticated("Invalid token")
    return user


async def get_current_teacher(
    current_user: User = Depends(get_current_user)
) -> User:
    if not is_teacher(current_user):
        raise Forbidden("Access denied. Teachers only.")
    return current_user


async def get_current_student(
    current_user: User = Depends(get_current_user)
) -> User:
    if not is_student(current_user):
        raise Forbidden("Access denied. Students only.")
    return current_user


def websocket_user_id(websocket: WebSocket) -> Optional[str]:
    """
    User id from the handshake credential, or None.

    Browsers cannot set headers on a WebSocket, so a ``token`` query parameter
    and the ``token`` cookie are accepted alongside a Bearer header.
    """
    token = websocket.query_params.get("token")
    if not token:
        scheme, _, credentials = websocket.headers.get("authorization", "").partition(" ")
        if scheme.lower() == "bearer" and credentials:
            token = credentials
    if not token:
        token = websocket.cookies.get(TOKEN_COOKIE)
    if not token:
        return None
    return decode_access_token(token)
