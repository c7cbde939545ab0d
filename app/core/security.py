# app/core/security.py
# Password hashing plus JWT creation / verification, and the FastAPI
# dependencies that turn a bearer token into a User.
from datetime import datetime, timedelta, timezone
from typing import Optional

from passlib.context import CryptContext
from jose import JWTError, jwt
from fastapi import Depends, Query, status, WebSocket, WebSocketException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.schemas.user_schema import TokenData
from app.repositories.user_repo import UserRepository
from app.models.user import User, UserRoleEnum

# 1. Password hashing (bcrypt)
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# 2. Token comes from the `Authorization: Bearer <token>` header.
# auto_error=False so a missing header is reported with our own error kind.
bearer_scheme = HTTPBearer(auto_error=False)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a JWT for `data` (must contain user_id). Default lifetime is
    ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )

def verify_access_token(token: str) -> TokenData | None:
    """
    Decode a JWT into TokenData, or None when it is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None

    user_id = payload.get("user_id")
    if user_id is None:
        return None
    return TokenData(user_id=user_id, role=payload.get("role"))

async def _resolve_user(token: Optional[str], db: AsyncSession) -> User:
    if not token:
        raise AuthenticationError("No token provided. Authorization required.")

    token_data = verify_access_token(token)
    if token_data is None:
        raise AuthenticationError("Invalid or expired token. Please login again.")

    user = await UserRepository(db).get_user_by_id(user_id=token_data.user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")

    if not user.is_active:
        raise AuthorizationError("This account has been suspended")

    return user

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI dependency: validate the bearer token and return the User (REST)
    """
    token = credentials.credentials if credentials else None
    return await _resolve_user(token, db)

async def get_current_admin(
    user: User = Depends(get_current_user),
) -> User:
    """
    Admin-only dependency. The role comes from the freshly loaded row,
    never from the token's role claim.
    """
    if user.role != UserRoleEnum.admin:
        raise AuthorizationError("Access denied. Admin privileges required.")
    return user

async def get_current_user_from_websocket_token(
    websocket: WebSocket,
    token: Optional[str] = Query(None), # ?token=...
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    WebSocket handshake authentication. Accepts ?token= or an
    Authorization header; anything else closes with 1008 before accept.
    """
    if not token:
        header = websocket.headers.get("authorization", "")
        if header.lower().startswith("bearer "):
            token = header[7:].strip()

    try:
        return await _resolve_user(token, db)
    except (AuthenticationError, AuthorizationError) as exc:
        raise WebSocketException(
            code=status.WS_1008_POLICY_VIOLATION,
            reason=exc.detail,
        )
