import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.core.config import settings
from chatbot_admin.crud.support import crud_support_agent
from chatbot_admin.crud.user import crud_user
from chatbot_admin.models.user import User

logger = logging.getLogger("chatbot_admin")
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _normalize_password(password: str) -> str:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) <= 72:
        return password
    return hashlib.sha256(password_bytes).hexdigest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    normalized = _normalize_password(plain_password)
    return pwd_context.verify(normalized, hashed_password)


def get_password_hash(password: str) -> str:
    normalized = _normalize_password(password)
    return pwd_context.hash(normalized)


def create_access_token(
        subject: str, expires_delta: timedelta | None = None
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    to_encode: dict[str, Any] = {"sub": subject, "exp": expire}
    return jwt.encode(
        to_encode,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    try:
        return jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None


async def authenticate(
    session: AsyncSession, username: str, password: str
) -> Optional[tuple[User, Optional[int]]]:
    """Проверка логина: пользователь и id связанного оператора."""
    user = await crud_user.get_by_username(session, username)
    if not user or not verify_password(password, user.password_hash):
        logger.info(f'Неудачный вход для {username!r}')
        return None
    agent = await crud_support_agent.get_by_user(session, user.id)
    return user, agent.id if agent else None
