from fastapi import Cookie, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.core.config import settings
from chatbot_admin.core.db import get_session
from chatbot_admin.crud.user import crud_user
from chatbot_admin.models.user import User
from chatbot_admin.services.auth import decode_access_token
from chatbot_admin.services.realtime import SupportChatHub


async def get_current_user(
    session: AsyncSession = Depends(get_session),
    token: str | None = Cookie(None, alias=settings.auth_cookie_name),
) -> User:
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    payload = decode_access_token(token)
    if not payload or "sub" not in payload:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = await crud_user.get_or_none(session, int(payload["sub"]))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def get_hub(request: Request) -> SupportChatHub:
    return request.app.state.hub
