from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.api.deps import get_current_user
from chatbot_admin.core.config import settings
from chatbot_admin.core.db import get_session
from chatbot_admin.crud.support import crud_support_agent
from chatbot_admin.models.user import User
from chatbot_admin.schemas.auth import (LoginResponse, UserLogin,
                                        UserResponse)
from chatbot_admin.services.auth import authenticate, create_access_token

router = APIRouter(tags=["auth"])


def _set_auth_cookie(response: Response, token: str) -> None:
    max_age = settings.jwt_access_token_expire_minutes * 60
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        max_age=max_age,
        samesite="lax",
        secure=settings.auth_cookie_secure,
    )


def _clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.auth_cookie_name,
        samesite="lax",
    )


@router.post("/auth/login", response_model=LoginResponse)
async def login(
    response: Response,
    user_in: UserLogin,
    session: AsyncSession = Depends(get_session),
):
    identity = await authenticate(session, user_in.username, user_in.password)
    if identity is None:
        raise HTTPException(
            status_code=401, detail="Invalid username or password"
        )
    user, agent_id = identity
    token = create_access_token(
        subject=str(user.id),
        expires_delta=timedelta(
            minutes=settings.jwt_access_token_expire_minutes
        ),
    )
    _set_auth_cookie(response, token)
    return LoginResponse(
        user=UserResponse.model_validate(user), agent_id=agent_id
    )


@router.post("/auth/logout")
async def logout(response: Response):
    _clear_auth_cookie(response)
    return {"result": "ok"}


@router.get("/auth/me", response_model=LoginResponse)
async def me(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    agent = await crud_support_agent.get_by_user(session, current_user.id)
    return LoginResponse(
        user=UserResponse.model_validate(current_user),
        agent_id=agent.id if agent else None,
    )
