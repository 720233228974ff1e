from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chatbot_admin.core.constants import MAX_LEN_MESSAGE
from chatbot_admin.models.support import SupportStatus
from chatbot_admin.schemas.auth import UserResponse
from chatbot_admin.schemas.chat import ChatSessionResponse
from chatbot_admin.schemas.client import ClientResponse


class SupportAgentResponse(BaseModel):
    id: int
    user_id: int
    is_available: bool
    last_active: Optional[datetime] = None
    user: Optional[UserResponse] = None

    model_config = ConfigDict(from_attributes=True)


class SupportAgentUpdate(BaseModel):
    is_available: bool


class SupportChatCreate(BaseModel):
    client_id: int
    session_id: int
    agent_id: Optional[int] = None


class SupportChatUpdate(BaseModel):
    status: Optional[SupportStatus] = None
    agent_id: Optional[int] = None


class SupportChatResponse(BaseModel):
    id: int
    client_id: Optional[int] = None
    session_id: Optional[int] = None
    agent_id: Optional[int] = None
    status: SupportStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SupportChatWithInfo(SupportChatResponse):
    client: Optional[ClientResponse] = None
    session: Optional[ChatSessionResponse] = None


class SupportMessageCreate(BaseModel):
    chat_id: int
    sender_id: Optional[int] = None
    content: str = Field(..., min_length=1, max_length=MAX_LEN_MESSAGE)

    @field_validator('content')
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('must not be blank')
        return value


class SupportMessageResponse(BaseModel):
    id: int
    chat_id: int
    sender_id: Optional[int] = None
    content: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SupportChatDetail(BaseModel):
    chat: SupportChatWithInfo
    messages: list[SupportMessageResponse]


class SupportMessageEvent(BaseModel):
    type: str = 'support_message'
    message: SupportMessageResponse
