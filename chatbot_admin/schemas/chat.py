from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import (AfterValidator, BaseModel, ConfigDict, Field,
                      field_validator)

from chatbot_admin.core.constants import (MAX_LEN_KEYWORD, MAX_LEN_MESSAGE,
                                          MAX_LEN_PHONE)


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError('must not be blank')
    return value


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


class ChatSessionCreate(BaseModel):
    client_id: int
    phone_number: Optional[str] = Field(
        default=None, max_length=MAX_LEN_PHONE
    )
    expires_at: Optional[datetime] = None


class ChatSessionResponse(BaseModel):
    id: int
    client_id: Optional[int] = None
    session_token: str
    phone_number: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    last_active: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ChatMessageCreate(BaseModel):
    session_id: int
    content: NonBlankStr = Field(
        ..., min_length=1, max_length=MAX_LEN_MESSAGE
    )
    is_user_message: bool = True


class ChatMessageResponse(BaseModel):
    id: int
    session_id: Optional[int] = None
    content: str
    is_user_message: bool
    needs_support: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatSessionDetail(BaseModel):
    session: ChatSessionResponse
    messages: list[ChatMessageResponse]
    expired: bool = False


class InboundMessageResult(BaseModel):
    message: ChatMessageResponse
    escalated: bool
    matched: bool
    reply: Optional[ChatMessageResponse] = None
    support_chat_id: Optional[int] = None


class CustomResponseCreate(BaseModel):
    client_id: int
    keyword: NonBlankStr = Field(
        ..., min_length=1, max_length=MAX_LEN_KEYWORD
    )
    response: NonBlankStr = Field(..., min_length=1)
    is_active: bool = True


class CustomResponseUpdate(BaseModel):
    keyword: Optional[str] = Field(
        default=None, min_length=1, max_length=MAX_LEN_KEYWORD
    )
    response: Optional[str] = Field(default=None, min_length=1)
    is_active: Optional[bool] = None

    @field_validator('keyword', 'response', 'is_active', mode='before')
    @classmethod
    def reject_null(cls, value):
        # поле можно не передавать, но null в NOT NULL колонку не пишем
        if value is None:
            raise ValueError('must not be null')
        return value

    @field_validator('keyword', 'response')
    @classmethod
    def strip_optional(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _not_blank(value)


class CustomResponseOut(BaseModel):
    id: int
    client_id: int
    keyword: str
    response: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class QRGenerateRequest(BaseModel):
    client_id: int
    session_timeout: Literal['never', '24h', '7d'] = 'never'
    phone_number: Optional[str] = Field(
        default=None, max_length=MAX_LEN_PHONE
    )


class QRGenerateResponse(BaseModel):
    session: ChatSessionResponse
    qr_url: str
