from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chatbot_admin.core.constants import (DEFAULT_PRIMARY_COLOR,
                                          DEFAULT_SECONDARY_COLOR,
                                          MAX_LEN_COLOR, MAX_NAME_CLIENT)


class ClientBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_CLIENT)
    category: str = Field(..., min_length=1, max_length=255)
    logo: Optional[str] = None
    primary_color: str = Field(
        default=DEFAULT_PRIMARY_COLOR, max_length=MAX_LEN_COLOR
    )
    secondary_color: str = Field(
        default=DEFAULT_SECONDARY_COLOR, max_length=MAX_LEN_COLOR
    )
    chat_title: str = Field(..., min_length=1, max_length=255)
    welcome_message: str = Field(..., min_length=1)
    user_id: Optional[int] = None


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(
        default=None, min_length=1, max_length=MAX_NAME_CLIENT
    )
    category: Optional[str] = Field(default=None, min_length=1)
    logo: Optional[str] = None
    is_active: Optional[bool] = None
    primary_color: Optional[str] = Field(
        default=None, max_length=MAX_LEN_COLOR
    )
    secondary_color: Optional[str] = Field(
        default=None, max_length=MAX_LEN_COLOR
    )
    chat_title: Optional[str] = Field(default=None, min_length=1)
    welcome_message: Optional[str] = Field(default=None, min_length=1)
    user_id: Optional[int] = None

    @field_validator(
        'name', 'category', 'is_active', 'primary_color',
        'secondary_color', 'chat_title', 'welcome_message',
        mode='before',
    )
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError('must not be null')
        return value


class ClientResponse(ClientBase):
    id: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ClientWithStats(ClientResponse):
    message_count: int = 0
    user_count: int = 0
    support_request_count: int = 0


class DashboardStats(BaseModel):
    total_bots: int
    messages_today: int
    active_users: int
    support_requests: int
