"""Подбор автоответа по ключевым словам клиента.

Правило срабатывает, если ключевое слово (без учёта регистра) входит в
текст сообщения подстрокой. Правила проверяются в порядке создания,
побеждает первое подошедшее. Никакой токенизации и нечёткого поиска.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.crud.chat import crud_custom_response
from chatbot_admin.models.chat import CustomResponse


@dataclass(frozen=True)
class MatchResult:
    matched: bool
    reply: Optional[str] = None
    response_id: Optional[int] = None


NO_MATCH = MatchResult(matched=False)


def find_match(
    message_text: str, rules: Iterable[CustomResponse]
) -> MatchResult:
    text = message_text.lower()
    for rule in rules:
        if not rule.is_active:
            continue
        keyword = (rule.keyword or '').lower()
        # пустое слово совпало бы с любым текстом
        if not keyword.strip():
            continue
        if keyword in text:
            return MatchResult(
                matched=True, reply=rule.response, response_id=rule.id
            )
    return NO_MATCH


async def match(
    session: AsyncSession, client_id: int, message_text: str
) -> MatchResult:
    rules = await crud_custom_response.list_by_client(
        session, client_id, only_active=True
    )
    return find_match(message_text, rules)
