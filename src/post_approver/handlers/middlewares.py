import logging
from typing import Any, Awaitable, Callable, Dict, Iterable

import logfire
from aiogram import BaseMiddleware
from aiogram.dispatcher.event.bases import UNHANDLED
from aiogram.types import Message, TelegramObject, Update

logger = logging.getLogger(__name__)

Handler = Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]]


def sender_id(message: Message) -> int:
    """Telegram id of the author, or the chat id for anonymous posts"""
    if message.from_user:
        return message.from_user.id
    return message.chat.id


class AllowedSendersMiddleware(BaseMiddleware):
    """Drops messages from anyone outside the allow-list before any handler runs"""

    def __init__(self, allowed_ids: Iterable[int]):
        self.allowed_ids = frozenset(allowed_ids)

    async def __call__(
        self, handler: Handler, event: TelegramObject, data: Dict[str, Any]
    ) -> Any:
        if isinstance(event, Message):
            user_id = sender_id(event)
            if user_id not in self.allowed_ids:
                # INFO only: warnings are forwarded to Telegram
                logger.info(f"Got update from unknown user {user_id}, dropping it")
                return "unauthorized_sender"
        return await handler(event, data)


class UpdateTracingMiddleware(BaseMiddleware):
    """Runs each update inside a Logfire span tagged with the handler result"""

    async def __call__(
        self, handler: Handler, event: TelegramObject, data: Dict[str, Any]
    ) -> Any:
        with logfire.span("Update: handling...") as span:
            if isinstance(event, Update) and event.message:
                message = event.message
                span.message = message.text or f"<{message.content_type}>"
            result = await handler(event, data)
            if result is UNHANDLED:
                span.tags = ["unhandled"]
            elif isinstance(result, str):
                span.tags = [result]
            return result
