import logging

from aiogram.exceptions import TelegramAPIError
from aiogram.filters import ExceptionTypeFilter
from aiogram.types import ErrorEvent

from .dp import dp

logger = logging.getLogger(__name__)


@dp.errors(ExceptionTypeFilter(TelegramAPIError))
async def handle_send_failure(event: ErrorEvent) -> None:
    """A reply that cannot be delivered leaves the operator blind: stop the bot"""
    logger.critical(
        f"Failed to send reply, aborting: {event.exception}",
        exc_info=event.exception,
    )
    raise SystemExit(1)
