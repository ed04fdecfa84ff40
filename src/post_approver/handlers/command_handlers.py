import logging

from aiogram import F, types
from aiogram.filters import Command

from ..common.mp import track
from ..common.utils import get_message
from ..moderation.session import ModerationSession
from ..types import SelectionStatus
from .dp import dp
from .keyboards import decision_keyboard
from .middlewares import sender_id

logger = logging.getLogger(__name__)


@dp.message(Command("start"))
async def handle_start_command(message: types.Message) -> str:
    await message.answer(get_message("start"))
    track(sender_id(message), "command_start")
    return "command_start_sent"


@dp.message(Command("help"))
async def handle_help_command(message: types.Message) -> str:
    await message.answer(get_message("help"))
    track(sender_id(message), "command_help")
    return "command_help_sent"


@dp.message(Command("status"))
async def handle_status_command(
    message: types.Message, moderation: ModerationSession
) -> str:
    """Liveness plus what the session currently holds"""
    lines = [get_message("status")]
    if moderation.current is not None:
        lines.append(f"Pending: {moderation.current.title}")
    lines.append(f"Skipped: {len(moderation.skip_cache)}")

    await message.answer("\n".join(lines))
    track(sender_id(message), "command_status")
    return "command_status_sent"


@dp.message(Command("getpost"))
async def handle_getpost_command(
    message: types.Message, moderation: ModerationSession
) -> str:
    """
    Обработчик команды /getpost
    Выбирает первый непросмотренный пост и показывает его с кнопками решения
    """
    result = await moderation.fetch_candidate()

    match result.status:
        case SelectionStatus.FOUND:
            candidate = result.candidate
            await message.answer(
                get_message(
                    "post", title=candidate.title, identifier=candidate.identifier
                ),
                reply_markup=decision_keyboard(),
            )
            tag = "getpost_sent"
        case SelectionStatus.EMPTY:
            await message.answer(get_message("no_post"))
            tag = "getpost_empty"
        case SelectionStatus.FAILED:
            await message.answer(get_message("error", error=result.error))
            tag = "getpost_error"

    track(sender_id(message), "command_getpost", {"status": result.status.value})
    return tag


@dp.message(F.text.startswith("/"))
async def handle_unknown_command(message: types.Message) -> str:
    logger.info(f"Got unknown command: {message.text}")
    await message.answer(get_message("unknown_command"))
    return "command_unknown"
