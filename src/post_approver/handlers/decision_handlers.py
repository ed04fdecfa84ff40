import logging

from aiogram import F, types
from aiogram.types import ReplyKeyboardRemove

from ..common.mp import track
from ..common.utils import get_message
from ..moderation.session import ModerationSession
from ..types import Decision, DecisionResult, DecisionStatus
from .dp import dp
from .middlewares import sender_id

logger = logging.getLogger(__name__)

CONFIRMATIONS = {
    Decision.APPROVE: "approved",
    Decision.REJECT: "rejected",
    Decision.SKIP: "skipped",
}


def render_decision(result: DecisionResult) -> str:
    match result.status:
        case DecisionStatus.DONE:
            return get_message(CONFIRMATIONS[result.decision])
        case DecisionStatus.FAILED:
            return get_message("error", error=result.error)
        case DecisionStatus.NO_CANDIDATE | DecisionStatus.UNSUPPORTED:
            return get_message("unsupported")


@dp.message(~F.text.startswith("/"))
async def handle_decision(message: types.Message, moderation: ModerationSession) -> str:
    """
    Обработчик кнопок под постом
    Любой текст, кроме меток кнопок, сбрасывает текущий пост
    """
    logger.info(f"Got text: {message.text}")
    decision = Decision.from_text(message.text)
    result = await moderation.decide(decision)

    await message.answer(render_decision(result), reply_markup=ReplyKeyboardRemove())

    track(
        sender_id(message),
        f"decision_{decision.name.lower()}",
        {
            "status": result.status.value,
            "identifier": result.candidate.identifier if result.candidate else None,
        },
    )
    return f"decision_{decision.name.lower()}_{result.status.value}"
