from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

from ..types import Decision


def decision_keyboard() -> ReplyKeyboardMarkup:
    """One-time keyboard shown under a post"""
    return ReplyKeyboardMarkup(
        keyboard=[
            [
                KeyboardButton(text=Decision.APPROVE.label),
                KeyboardButton(text=Decision.REJECT.label),
            ],
            [KeyboardButton(text=Decision.SKIP.label)],
        ],
        one_time_keyboard=True,
        resize_keyboard=True,
    )
