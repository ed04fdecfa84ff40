from aiogram import Bot
from aiogram.types import BotCommand

BOT_COMMANDS = [
    BotCommand(command="getpost", description="Get post"),
    BotCommand(command="status", description="Bot status"),
    BotCommand(command="help", description="Help"),
]


def create_bot(token: str) -> Bot:
    return Bot(token=token)


async def register_commands(bot: Bot) -> None:
    """Publish the command menu shown by Telegram clients"""
    await bot.set_my_commands(BOT_COMMANDS)
