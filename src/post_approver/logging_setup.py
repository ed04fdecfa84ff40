import asyncio
import logging
import os

from aiogram import Bot

from .common.telegram_logging_handler import TelegramLogHandler

debug = False
_telegram_handler: TelegramLogHandler | None = None


def mute_logging_for_tests():
    """Disable Logfire/Telegram logging side effects when running the test suite.

    Setting ``SKIP_LOGFIRE`` to one of ``{"1", "true", "yes", "on"}`` has the
    same effect without calling this helper.
    """
    global debug
    debug = True


def _should_skip_logfire() -> bool:
    if debug:
        return True

    skip_env = os.getenv("SKIP_LOGFIRE", "").strip().lower()
    if skip_env in {"1", "true", "yes", "on"}:
        return True

    return "PYTEST_CURRENT_TEST" in os.environ


def setup_logging():
    if _should_skip_logfire():
        logging.basicConfig(level=logging.DEBUG)
        return

    import logfire

    logfire.configure(service_name="post-approver", send_to_logfire="if-token-present")
    logging.basicConfig(
        handlers=[logfire.LogfireLoggingHandler()],
        level=logging.DEBUG,
    )


def attach_telegram_handler(bot: Bot, chat_id: int) -> TelegramLogHandler | None:
    """Forward WARNING and above to the operator chat"""
    global _telegram_handler
    if _should_skip_logfire():
        return None

    _telegram_handler = TelegramLogHandler(bot=bot, chat_id=chat_id)
    _telegram_handler.setFormatter(
        logging.Formatter(
            "[%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    )
    logging.getLogger().addHandler(_telegram_handler)
    return _telegram_handler


def register_telegram_logging_loop(loop: asyncio.AbstractEventLoop):
    if _telegram_handler:
        _telegram_handler.set_event_loop(loop)


# Silence known chatty loggers
CHATTY_LOGGERS = [
    "aiohttp.access",
    "urllib3.connectionpool",
    "aiogram.event",
]
for logger_name in CHATTY_LOGGERS:
    logging.getLogger(logger_name).setLevel(logging.WARNING)
