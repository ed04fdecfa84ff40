import asyncio
import html
import logging
import threading
import time
from collections import deque
from typing import Deque, Optional

from aiogram import Bot

from .utils import remove_lines_to_fit_len


class TelegramLogHandler(logging.Handler):
    """
    Logging handler that forwards warnings and errors to the operator's chat.

    Records emitted before an event loop is registered are kept in a bounded
    buffer and flushed by `set_event_loop`. Identical consecutive messages are
    dropped within `dedupe_window` seconds, and at most `max_per_minute`
    messages are sent per rolling minute.
    """

    MAX_TELEGRAM_LENGTH = 4096

    def __init__(
        self,
        bot: Bot,
        chat_id: int,
        *,
        max_per_minute: int = 10,
        dedupe_window: float = 15.0,
    ) -> None:
        super().__init__(level=logging.WARNING)
        self._bot = bot
        self._chat_id = chat_id
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()
        self._buffer: Deque[str] = deque(maxlen=50)
        self._sent_at: Deque[float] = deque(maxlen=max_per_minute)
        self._dedupe_window = dedupe_window
        self._last_text: Optional[str] = None
        self._last_sent_at = 0.0

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        with self._lock:
            self._loop = loop
            buffered = list(self._buffer)
            self._buffer.clear()

        for text in buffered:
            self._deliver(text)

    def emit(self, record: logging.LogRecord) -> None:
        # Failures of our own delivery must not loop back into Telegram
        if record.name == __name__ or record.name.startswith("aiogram"):
            return

        try:
            text = self._render(record)
        except Exception:
            self.handleError(record)
            return

        with self._lock:
            if self._loop is None:
                self._buffer.append(text)
                return

        self._deliver(text)

    def _render(self, record: logging.LogRecord) -> str:
        header = (
            f"<b>{html.escape(record.levelname)}</b> · "
            f"<code>{html.escape(record.name)}</code>"
        )
        body = html.escape(self.format(record))
        text = f"{header}\n\n<pre>{body}</pre>"
        if len(text) > self.MAX_TELEGRAM_LENGTH:
            # Keep the tags balanced by trimming the body, not the markup
            budget = self.MAX_TELEGRAM_LENGTH - len(text) + len(body)
            body = remove_lines_to_fit_len(body, budget)
            text = f"{header}\n\n<pre>{body}</pre>"
        return text

    def _deliver(self, text: str) -> None:
        with self._lock:
            loop = self._loop
            if loop is None or loop.is_closed():
                return
            now = time.monotonic()
            if text == self._last_text and now - self._last_sent_at < self._dedupe_window:
                return
            while self._sent_at and now - self._sent_at[0] > 60.0:
                self._sent_at.popleft()
            if self._sent_at.maxlen and len(self._sent_at) >= self._sent_at.maxlen:
                return
            self._sent_at.append(now)
            self._last_text = text
            self._last_sent_at = now

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            loop.create_task(self._send(text))
        else:
            asyncio.run_coroutine_threadsafe(self._send(text), loop)

    async def _send(self, text: str) -> None:
        try:
            await self._bot.send_message(
                self._chat_id,
                text,
                parse_mode="HTML",
                disable_web_page_preview=True,
            )
        except Exception as e:
            logging.getLogger(__name__).debug(f"Failed to forward log record: {e}")
